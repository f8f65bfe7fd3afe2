"""Read access to orders.

An actor is the authenticated caller: a dict with user_id, role and, for
vendor staff, vendor_id.
"""

from marketplace.order.enums import ActorRole
from marketplace.order.errors import ForbiddenError
from marketplace.order.order import Order


def can_view(order: Order, actor: dict) -> bool:
    role = ActorRole(actor["role"])
    if role == ActorRole.ADMIN:
        return True
    if role == ActorRole.CLIENT:
        return str(order.client_id) == str(actor["user_id"])
    return actor.get("vendor_id") is not None and order.has_vendor(actor["vendor_id"])


def ensure_can_view(order: Order, actor: dict) -> None:
    if not can_view(order, actor):
        raise ForbiddenError(f"Access to order {order.order_number} is not allowed")
