"""Order cancellation: commands and handler.

What gets cancelled depends on who asks: admins and clients cancel the
whole order, vendors only their own lot. Single items can be withdrawn by
the client or by the vendor selling them.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class CancelOrder:
    """Cancel an order, or the caller's lot when the caller is a vendor."""

    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    vendor_id = Identifier()
    reason = String(required=True, max_length=500)
    expected_version = Integer()


@marketplace.command(part_of="Order")
class CancelItem:
    """Withdraw one product from a vendor's lot."""

    order_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    product_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    reason = String(required=True, max_length=500)
    expected_version = Integer()


@marketplace.command_handler(part_of=Order)
class CancellationHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_for_update(command.order_id, command.expected_version)
        event = order.cancel(
            command.actor_id,
            command.actor_role,
            command.reason,
            vendor_id=command.vendor_id,
        )
        if event is None:
            logger.info("Lot already cancelled", order_id=str(order.id), vendor_id=str(command.vendor_id))
            return
        repo.add(order)

        logger.info(
            "Order cancellation applied",
            order_id=str(order.id),
            actor_role=command.actor_role,
            order_status=order.status,
            total=order.total,
        )

    @handle(CancelItem)
    def cancel_item(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_for_update(command.order_id, command.expected_version)
        event = order.cancel_item(
            command.vendor_id,
            command.product_id,
            command.actor_id,
            command.actor_role,
            command.reason,
        )
        if event is None:
            logger.info(
                "Item already cancelled",
                order_id=str(order.id),
                product_id=str(command.product_id),
            )
            return
        repo.add(order)

        logger.info(
            "Item cancelled",
            order_id=str(order.id),
            product_id=str(command.product_id),
            order_status=order.status,
            total=order.total,
        )
