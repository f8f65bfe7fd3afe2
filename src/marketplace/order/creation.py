"""Order placement: command and handler.

Checkout runs as one unit of work: the order is written and the cart
emptied together, so a failed checkout leaves the cart untouched and a
second checkout of the same cart finds it empty.
"""

import structlog
from protean import handle
from protean.fields import DateTime, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.directory import get_directory
from marketplace.domain import marketplace
from marketplace.order.errors import EmptyCartError
from marketplace.order.numbering import generate_order_number
from marketplace.order.order import Order
from marketplace.order.snapshot import build_order

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class PlaceOrder:
    """Check the client's cart out into a new order."""

    client_id = Identifier(required=True)
    delivery_mode = String(required=True, max_length=50)
    delivery_address = String(max_length=500)
    payment_method = String(max_length=20)
    note = Text()
    requested_at = DateTime()


@marketplace.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        cart_repo = current_domain.repository_for(Cart)
        cart = cart_repo.for_client(command.client_id)
        if cart is None or cart.is_empty:
            raise EmptyCartError("The cart is empty")

        repo = current_domain.repository_for(Order)
        order = build_order(
            client_id=command.client_id,
            lines=[line.snapshot() for line in cart.lines],
            delivery_mode=command.delivery_mode,
            delivery_address=command.delivery_address,
            payment_method=command.payment_method,
            note=command.note,
            requested_at=command.requested_at,
            directory=get_directory(),
            order_number=generate_order_number(repo),
        )
        repo.add(order)

        cart.checkout(order_id=str(order.id))
        cart_repo.add(cart)

        logger.info(
            "Order placed",
            order_id=str(order.id),
            order_number=order.order_number,
            client_id=str(order.client_id),
            lots=len(order.lots),
            total=order.total,
        )
        return str(order.id)
