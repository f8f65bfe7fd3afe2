"""Final receipt: command and handler.

Closes the order: collected at the depot (pickup) or delivered to the
client, and paid in full.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class ConfirmReceipt:
    order_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    vendor_id = Identifier()  # Vendor staff confirming a direct delivery
    expected_version = Integer()


@marketplace.command_handler(part_of=Order)
class ConfirmReceiptHandler:
    @handle(ConfirmReceipt)
    def confirm_receipt(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_for_update(command.order_id, command.expected_version)
        order.confirm_receipt(command.actor_id, command.actor_role, vendor_id=command.vendor_id)
        repo.add(order)

        logger.info(
            "Order delivered",
            order_id=str(order.id),
            validated_by=str(command.actor_id),
            paid_amount=order.payment.paid_amount,
        )
