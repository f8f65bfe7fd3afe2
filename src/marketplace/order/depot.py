"""Depot hand-off: commands and handler.

Vendors drop their lots at the central depot; an admin then confirms each
lot's arrival. Only supermarket-delivery and pickup orders go through the
depot.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class MarkDepotDropOff:
    """A vendor reports dropping its lot at the depot."""

    order_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    expected_version = Integer()


@marketplace.command(part_of="Order")
class ConfirmDepotReceipt:
    """An admin confirms a vendor's lot arrived at the depot."""

    order_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    admin_id = Identifier(required=True)
    expected_version = Integer()


@marketplace.command_handler(part_of=Order)
class DepotHandler:
    @handle(MarkDepotDropOff)
    def mark_drop_off(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_for_update(command.order_id, command.expected_version)
        order.mark_depot_drop_off(command.vendor_id)
        repo.add(order)

        logger.info("Lot dropped off at depot", order_id=str(order.id), vendor_id=str(command.vendor_id))

    @handle(ConfirmDepotReceipt)
    def confirm_receipt(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_for_update(command.order_id, command.expected_version)
        order.confirm_depot_receipt(command.vendor_id, command.admin_id)
        repo.add(order)

        logger.info(
            "Depot receipt confirmed",
            order_id=str(order.id),
            vendor_id=str(command.vendor_id),
            order_status=order.status,
        )
