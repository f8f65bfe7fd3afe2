"""Lot acceptance: command and handler."""

import structlog
from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class AcceptLot:
    """A vendor accepts its lot of an order."""

    order_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    expected_version = Integer()


@marketplace.command_handler(part_of=Order)
class AcceptLotHandler:
    @handle(AcceptLot)
    def accept_lot(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_for_update(command.order_id, command.expected_version)
        order.accept_lot(command.vendor_id)
        repo.add(order)

        logger.info(
            "Lot accepted",
            order_id=str(order.id),
            vendor_id=str(command.vendor_id),
            order_status=order.status,
        )
