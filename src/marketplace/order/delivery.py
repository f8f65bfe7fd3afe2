"""Direct delivery: command and handler.

Used by vendors that deliver to the client themselves, without going
through the depot.
"""

import structlog
from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.order.order import Order

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class StartDirectDelivery:
    order_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    actor_id = Identifier(required=True)
    expected_version = Integer()


@marketplace.command_handler(part_of=Order)
class DirectDeliveryHandler:
    @handle(StartDirectDelivery)
    def start_direct_delivery(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get_for_update(command.order_id, command.expected_version)
        order.start_direct_delivery(command.vendor_id)
        repo.add(order)

        logger.info("Direct delivery started", order_id=str(order.id), vendor_id=str(command.vendor_id))
