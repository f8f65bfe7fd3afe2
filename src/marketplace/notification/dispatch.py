"""Order notification dispatcher: tells the counter-parties about order changes.

Reacts to the events the Order aggregate raises once their unit of work has
committed. Delivery is best effort: a failing directory lookup or notifier
is logged and never surfaces to the caller whose transition triggered it.
The acting user is never notified of their own action.
"""

import json

import structlog
from protean.utils.mixins import handle

from marketplace.directory import get_directory
from marketplace.domain import marketplace
from marketplace.notification.channel import get_notifier
from marketplace.notification.templates import NotificationType, get_template
from marketplace.order.enums import ActorRole
from marketplace.order.events import (
    DepotDropOffMarked,
    DepotReceiptConfirmed,
    DirectDeliveryStarted,
    ItemCancelled,
    LotAccepted,
    LotCancelled,
    OrderCancelled,
    OrderDelivered,
    OrderPlaced,
)
from marketplace.order.order import Order

logger = structlog.get_logger(__name__)


def _context(event) -> dict:
    return {
        key: str(value) if key.endswith("_id") else value
        for key, value in event.to_dict().items()
        if not key.startswith("_")
    }


def _staff_of(vendor_ids) -> list[str]:
    directory = get_directory()
    return [user_id for vendor_id in vendor_ids for user_id in directory.staff_ids(vendor_id)]


def _dispatch(notification_type: NotificationType, resolve_recipients, context: dict, actor_id=None) -> int:
    """Send one notification per recipient and return how many were sent."""
    try:
        recipients = [str(user_id) for user_id in resolve_recipients()]
        content = get_template(notification_type.value).render(context)
        notifier = get_notifier()
    except Exception as e:
        logger.error(
            "Failed to prepare order notification",
            notification_type=notification_type.value,
            order_id=context.get("order_id"),
            error=str(e),
        )
        return 0

    data = {"order_id": context.get("order_id"), "order_number": context.get("order_number")}
    sent = 0
    # dict.fromkeys drops duplicate recipients while keeping their order
    for user_id in dict.fromkeys(recipients):
        if actor_id is not None and user_id == str(actor_id):
            continue
        try:
            result = notifier.notify(user_id, notification_type.value, content["title"], content["message"], data)
        except Exception as e:
            logger.error(
                "Order notification dispatch failed",
                notification_type=notification_type.value,
                order_id=context.get("order_id"),
                user_id=user_id,
                error=str(e),
            )
            continue

        if result.get("status") == "sent":
            sent += 1
        else:
            logger.error(
                "Order notification was not delivered",
                notification_type=notification_type.value,
                order_id=context.get("order_id"),
                user_id=user_id,
                error=result.get("error", "Unknown dispatch error"),
            )
    return sent


@marketplace.event_handler(part_of=Order)
class OrderNotificationDispatcher:
    @handle(OrderPlaced)
    def on_order_placed(self, event: OrderPlaced) -> None:
        context = _context(event)
        vendor_ids = json.loads(event.vendor_ids)
        _dispatch(NotificationType.ORDER_RECEIVED, lambda: [event.client_id], context)
        _dispatch(NotificationType.NEW_ORDER, lambda: _staff_of(vendor_ids), context)
        _dispatch(NotificationType.NEW_ORDER_ADMIN, lambda: get_directory().admin_ids(), context)

    @handle(LotAccepted)
    def on_lot_accepted(self, event: LotAccepted) -> None:
        _dispatch(NotificationType.LOT_ACCEPTED, lambda: [event.client_id], _context(event))

    @handle(DirectDeliveryStarted)
    def on_direct_delivery_started(self, event: DirectDeliveryStarted) -> None:
        _dispatch(NotificationType.DELIVERY_STARTED, lambda: [event.client_id], _context(event))

    @handle(DepotDropOffMarked)
    def on_depot_drop_off(self, event: DepotDropOffMarked) -> None:
        _dispatch(NotificationType.DEPOT_DROP_OFF, lambda: get_directory().admin_ids(), _context(event))

    @handle(DepotReceiptConfirmed)
    def on_depot_receipt_confirmed(self, event: DepotReceiptConfirmed) -> None:
        context = _context(event)
        _dispatch(
            NotificationType.DEPOT_RECEIPT,
            lambda: _staff_of([event.vendor_id]),
            context,
            actor_id=event.confirmed_by,
        )
        if event.all_lots_received:
            _dispatch(NotificationType.ORDER_READY, lambda: [event.client_id], context)

    @handle(OrderDelivered)
    def on_order_delivered(self, event: OrderDelivered) -> None:
        _dispatch(
            NotificationType.ORDER_DELIVERED,
            lambda: get_directory().admin_ids(),
            _context(event),
            actor_id=event.validated_by,
        )

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        vendor_ids = json.loads(event.vendor_ids)

        def recipients():
            staff = _staff_of(vendor_ids)
            if event.actor_role == ActorRole.CLIENT.value:
                return staff
            return [event.client_id, *staff]

        _dispatch(NotificationType.ORDER_CANCELLED, recipients, _context(event), actor_id=event.cancelled_by)

    @handle(LotCancelled)
    def on_lot_cancelled(self, event: LotCancelled) -> None:
        _dispatch(
            NotificationType.LOT_CANCELLED,
            lambda: [event.client_id],
            _context(event),
            actor_id=event.cancelled_by,
        )

    @handle(ItemCancelled)
    def on_item_cancelled(self, event: ItemCancelled) -> None:
        def recipients():
            if event.actor_role == ActorRole.CLIENT.value:
                return _staff_of([event.vendor_id])
            return [event.client_id]

        _dispatch(NotificationType.ITEM_CANCELLED, recipients, _context(event), actor_id=event.cancelled_by)
