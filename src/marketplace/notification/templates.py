"""Notification templates: one renderer per notification type.

Each template turns the context of an order event into the title and
message shown to the recipient.
"""

from enum import Enum


class NotificationType(Enum):
    ORDER_RECEIVED = "order_received"
    NEW_ORDER = "new_order"
    NEW_ORDER_ADMIN = "new_order_admin"
    LOT_ACCEPTED = "lot_accepted"
    DELIVERY_STARTED = "delivery_started"
    DEPOT_DROP_OFF = "depot_drop_off"
    DEPOT_RECEIPT = "depot_receipt"
    ORDER_READY = "order_ready"
    ORDER_DELIVERED = "order_delivered"
    ORDER_CANCELLED = "order_cancelled"
    LOT_CANCELLED = "lot_cancelled"
    ITEM_CANCELLED = "item_cancelled"


def _money(amount) -> str:
    return f"{amount or 0:,.0f}"


class OrderReceivedTemplate:
    notification_type = NotificationType.ORDER_RECEIVED.value

    @staticmethod
    def render(context: dict) -> dict:
        return {
            "title": "Order received",
            "message": (
                f"Your order {context['order_number']} of {_money(context.get('total'))} "
                "has been registered and is waiting for the vendors' confirmation."
            ),
        }


class NewOrderTemplate:
    notification_type = NotificationType.NEW_ORDER.value

    @staticmethod
    def render(context: dict) -> dict:
        return {
            "title": "New order",
            "message": f"Order {context['order_number']} contains products from your shop. Please accept it.",
        }


class NewOrderAdminTemplate:
    notification_type = NotificationType.NEW_ORDER_ADMIN.value

    @staticmethod
    def render(context: dict) -> dict:
        return {
            "title": "New order on the platform",
            "message": (
                f"Order {context['order_number']} was placed for {_money(context.get('total'))} "
                f"({context.get('delivery_mode')})."
            ),
        }


class LotAcceptedTemplate:
    notification_type = NotificationType.LOT_ACCEPTED.value

    @staticmethod
    def render(context: dict) -> dict:
        return {
            "title": "Order accepted",
            "message": f"{context.get('vendor_name') or 'A vendor'} accepted your order {context['order_number']}.",
        }


class DeliveryStartedTemplate:
    notification_type = NotificationType.DELIVERY_STARTED.value

    @staticmethod
    def render(context: dict) -> dict:
        return {
            "title": "Order on its way",
            "message": f"{context.get('vendor_name') or 'Your vendor'} is delivering order {context['order_number']}.",
        }


class DepotDropOffTemplate:
    notification_type = NotificationType.DEPOT_DROP_OFF.value

    @staticmethod
    def render(context: dict) -> dict:
        return {
            "title": "Lot dropped at the depot",
            "message": (
                f"{context.get('vendor_name') or 'A vendor'} dropped its lot of order "
                f"{context['order_number']} at the depot. Please confirm its receipt."
            ),
        }


class DepotReceiptTemplate:
    notification_type = NotificationType.DEPOT_RECEIPT.value

    @staticmethod
    def render(context: dict) -> dict:
        return {
            "title": "Lot received at the depot",
            "message": f"Your lot of order {context['order_number']} was received at the depot.",
        }


class OrderReadyTemplate:
    notification_type = NotificationType.ORDER_READY.value

    @staticmethod
    def render(context: dict) -> dict:
        if context.get("delivery_mode") == "pickup":
            message = f"Order {context['order_number']} is ready to be collected at the depot."
        else:
            message = f"Order {context['order_number']} left the depot and is on its way."
        return {"title": "Order ready", "message": message}


class OrderDeliveredTemplate:
    notification_type = NotificationType.ORDER_DELIVERED.value

    @staticmethod
    def render(context: dict) -> dict:
        return {
            "title": "Order delivered",
            "message": (
                f"Order {context['order_number']} was confirmed as received; "
                f"{_money(context.get('paid_amount'))} collected."
            ),
        }


class OrderCancelledTemplate:
    notification_type = NotificationType.ORDER_CANCELLED.value

    @staticmethod
    def render(context: dict) -> dict:
        return {
            "title": "Order cancelled",
            "message": (
                f"Order {context['order_number']} was cancelled by the {context.get('actor_role', 'platform')}. "
                f"Reason: {context.get('reason') or 'not given'}"
            ),
        }


class LotCancelledTemplate:
    notification_type = NotificationType.LOT_CANCELLED.value

    @staticmethod
    def render(context: dict) -> dict:
        return {
            "title": "Part of your order was cancelled",
            "message": (
                f"{context.get('vendor_name') or 'A vendor'} cancelled its products in order "
                f"{context['order_number']}. Reason: {context.get('reason') or 'not given'}. "
                f"New total: {_money(context.get('new_total'))}."
            ),
        }


class ItemCancelledTemplate:
    notification_type = NotificationType.ITEM_CANCELLED.value

    @staticmethod
    def render(context: dict) -> dict:
        return {
            "title": "Item cancelled",
            "message": (
                f"{context.get('product_name') or 'An item'} was removed from order {context['order_number']}. "
                f"Reason: {context.get('reason') or 'not given'}. New total: {_money(context.get('new_total'))}."
            ),
        }


TEMPLATE_REGISTRY: dict[str, type] = {
    template.notification_type: template
    for template in (
        OrderReceivedTemplate,
        NewOrderTemplate,
        NewOrderAdminTemplate,
        LotAcceptedTemplate,
        DeliveryStartedTemplate,
        DepotDropOffTemplate,
        DepotReceiptTemplate,
        OrderReadyTemplate,
        OrderDeliveredTemplate,
        OrderCancelledTemplate,
        LotCancelledTemplate,
        ItemCancelledTemplate,
    )
}


def get_template(notification_type: str):
    """Look up a template class by notification type string."""
    template_cls = TEMPLATE_REGISTRY.get(notification_type)
    if template_cls is None:
        raise ValueError(f"No template registered for notification type: {notification_type}")
    return template_cls
