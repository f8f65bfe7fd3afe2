"""Enumerations shared by the order aggregate, pricing and the API layer."""

from enum import Enum


class DeliveryMode(Enum):
    SUPERMARKET_DELIVERY = "supermarket_delivery"
    VENDOR_DELIVERY = "vendor_delivery"
    PICKUP = "pickup"
    VENDOR_DIRECT = "vendor_direct"


# Legacy identifiers still sent by older clients
LEGACY_DELIVERY_MODES = {
    "livraison_supermarche": DeliveryMode.SUPERMARKET_DELIVERY.value,
    "boutique": DeliveryMode.VENDOR_DELIVERY.value,
    "collect": DeliveryMode.PICKUP.value,
    "livraison_boutique": DeliveryMode.VENDOR_DIRECT.value,
}

# Modes where vendors drop their lot at the central depot
DEPOT_MODES = {DeliveryMode.SUPERMARKET_DELIVERY, DeliveryMode.PICKUP}

# Modes where a vendor ships straight to the client
DIRECT_MODES = {DeliveryMode.VENDOR_DIRECT, DeliveryMode.VENDOR_DELIVERY}


class OrderStatus(Enum):
    """Delivery status, used both at order level and per vendor lot."""

    AWAITING_VENDOR_ACCEPTANCE = "awaiting_vendor_acceptance"
    NOT_ACCEPTED = "not_accepted"
    PREPARING = "preparing"
    READY_FOR_PICKUP = "ready_for_pickup"
    IN_DELIVERY = "in_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class ItemStatus(Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


class PaymentMethod(Enum):
    CARD = "card"
    CASH = "cash"
    TRANSFER = "transfer"


class PaymentStatus(Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class FeeType(Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


class ActorRole(Enum):
    CLIENT = "client"
    VENDOR = "vendor"
    ADMIN = "admin"


# Legacy payment method identifiers
LEGACY_PAYMENT_METHODS = {
    "carte": PaymentMethod.CARD.value,
    "especes": PaymentMethod.CASH.value,
    "virement": PaymentMethod.TRANSFER.value,
}
