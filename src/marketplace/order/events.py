"""Order domain events: immutable facts about order state changes.

Events are raised by the Order aggregate and dispatched after the unit of
work commits. They carry enough data for the notification dispatcher to
address every counter-party without reloading the order.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    """A client checked out their cart into a new multi-vendor order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    client_id = Identifier(required=True)
    vendor_ids = Text(required=True)  # JSON list of vendor ids
    delivery_mode = String(required=True)
    base_total = Float(required=True)
    delivery_fee = Float(required=True)
    total = Float(required=True)
    placed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class LotAccepted:
    """A vendor accepted its lot of the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    client_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    vendor_name = String()
    order_status = String(required=True)
    accepted_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class DirectDeliveryStarted:
    """A vendor left to deliver its lot directly to the client."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    client_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    vendor_name = String()
    started_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class DepotDropOffMarked:
    """A vendor reported dropping its lot at the depot."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    vendor_id = Identifier(required=True)
    vendor_name = String()
    dropped_off_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class DepotReceiptConfirmed:
    """An admin confirmed a lot arrived at the depot."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    client_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    vendor_name = String()
    confirmed_by = Identifier(required=True)
    delivery_mode = String(required=True)
    all_lots_received = Boolean(default=False)
    order_status = String(required=True)
    confirmed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderDelivered:
    """The order was confirmed as delivered or collected."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    client_id = Identifier(required=True)
    validated_by = Identifier(required=True)
    validator_role = String(required=True)
    paid_amount = Float(required=True)
    delivered_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderCancelled:
    """The whole order was cancelled by its client or an admin."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    client_id = Identifier(required=True)
    vendor_ids = Text(required=True)  # JSON list of vendor ids
    cancelled_by = Identifier(required=True)
    actor_role = String(required=True)
    reason = String(required=True)
    cancelled_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class LotCancelled:
    """A vendor withdrew its whole lot from the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    client_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    vendor_name = String()
    cancelled_by = Identifier(required=True)
    reason = String(required=True)
    order_status = String(required=True)
    new_base_total = Float(required=True)
    new_total = Float(required=True)
    cancelled_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class ItemCancelled:
    """A single item was withdrawn by the client or its vendor."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    client_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    product_name = String()
    cancelled_by = Identifier(required=True)
    actor_role = String(required=True)
    reason = String(required=True)
    lot_status = String(required=True)
    order_status = String(required=True)
    new_base_total = Float(required=True)
    new_total = Float(required=True)
    cancelled_at = DateTime(required=True)
