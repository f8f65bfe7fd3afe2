"""Order aggregate (CQRS): the core of the marketplace domain.

One Order is created per checkout and spans every vendor present in the
cart. Each vendor's share is a VendorLot that moves through its own
acceptance and hand-off steps; the order-level status is derived from the
lots. Items carry their vendor id, so a lot's items are the order items
sharing its vendor.

Lot state machine:
    AWAITING_VENDOR_ACCEPTANCE → PREPARING
    PREPARING → IN_DELIVERY                      (direct modes)
    PREPARING → depot drop-off → depot receipt   (depot modes)
    any non-terminal state → DELIVERED           (final receipt)
    any state → CANCELLED                        (until depot receipt is confirmed)

Monetary fields are never edited directly: ``base_total``, ``delivery_fee``
and ``total`` are recomputed from the active items after every cancellation.
Every mutation bumps ``version`` for optimistic concurrency control.
"""

import json
from datetime import UTC, datetime

from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from marketplace.domain import marketplace
from marketplace.order.enums import (
    DEPOT_MODES,
    DIRECT_MODES,
    ActorRole,
    DeliveryMode,
    FeeType,
    ItemStatus,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from marketplace.order.errors import (
    AlreadyInTransitError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    OrderValidationError,
)
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
from marketplace.order.pricing import recompute_totals

WAREHOUSE_PICKUP_ADDRESS = "Warehouse pickup"

_TERMINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Order")
class ClientContact:
    """Client contact details copied at checkout, never re-read afterwards."""

    last_name = String(max_length=100)
    first_name = String(max_length=100)
    email = String(max_length=255)
    phone = String(max_length=50)


@marketplace.value_object(part_of="Order")
class DeliveryFee:
    """The delivery fee and the rule that produced it."""

    fee_type = String(choices=FeeType, default=FeeType.FIXED.value)
    value = Float(default=0.0)
    amount = Float(default=0.0)


@marketplace.value_object(part_of="Order")
class PaymentInfo:
    method = String(choices=PaymentMethod, default=PaymentMethod.CASH.value)
    status = String(choices=PaymentStatus, default=PaymentStatus.UNPAID.value)
    paid_amount = Float(default=0.0)
    transaction_id = String(max_length=255)
    paid_at = DateTime()


@marketplace.value_object(part_of="Order")
class DepotHandoff:
    """Hand-off of a lot at the central depot.

    ``done`` is set by the vendor's drop-off or by the admin's receipt;
    the lot only counts as received once an admin confirmed it.
    """

    done = Boolean(default=False)
    dropped_off_at = DateTime()
    confirmed_by = Identifier()
    confirmed_at = DateTime()


@marketplace.value_object(part_of="Order")
class ReceiptValidation:
    """Who confirmed the final collection or delivery, and when."""

    validated = Boolean(default=False)
    validated_by = Identifier()
    completed_at = DateTime()
    validated_at = DateTime()


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order")
class VendorLot:
    """The part of an order belonging to one vendor."""

    vendor_id = Identifier(required=True)
    vendor_name = String(max_length=255)
    accepted = Boolean(default=False)
    accepted_at = DateTime()
    depot = ValueObject(DepotHandoff)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.AWAITING_VENDOR_ACCEPTANCE.value,
    )

    @property
    def is_cancelled(self) -> bool:
        return self.status == OrderStatus.CANCELLED.value

    @property
    def depot_confirmed(self) -> bool:
        return self.depot is not None and self.depot.confirmed_at is not None


@marketplace.entity(part_of="Order")
class OrderItem:
    """A product line, priced and named as it was at checkout."""

    vendor_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variation_id = Identifier()
    price_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    product_name = String(max_length=255)
    product_image = String(max_length=500)
    promotion_ids = Text()  # JSON list of coupon/promotion ids
    status = String(choices=ItemStatus, default=ItemStatus.ACTIVE.value)

    @property
    def subtotal(self) -> float:
        return self.unit_price * self.quantity

    @property
    def is_active(self) -> bool:
        return self.status == ItemStatus.ACTIVE.value


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    order_number = String(required=True, max_length=50, unique=True)
    client_id = Identifier(required=True)
    client_contact = ValueObject(ClientContact)
    delivery_mode = String(required=True, choices=DeliveryMode)
    delivery_address = String(max_length=500)
    requested_at = DateTime()
    payment = ValueObject(PaymentInfo)
    base_total = Float(default=0.0)
    delivery_fee = ValueObject(DeliveryFee)
    total = Float(default=0.0)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.AWAITING_VENDOR_ACCEPTANCE.value,
    )
    lots = HasMany(VendorLot)
    items = HasMany(OrderItem)
    notes = Text()
    collection_validation = ValueObject(ReceiptValidation)
    delivery_validation = ValueObject(ReceiptValidation)
    version = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        order_number: str,
        client_id: str,
        client_contact: dict,
        delivery_mode: str,
        delivery_address: str | None,
        payment_method: str | None,
        note: str | None,
        requested_at: datetime | None,
        lots_data: list[dict],
        delivery_fee: dict,
        now: datetime | None = None,
    ):
        """Create a new order from a priced cart snapshot.

        Args:
            lots_data: One dict per vendor with vendor_id, vendor_name and
                items (dicts with product_id, variation_id, price_id,
                quantity, unit_price, product_name, product_image).
            delivery_fee: dict with fee_type, value, amount.
        """
        now = now or datetime.now(UTC)
        if DeliveryMode(delivery_mode) == DeliveryMode.PICKUP:
            delivery_address = WAREHOUSE_PICKUP_ADDRESS

        order = cls(
            order_number=order_number,
            client_id=client_id,
            client_contact=ClientContact(**client_contact),
            delivery_mode=delivery_mode,
            delivery_address=delivery_address,
            requested_at=requested_at,
            payment=PaymentInfo(method=payment_method or PaymentMethod.CASH.value),
            delivery_fee=DeliveryFee(**delivery_fee),
            status=OrderStatus.AWAITING_VENDOR_ACCEPTANCE.value,
            notes=note or "",
            version=1,
            created_at=now,
            updated_at=now,
        )
        for lot_data in lots_data:
            order.add_lots(
                VendorLot(
                    vendor_id=lot_data["vendor_id"],
                    vendor_name=lot_data.get("vendor_name"),
                    depot=DepotHandoff(),
                    status=OrderStatus.AWAITING_VENDOR_ACCEPTANCE.value,
                )
            )
            for item_data in lot_data["items"]:
                order.add_items(OrderItem(vendor_id=lot_data["vendor_id"], **item_data))

        order.base_total = sum(item.subtotal for item in order.items)
        order.total = order.base_total + order.delivery_fee.amount

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order_number,
                client_id=str(client_id),
                vendor_ids=json.dumps([str(lot.vendor_id) for lot in order.lots]),
                delivery_mode=delivery_mode,
                base_total=order.base_total,
                delivery_fee=order.delivery_fee.amount,
                total=order.total,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    def _lot_for(self, vendor_id, missing=ForbiddenError) -> VendorLot:
        lot = next((lot for lot in self.lots if str(lot.vendor_id) == str(vendor_id)), None)
        if lot is None:
            raise missing(f"Vendor {vendor_id} has no lot in order {self.order_number}")
        return lot

    def items_for(self, vendor_id) -> list[OrderItem]:
        return [item for item in self.items if str(item.vendor_id) == str(vendor_id)]

    def has_vendor(self, vendor_id) -> bool:
        return any(str(lot.vendor_id) == str(vendor_id) for lot in self.lots)

    def _active_lots(self) -> list[VendorLot]:
        return [lot for lot in self.lots if not lot.is_cancelled]

    def _assert_mode(self, allowed: set, action: str) -> None:
        if DeliveryMode(self.delivery_mode) not in allowed:
            raise InvalidTransitionError(f"Cannot {action} on a {self.delivery_mode} order")

    def _assert_not_terminal(self, action: str) -> None:
        if OrderStatus(self.status) in _TERMINAL_STATUSES:
            raise InvalidTransitionError(f"Cannot {action}: order {self.order_number} is {self.status}")

    def _touch(self, now: datetime) -> None:
        self.updated_at = now
        self.version = (self.version or 0) + 1

    def _append_note(self, line: str) -> None:
        self.notes = f"{self.notes}\n{line}" if self.notes else line

    def _recompute_totals(self) -> None:
        fee = self.delivery_fee.to_dict() if self.delivery_fee else {}
        base_total, fee, total = recompute_totals(self.items, fee)
        self.base_total = base_total
        self.delivery_fee = DeliveryFee(**fee)
        self.total = total

    def _all_lots_received(self) -> bool:
        active = self._active_lots()
        return bool(active) and all(lot.depot_confirmed for lot in active)

    def _advance_order_status(self) -> None:
        """Derive the order-level status from the lots still in play."""
        current = OrderStatus(self.status)
        active = self._active_lots()
        if current in _TERMINAL_STATUSES or not active:
            return

        mode = DeliveryMode(self.delivery_mode)
        if mode in DEPOT_MODES and self._all_lots_received():
            if mode == DeliveryMode.PICKUP:
                self.status = OrderStatus.READY_FOR_PICKUP.value
            else:
                self.status = OrderStatus.IN_DELIVERY.value
        elif current == OrderStatus.AWAITING_VENDOR_ACCEPTANCE and all(lot.accepted for lot in active):
            self.status = OrderStatus.PREPARING.value

    # -------------------------------------------------------------------
    # Acceptance and fulfillment
    # -------------------------------------------------------------------
    def accept_lot(self, vendor_id: str) -> LotAccepted:
        """The vendor accepts its lot and starts preparing it."""
        lot = self._lot_for(vendor_id)
        if lot.status != OrderStatus.AWAITING_VENDOR_ACCEPTANCE.value:
            raise InvalidTransitionError(f"Lot of {lot.vendor_name or vendor_id} is {lot.status} and cannot be accepted")

        now = datetime.now(UTC)
        lot.accepted = True
        lot.accepted_at = now
        lot.status = OrderStatus.PREPARING.value
        self._advance_order_status()
        self._touch(now)

        event = LotAccepted(
            order_id=str(self.id),
            order_number=self.order_number,
            client_id=str(self.client_id),
            vendor_id=str(lot.vendor_id),
            vendor_name=lot.vendor_name or "",
            order_status=self.status,
            accepted_at=now,
        )
        self.raise_(event)
        return event

    def start_direct_delivery(self, vendor_id: str) -> DirectDeliveryStarted:
        """The vendor leaves to deliver its lot straight to the client."""
        self._assert_mode(DIRECT_MODES, "start a direct delivery")
        lot = self._lot_for(vendor_id)
        if lot.status != OrderStatus.PREPARING.value:
            raise InvalidTransitionError(
                f"Lot of {lot.vendor_name or vendor_id} is {lot.status}; only a lot in preparation can leave"
            )

        now = datetime.now(UTC)
        lot.status = OrderStatus.IN_DELIVERY.value
        self.status = OrderStatus.IN_DELIVERY.value
        self._touch(now)

        event = DirectDeliveryStarted(
            order_id=str(self.id),
            order_number=self.order_number,
            client_id=str(self.client_id),
            vendor_id=str(lot.vendor_id),
            vendor_name=lot.vendor_name or "",
            started_at=now,
        )
        self.raise_(event)
        return event

    def mark_depot_drop_off(self, vendor_id: str) -> DepotDropOffMarked:
        """The vendor reports it dropped its lot at the depot."""
        self._assert_mode(DEPOT_MODES, "drop a lot at the depot")
        lot = self._lot_for(vendor_id)
        if lot.status != OrderStatus.PREPARING.value:
            raise InvalidTransitionError(
                f"Lot of {lot.vendor_name or vendor_id} is {lot.status}; only a lot in preparation can be dropped off"
            )
        if lot.depot is not None and lot.depot.done:
            raise InvalidTransitionError(f"Lot of {lot.vendor_name or vendor_id} was already dropped off")

        now = datetime.now(UTC)
        lot.depot = DepotHandoff(done=True, dropped_off_at=now)
        self._touch(now)

        event = DepotDropOffMarked(
            order_id=str(self.id),
            order_number=self.order_number,
            vendor_id=str(lot.vendor_id),
            vendor_name=lot.vendor_name or "",
            dropped_off_at=now,
        )
        self.raise_(event)
        return event

    def confirm_depot_receipt(self, vendor_id: str, admin_id: str) -> DepotReceiptConfirmed:
        """An admin confirms the vendor's lot arrived at the depot.

        Once every lot still in play is received, the order becomes ready for
        pickup (pickup mode) or leaves for delivery (supermarket delivery).
        """
        self._assert_mode(DEPOT_MODES, "confirm a depot receipt")
        lot = self._lot_for(vendor_id, missing=NotFoundError)
        if lot.is_cancelled:
            raise InvalidTransitionError(f"Lot of {lot.vendor_name or vendor_id} is cancelled")
        if lot.depot_confirmed:
            raise InvalidTransitionError(f"Lot of {lot.vendor_name or vendor_id} was already received")

        now = datetime.now(UTC)
        lot.depot = DepotHandoff(
            done=True,
            dropped_off_at=lot.depot.dropped_off_at if lot.depot else None,
            confirmed_by=admin_id,
            confirmed_at=now,
        )
        all_received = self._all_lots_received()
        self._advance_order_status()
        self._touch(now)

        event = DepotReceiptConfirmed(
            order_id=str(self.id),
            order_number=self.order_number,
            client_id=str(self.client_id),
            vendor_id=str(lot.vendor_id),
            vendor_name=lot.vendor_name or "",
            confirmed_by=str(admin_id),
            delivery_mode=self.delivery_mode,
            all_lots_received=all_received,
            order_status=self.status,
            confirmed_at=now,
        )
        self.raise_(event)
        return event

    def confirm_receipt(self, actor_id: str, actor_role: str, vendor_id: str | None = None) -> OrderDelivered:
        """Confirm the order was collected or delivered, and record payment.

        The owning client and admins may always confirm; for direct modes the
        delivering vendor may confirm too.
        """
        role = ActorRole(actor_role)
        if role == ActorRole.CLIENT and str(self.client_id) != str(actor_id):
            raise ForbiddenError("Only the client who placed the order can confirm its receipt")
        if role == ActorRole.VENDOR:
            if DeliveryMode(self.delivery_mode) not in DIRECT_MODES:
                raise ForbiddenError("Vendors can only confirm receipt of their own direct deliveries")
            if self._lot_for(vendor_id).is_cancelled:
                raise ForbiddenError("A vendor whose lot was cancelled cannot confirm the delivery")
        self._assert_not_terminal("confirm receipt")

        now = datetime.now(UTC)
        validation = ReceiptValidation(
            validated=True,
            validated_by=actor_id,
            completed_at=now,
            validated_at=now,
        )
        if DeliveryMode(self.delivery_mode) == DeliveryMode.PICKUP:
            self.collection_validation = validation
        else:
            self.delivery_validation = validation

        self.status = OrderStatus.DELIVERED.value
        for lot in self._active_lots():
            lot.status = OrderStatus.DELIVERED.value

        self.payment = PaymentInfo(
            method=self.payment.method if self.payment else PaymentMethod.CASH.value,
            status=PaymentStatus.PAID.value,
            paid_amount=self.total,
            transaction_id=self.payment.transaction_id if self.payment else None,
            paid_at=now,
        )
        self._touch(now)

        event = OrderDelivered(
            order_id=str(self.id),
            order_number=self.order_number,
            client_id=str(self.client_id),
            validated_by=str(actor_id),
            validator_role=role.value,
            paid_amount=self.total,
            delivered_at=now,
        )
        self.raise_(event)
        return event

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, actor_id: str, actor_role: str, reason: str, vendor_id: str | None = None):
        """Cancel at the granularity the actor's role allows.

        Admins cancel the whole order unconditionally. Clients cancel their
        whole order while no lot has reached the depot. Vendors cancel only
        their own lot.
        """
        role = ActorRole(actor_role)
        _require_reason(reason)

        if role == ActorRole.VENDOR:
            return self.cancel_lot(vendor_id, actor_id, reason)

        if role == ActorRole.CLIENT:
            if str(self.client_id) != str(actor_id):
                raise ForbiddenError("Only the client who placed the order can cancel it")
            self._assert_not_terminal("cancel")
            if any(lot.depot_confirmed for lot in self.lots):
                raise AlreadyInTransitError(
                    "Some lots were already received at the depot and can no longer be cancelled"
                )

        now = datetime.now(UTC)
        for lot in self.lots:
            lot.status = OrderStatus.CANCELLED.value
        for item in self.items:
            item.status = ItemStatus.CANCELLED.value
        self.status = OrderStatus.CANCELLED.value
        self._recompute_totals()
        self._append_note(f"Cancellation ({role.value}): {reason}")
        self._touch(now)

        event = OrderCancelled(
            order_id=str(self.id),
            order_number=self.order_number,
            client_id=str(self.client_id),
            vendor_ids=json.dumps([str(lot.vendor_id) for lot in self.lots]),
            cancelled_by=str(actor_id),
            actor_role=role.value,
            reason=reason,
            cancelled_at=now,
        )
        self.raise_(event)
        return event

    def cancel_lot(self, vendor_id: str, actor_id: str, reason: str) -> LotCancelled | None:
        """The vendor withdraws its whole lot. No-op when already cancelled."""
        _require_reason(reason)
        lot = self._lot_for(vendor_id)
        if lot.is_cancelled:
            return None
        self._assert_not_terminal("cancel a lot")
        if lot.depot_confirmed:
            raise AlreadyInTransitError(
                f"Lot of {lot.vendor_name or vendor_id} was already received at the depot and cannot be cancelled"
            )

        now = datetime.now(UTC)
        lot.status = OrderStatus.CANCELLED.value
        for item in self.items_for(vendor_id):
            item.status = ItemStatus.CANCELLED.value
        self._recompute_totals()
        if not self._active_lots():
            self.status = OrderStatus.CANCELLED.value
        else:
            self._advance_order_status()
        self._append_note(f"Cancellation ({ActorRole.VENDOR.value}): {reason}")
        self._touch(now)

        event = LotCancelled(
            order_id=str(self.id),
            order_number=self.order_number,
            client_id=str(self.client_id),
            vendor_id=str(lot.vendor_id),
            vendor_name=lot.vendor_name or "",
            cancelled_by=str(actor_id),
            reason=reason,
            order_status=self.status,
            new_base_total=self.base_total,
            new_total=self.total,
            cancelled_at=now,
        )
        self.raise_(event)
        return event

    def cancel_item(
        self,
        vendor_id: str,
        product_id: str,
        actor_id: str,
        actor_role: str,
        reason: str,
    ) -> ItemCancelled | None:
        """Withdraw one product line from a vendor's lot.

        Cancelling an item that is already cancelled changes nothing.
        """
        role = ActorRole(actor_role)
        if role == ActorRole.ADMIN:
            raise ForbiddenError("Admins can only cancel whole orders, not individual items")
        if role == ActorRole.CLIENT and str(self.client_id) != str(actor_id):
            raise ForbiddenError("Only the client who placed the order can cancel its items")
        _require_reason(reason)

        lot = self._lot_for(vendor_id, missing=ForbiddenError if role == ActorRole.VENDOR else NotFoundError)
        if lot.depot_confirmed:
            raise AlreadyInTransitError(
                f"Lot of {lot.vendor_name or vendor_id} was already received at the depot and cannot be modified"
            )

        matching = [item for item in self.items_for(vendor_id) if str(item.product_id) == str(product_id)]
        if not matching:
            raise NotFoundError(f"Product {product_id} is not part of this lot")
        item = next((item for item in matching if item.is_active), None)
        if item is None:
            return None
        self._assert_not_terminal("cancel an item")

        now = datetime.now(UTC)
        item.status = ItemStatus.CANCELLED.value
        self._recompute_totals()
        if not any(i.is_active for i in self.items_for(vendor_id)):
            lot.status = OrderStatus.CANCELLED.value
        if not any(i.is_active for i in self.items):
            self.status = OrderStatus.CANCELLED.value
        else:
            self._advance_order_status()
        self._append_note(f"Item cancellation [{item.product_name or product_id}] by {role.value}: {reason}")
        self._touch(now)

        event = ItemCancelled(
            order_id=str(self.id),
            order_number=self.order_number,
            client_id=str(self.client_id),
            vendor_id=str(lot.vendor_id),
            item_id=str(item.id),
            product_id=str(item.product_id),
            product_name=item.product_name or "",
            cancelled_by=str(actor_id),
            actor_role=role.value,
            reason=reason,
            lot_status=lot.status,
            order_status=self.status,
            new_base_total=self.base_total,
            new_total=self.total,
            cancelled_at=now,
        )
        self.raise_(event)
        return event


def _require_reason(reason: str | None) -> None:
    if not reason or not reason.strip():
        raise OrderValidationError("A cancellation reason is required")
