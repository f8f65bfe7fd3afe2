"""Tests for role-scoped cancellation and the totals recomputation it triggers."""

import pytest
from marketplace.order.errors import (
    AlreadyInTransitError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    OrderValidationError,
)
from marketplace.order.events import ItemCancelled, LotCancelled, OrderCancelled
from marketplace.order.order import Order


def _make_order(delivery_fee=None, mode="supermarket_delivery"):
    """Vendor A sells two items at 1000, vendor B one item at 500."""
    return Order.place(
        order_number="CMD1700000000000000003",
        client_id="client-1",
        client_contact={},
        delivery_mode=mode,
        delivery_address="Dakar",
        payment_method=None,
        note=None,
        requested_at=None,
        lots_data=[
            {
                "vendor_id": "vendor-a",
                "vendor_name": "Chez Awa",
                "items": [
                    {"product_id": "prod-a1", "quantity": 1, "unit_price": 1000.0, "product_name": "Bissap"},
                    {"product_id": "prod-a2", "quantity": 1, "unit_price": 1000.0, "product_name": "Gingembre"},
                ],
            },
            {
                "vendor_id": "vendor-b",
                "vendor_name": "Boutique Bintou",
                "items": [{"product_id": "prod-b1", "quantity": 1, "unit_price": 500.0, "product_name": "Thiakry"}],
            },
        ],
        delivery_fee=delivery_fee or {"fee_type": "fixed", "value": 2000.0, "amount": 2000.0},
    )


def _lot(order, vendor_id):
    return next(lot for lot in order.lots if str(lot.vendor_id) == vendor_id)


def _with_lot_b_received():
    order = _make_order()
    order.accept_lot("vendor-b")
    order.mark_depot_drop_off("vendor-b")
    order.confirm_depot_receipt("vendor-b", "admin-1")
    return order


def _assert_invariants(order):
    active = [i for i in order.items if i.status == "active"]
    assert order.base_total == sum(i.unit_price * i.quantity for i in active)
    assert order.total == order.base_total + order.delivery_fee.amount
    for lot in order.lots:
        lot_items = order.items_for(lot.vendor_id)
        assert (lot.status == "cancelled") == all(i.status == "cancelled" for i in lot_items)
    assert (order.status == "cancelled") == all(lot.status == "cancelled" for lot in order.lots)


class TestVendorLotCancellation:
    def test_cancelling_lot_a_keeps_fixed_fee(self):
        order = _make_order()
        order.cancel("staff-a1", "vendor", "out of stock", vendor_id="vendor-a")

        assert order.base_total == 500.0
        assert order.delivery_fee.amount == 2000.0
        assert order.total == 2500.0
        assert _lot(order, "vendor-a").status == "cancelled"
        assert all(i.status == "cancelled" for i in order.items_for("vendor-a"))
        assert order.status != "cancelled"
        _assert_invariants(order)

    def test_note_records_role_and_reason(self):
        order = _make_order()
        order.cancel_lot("vendor-a", "staff-a1", "out of stock")
        assert order.notes == "Cancellation (vendor): out of stock"

    def test_last_lot_cascades_to_order(self):
        order = _make_order()
        order.cancel_lot("vendor-a", "staff-a1", "out of stock")
        order.cancel_lot("vendor-b", "staff-b1", "closed")
        assert order.status == "cancelled"
        assert order.base_total == 0
        assert order.delivery_fee.amount == 0
        assert order.total == 0
        _assert_invariants(order)

    def test_remaining_accepted_lot_moves_order_to_preparing(self):
        order = _make_order()
        order.accept_lot("vendor-b")
        order.cancel_lot("vendor-a", "staff-a1", "out of stock")
        assert order.status == "preparing"

    def test_already_cancelled_lot_is_a_no_op(self):
        order = _make_order()
        order.cancel_lot("vendor-a", "staff-a1", "out of stock")
        version = order.version
        events = len(order._events)

        assert order.cancel_lot("vendor-a", "staff-a1", "again") is None
        assert order.version == version
        assert len(order._events) == events
        assert order.notes == "Cancellation (vendor): out of stock"

    def test_vendor_without_lot_is_forbidden(self):
        order = _make_order()
        with pytest.raises(ForbiddenError):
            order.cancel("staff-z", "vendor", "nope", vendor_id="vendor-z")

    def test_received_lot_cannot_be_cancelled(self):
        order = _with_lot_b_received()
        with pytest.raises(AlreadyInTransitError):
            order.cancel_lot("vendor-b", "staff-b1", "too late")

    def test_other_lot_can_still_be_cancelled(self):
        order = _with_lot_b_received()
        order.cancel_lot("vendor-a", "staff-a1", "out of stock")
        assert order.total == 2500.0

    def test_delivered_order_cannot_be_cancelled_by_vendor(self):
        order = _make_order()
        order.confirm_receipt("client-1", "client")
        with pytest.raises(InvalidTransitionError):
            order.cancel_lot("vendor-a", "staff-a1", "late")

    def test_raises_event(self):
        order = _make_order()
        order.cancel_lot("vendor-a", "staff-a1", "out of stock")
        event = order._events[-1]
        assert isinstance(event, LotCancelled)
        assert event.vendor_id == "vendor-a"
        assert event.new_base_total == 500.0
        assert event.new_total == 2500.0
        assert event.order_status == "awaiting_vendor_acceptance"


class TestClientCancellation:
    def test_cancels_everything(self):
        order = _make_order()
        order.cancel("client-1", "client", "changed my mind")
        assert order.status == "cancelled"
        assert all(lot.status == "cancelled" for lot in order.lots)
        assert all(item.status == "cancelled" for item in order.items)
        assert order.total == 0
        assert order.notes == "Cancellation (client): changed my mind"
        _assert_invariants(order)

    def test_rejected_once_a_lot_is_received(self):
        order = _with_lot_b_received()
        status, version, total = order.status, order.version, order.total

        with pytest.raises(AlreadyInTransitError):
            order.cancel("client-1", "client", "changed my mind")

        assert order.status == status
        assert order.version == version
        assert order.total == total
        assert all(item.status == "active" for item in order.items)

    def test_only_owner_can_cancel(self):
        order = _make_order()
        with pytest.raises(ForbiddenError):
            order.cancel("client-2", "client", "not mine")

    def test_delivered_order_cannot_be_cancelled(self):
        order = _make_order()
        order.confirm_receipt("client-1", "client")
        with pytest.raises(InvalidTransitionError):
            order.cancel("client-1", "client", "too late")

    def test_reason_is_required(self):
        order = _make_order()
        with pytest.raises(OrderValidationError):
            order.cancel("client-1", "client", "   ")

    def test_raises_event(self):
        order = _make_order()
        order.cancel("client-1", "client", "changed my mind")
        event = order._events[-1]
        assert isinstance(event, OrderCancelled)
        assert event.actor_role == "client"
        assert event.cancelled_by == "client-1"
        assert event.reason == "changed my mind"


class TestAdminCancellation:
    def test_unconditional_even_after_depot_receipt(self):
        order = _with_lot_b_received()
        order.cancel("admin-1", "admin", "fraud suspicion")
        assert order.status == "cancelled"
        assert all(lot.status == "cancelled" for lot in order.lots)
        assert all(item.status == "cancelled" for item in order.items)
        assert order.total == 0
        _assert_invariants(order)

    def test_unconditional_after_delivery(self):
        order = _make_order()
        order.confirm_receipt("client-1", "client")
        order.cancel("admin-1", "admin", "dispute")
        assert order.status == "cancelled"
        assert all(lot.status == "cancelled" for lot in order.lots)

    def test_note(self):
        order = _make_order()
        order.cancel("admin-1", "admin", "fraud suspicion")
        assert order.notes.endswith("Cancellation (admin): fraud suspicion")


class TestItemCancellation:
    def test_client_cancels_one_item(self):
        order = _make_order()
        order.cancel_item("vendor-a", "prod-a1", "client-1", "client", "too expensive")

        assert order.base_total == 1500.0
        assert order.total == 3500.0
        assert _lot(order, "vendor-a").status == "awaiting_vendor_acceptance"
        assert order.notes == "Item cancellation [Bissap] by client: too expensive"
        _assert_invariants(order)

    def test_last_item_of_lot_cascades_to_lot(self):
        order = _make_order()
        order.cancel_item("vendor-a", "prod-a1", "staff-a1", "vendor", "out of stock")
        order.cancel_item("vendor-a", "prod-a2", "staff-a1", "vendor", "out of stock")
        assert _lot(order, "vendor-a").status == "cancelled"
        assert order.status != "cancelled"
        _assert_invariants(order)

    def test_last_item_overall_cascades_to_order(self):
        order = _make_order()
        order.cancel_item("vendor-a", "prod-a1", "client-1", "client", "x")
        order.cancel_item("vendor-a", "prod-a2", "client-1", "client", "x")
        order.cancel_item("vendor-b", "prod-b1", "client-1", "client", "x")
        assert order.status == "cancelled"
        assert order.total == 0
        _assert_invariants(order)

    def test_is_idempotent(self):
        order = _make_order()
        order.cancel_item("vendor-a", "prod-a1", "client-1", "client", "x")
        base_total, version = order.base_total, order.version

        assert order.cancel_item("vendor-a", "prod-a1", "client-1", "client", "x") is None
        assert order.base_total == base_total
        assert order.version == version

    def test_decreases_base_total_by_item_subtotal(self):
        order = _make_order()
        before = order.base_total
        order.cancel_item("vendor-b", "prod-b1", "client-1", "client", "x")
        assert before - order.base_total == 500.0

    def test_percentage_fee_is_recomputed(self):
        order = _make_order(delivery_fee={"fee_type": "percentage", "value": 10.0, "amount": 250.0})
        order.cancel_item("vendor-a", "prod-a1", "client-1", "client", "x")
        assert order.delivery_fee.amount == 150.0
        assert order.total == 1650.0

    def test_admin_is_forbidden(self):
        order = _make_order()
        with pytest.raises(ForbiddenError):
            order.cancel_item("vendor-a", "prod-a1", "admin-1", "admin", "x")

    def test_other_client_is_forbidden(self):
        order = _make_order()
        with pytest.raises(ForbiddenError):
            order.cancel_item("vendor-a", "prod-a1", "client-2", "client", "x")

    def test_vendor_without_lot_is_forbidden(self):
        order = _make_order()
        with pytest.raises(ForbiddenError):
            order.cancel_item("vendor-z", "prod-a1", "staff-z", "vendor", "x")

    def test_client_naming_absent_vendor_is_not_found(self):
        order = _make_order()
        with pytest.raises(NotFoundError):
            order.cancel_item("vendor-z", "prod-a1", "client-1", "client", "x")

    def test_product_outside_the_lot_is_not_found(self):
        order = _make_order()
        with pytest.raises(NotFoundError):
            order.cancel_item("vendor-b", "prod-a1", "staff-b1", "vendor", "x")

    def test_received_lot_is_locked(self):
        order = _with_lot_b_received()
        with pytest.raises(AlreadyInTransitError):
            order.cancel_item("vendor-b", "prod-b1", "client-1", "client", "x")

    def test_raises_event(self):
        order = _make_order()
        order.cancel_item("vendor-a", "prod-a2", "staff-a1", "vendor", "out of stock")
        event = order._events[-1]
        assert isinstance(event, ItemCancelled)
        assert event.product_id == "prod-a2"
        assert event.product_name == "Gingembre"
        assert event.actor_role == "vendor"
        assert event.lot_status == "awaiting_vendor_acceptance"
        assert event.new_total == 3500.0


class TestLockedAfterDepotReceipt:
    @pytest.mark.parametrize(
        "cancel",
        [
            lambda o: o.cancel("client-1", "client", "x"),
            lambda o: o.cancel("staff-b1", "vendor", "x", vendor_id="vendor-b"),
            lambda o: o.cancel_item("vendor-b", "prod-b1", "client-1", "client", "x"),
            lambda o: o.cancel_item("vendor-b", "prod-b1", "staff-b1", "vendor", "x"),
        ],
    )
    def test_every_non_admin_cancellation_fails(self, cancel):
        order = _with_lot_b_received()
        with pytest.raises(AlreadyInTransitError):
            cancel(order)
