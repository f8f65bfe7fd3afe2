"""Application tests for lot transitions via domain.process()."""

from datetime import UTC, datetime, timedelta

import pytest
from marketplace.cart.management import AddToCart
from marketplace.order.acceptance import AcceptLot
from marketplace.order.creation import PlaceOrder
from marketplace.order.delivery import StartDirectDelivery
from marketplace.order.depot import ConfirmDepotReceipt, MarkDepotDropOff
from marketplace.order.errors import ForbiddenError, InvalidTransitionError, NotFoundError
from marketplace.order.order import Order
from marketplace.order.receipt import ConfirmReceipt
from protean import current_domain

TOMORROW = datetime.now(UTC) + timedelta(days=1)


def _place_order(mode="supermarket_delivery", vendors=("vendor-a", "vendor-b")):
    for vendor_id in vendors:
        current_domain.process(
            AddToCart(
                client_id="client-1",
                vendor_id=vendor_id,
                product_id=f"prod-{vendor_id}",
                quantity=1,
                unit_price=1000.0,
            ),
            asynchronous=False,
        )
    return current_domain.process(
        PlaceOrder(client_id="client-1", delivery_mode=mode, requested_at=TOMORROW),
        asynchronous=False,
    )


def _accept(order_id, vendor_id):
    current_domain.process(
        AcceptLot(order_id=order_id, vendor_id=vendor_id, actor_id=f"staff-{vendor_id}"),
        asynchronous=False,
    )


def _through_depot(order_id, vendor_id):
    _accept(order_id, vendor_id)
    current_domain.process(
        MarkDepotDropOff(order_id=order_id, vendor_id=vendor_id, actor_id=f"staff-{vendor_id}"),
        asynchronous=False,
    )
    current_domain.process(
        ConfirmDepotReceipt(order_id=order_id, vendor_id=vendor_id, admin_id="admin-1"),
        asynchronous=False,
    )


def _get(order_id):
    return current_domain.repository_for(Order).get(order_id)


class TestAcceptLotCommand:
    def test_accepting_every_lot_prepares_the_order(self, directory):
        order_id = _place_order()
        _accept(order_id, "vendor-a")
        assert _get(order_id).status == "awaiting_vendor_acceptance"
        _accept(order_id, "vendor-b")
        assert _get(order_id).status == "preparing"

    def test_unknown_order(self, directory):
        with pytest.raises(NotFoundError):
            _accept("missing-order", "vendor-a")

    def test_foreign_vendor(self, directory):
        order_id = _place_order()
        with pytest.raises(ForbiddenError):
            _accept(order_id, "vendor-z")

    def test_client_is_told_about_acceptance(self, directory, notifier):
        order_id = _place_order()
        notifier.reset()
        _accept(order_id, "vendor-a")
        assert [n["notification_type"] for n in notifier.sent_to("client-1")] == ["lot_accepted"]


class TestDepotFlow:
    def test_supermarket_order_leaves_once_all_lots_are_received(self, directory):
        order_id = _place_order()
        _through_depot(order_id, "vendor-a")
        assert _get(order_id).status == "awaiting_vendor_acceptance"
        _through_depot(order_id, "vendor-b")
        assert _get(order_id).status == "in_delivery"

    def test_pickup_order_becomes_ready(self, directory, notifier):
        order_id = _place_order(mode="pickup")
        _through_depot(order_id, "vendor-a")
        _through_depot(order_id, "vendor-b")
        assert _get(order_id).status == "ready_for_pickup"
        assert "order_ready" in [n["notification_type"] for n in notifier.sent_to("client-1")]

    def test_drop_off_alerts_admins(self, directory, notifier):
        order_id = _place_order()
        _accept(order_id, "vendor-a")
        notifier.reset()
        current_domain.process(
            MarkDepotDropOff(order_id=order_id, vendor_id="vendor-a", actor_id="staff-a1"),
            asynchronous=False,
        )
        assert [n["notification_type"] for n in notifier.sent_to("admin-1")] == ["depot_drop_off"]

    def test_receipt_is_reported_to_the_vendor_staff(self, directory, notifier):
        order_id = _place_order()
        notifier.reset()
        _through_depot(order_id, "vendor-a")
        assert "depot_receipt" in [n["notification_type"] for n in notifier.sent_to("staff-a1")]
        assert "depot_receipt" in [n["notification_type"] for n in notifier.sent_to("staff-a2")]
        assert notifier.sent_to("staff-b1") == []

    def test_admin_naming_absent_vendor(self, directory):
        order_id = _place_order()
        with pytest.raises(NotFoundError):
            current_domain.process(
                ConfirmDepotReceipt(order_id=order_id, vendor_id="vendor-z", admin_id="admin-1"),
                asynchronous=False,
            )

    def test_admin_receives_a_lot_the_vendor_never_accepted(self, directory):
        order_id = _place_order(mode="pickup")
        _through_depot(order_id, "vendor-a")
        current_domain.process(
            ConfirmDepotReceipt(order_id=order_id, vendor_id="vendor-b", admin_id="admin-1"),
            asynchronous=False,
        )

        order = _get(order_id)
        lot = next(lot for lot in order.lots if lot.vendor_id == "vendor-b")
        assert lot.depot.confirmed_by == "admin-1"
        assert order.status == "ready_for_pickup"


class TestDirectDeliveryFlow:
    def test_start_and_confirm(self, directory):
        order_id = _place_order(mode="vendor_direct", vendors=("vendor-a",))
        _accept(order_id, "vendor-a")
        current_domain.process(
            StartDirectDelivery(order_id=order_id, vendor_id="vendor-a", actor_id="staff-a1"),
            asynchronous=False,
        )
        assert _get(order_id).status == "in_delivery"

        current_domain.process(
            ConfirmReceipt(order_id=order_id, actor_id="client-1", actor_role="client"),
            asynchronous=False,
        )
        order = _get(order_id)
        assert order.status == "delivered"
        assert order.payment.status == "paid"
        assert order.payment.paid_amount == order.total

    def test_direct_delivery_refused_for_depot_order(self, directory):
        order_id = _place_order()
        _accept(order_id, "vendor-a")
        with pytest.raises(InvalidTransitionError):
            current_domain.process(
                StartDirectDelivery(order_id=order_id, vendor_id="vendor-a", actor_id="staff-a1"),
                asynchronous=False,
            )


class TestConfirmReceiptCommand:
    def test_admins_are_told_but_not_the_validating_admin(self, directory, notifier):
        directory.add_admin("admin-2")
        order_id = _place_order()
        notifier.reset()
        current_domain.process(
            ConfirmReceipt(order_id=order_id, actor_id="admin-1", actor_role="admin"),
            asynchronous=False,
        )
        assert notifier.sent_to("admin-1") == []
        assert [n["notification_type"] for n in notifier.sent_to("admin-2")] == ["order_delivered"]
