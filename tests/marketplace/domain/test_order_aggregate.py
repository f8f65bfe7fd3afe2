"""Tests for Order placement: snapshot fields, totals and the OrderPlaced event."""

import json

from marketplace.order.events import OrderPlaced
from marketplace.order.order import WAREHOUSE_PICKUP_ADDRESS, Order


def _lots():
    return [
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
    ]


def _place(**overrides):
    params = {
        "order_number": "CMD1700000000000000001",
        "client_id": "client-1",
        "client_contact": {"first_name": "Fatou", "last_name": "Diop", "email": "fatou@example.com", "phone": "+221"},
        "delivery_mode": "supermarket_delivery",
        "delivery_address": "12 rue Carnot, Dakar",
        "payment_method": None,
        "note": None,
        "requested_at": None,
        "lots_data": _lots(),
        "delivery_fee": {"fee_type": "fixed", "value": 2000.0, "amount": 2000.0},
    }
    params.update(overrides)
    return Order.place(**params)


class TestOrderPlacement:
    def test_totals(self):
        order = _place()
        assert order.base_total == 2500.0
        assert order.delivery_fee.amount == 2000.0
        assert order.total == 4500.0

    def test_one_lot_per_vendor_awaiting_acceptance(self):
        order = _place()
        assert [str(lot.vendor_id) for lot in order.lots] == ["vendor-a", "vendor-b"]
        assert all(lot.status == "awaiting_vendor_acceptance" for lot in order.lots)
        assert all(not lot.accepted for lot in order.lots)
        assert order.status == "awaiting_vendor_acceptance"

    def test_items_belong_to_their_vendor(self):
        order = _place()
        assert len(order.items) == 3
        assert [str(i.product_id) for i in order.items_for("vendor-a")] == ["prod-a1", "prod-a2"]
        assert [str(i.product_id) for i in order.items_for("vendor-b")] == ["prod-b1"]
        assert all(item.status == "active" for item in order.items)

    def test_contact_and_payment_snapshot(self):
        order = _place()
        assert order.client_contact.last_name == "Diop"
        assert order.client_contact.email == "fatou@example.com"
        assert order.payment.method == "cash"
        assert order.payment.status == "unpaid"
        assert order.payment.paid_amount == 0.0

    def test_explicit_payment_method_and_note(self):
        order = _place(payment_method="card", note="Ring twice")
        assert order.payment.method == "card"
        assert order.notes == "Ring twice"

    def test_pickup_uses_warehouse_address(self):
        order = _place(delivery_mode="pickup", delivery_fee={"fee_type": "fixed", "value": 0.0, "amount": 0.0})
        assert order.delivery_address == WAREHOUSE_PICKUP_ADDRESS
        assert order.total == order.base_total

    def test_starts_at_version_one(self):
        order = _place()
        assert order.version == 1
        assert order.created_at is not None
        assert order.updated_at == order.created_at

    def test_has_vendor(self):
        order = _place()
        assert order.has_vendor("vendor-a")
        assert not order.has_vendor("vendor-z")


class TestOrderPlacedEvent:
    def test_raised_once(self):
        order = _place()
        assert len(order._events) == 1
        assert isinstance(order._events[0], OrderPlaced)

    def test_payload(self):
        order = _place()
        event = order._events[0]
        assert event.order_id == str(order.id)
        assert event.order_number == "CMD1700000000000000001"
        assert event.client_id == "client-1"
        assert json.loads(event.vendor_ids) == ["vendor-a", "vendor-b"]
        assert event.base_total == 2500.0
        assert event.delivery_fee == 2000.0
        assert event.total == 4500.0
