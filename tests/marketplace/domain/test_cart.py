"""Tests for the Cart aggregate."""

import pytest
from marketplace.cart.cart import Cart
from marketplace.cart.events import CartCheckedOut, CartLineAdded
from protean.exceptions import ValidationError


def _cart_with_lines():
    cart = Cart.create(client_id="client-1")
    cart.add_line("vendor-a", "prod-a1", 2, 1000.0, product_name="Bissap")
    cart.add_line("vendor-b", "prod-b1", 1, 500.0, variation_id="var-b1-l", product_name="Thiakry")
    return cart


class TestCartLines:
    def test_new_cart_is_empty(self):
        assert Cart.create(client_id="client-1").is_empty

    def test_add_line(self):
        cart = _cart_with_lines()
        assert len(cart.lines) == 2
        assert isinstance(cart._events[-1], CartLineAdded)

    def test_same_variation_merges(self):
        cart = _cart_with_lines()
        cart.add_line("vendor-a", "prod-a1", 3, 1000.0)
        assert len(cart.lines) == 2
        line = next(li for li in cart.lines if str(li.product_id) == "prod-a1")
        assert line.quantity == 5
        assert line.subtotal == 5000.0

    def test_other_variation_is_a_new_line(self):
        cart = _cart_with_lines()
        cart.add_line("vendor-b", "prod-b1", 1, 550.0, variation_id="var-b1-xl")
        assert len(cart.lines) == 3

    def test_same_product_from_another_vendor_is_rejected(self):
        cart = _cart_with_lines()
        with pytest.raises(ValidationError):
            cart.add_line("vendor-b", "prod-a1", 1, 900.0)


class TestCheckout:
    def test_returns_snapshot_and_empties_cart(self):
        cart = _cart_with_lines()
        snapshot = cart.checkout(order_id="order-1")

        assert cart.is_empty
        assert [line["product_id"] for line in snapshot] == ["prod-a1", "prod-b1"]
        assert snapshot[0]["vendor_id"] == "vendor-a"
        assert snapshot[0]["quantity"] == 2
        assert snapshot[1]["variation_id"] == "var-b1-l"

    def test_raises_event(self):
        cart = _cart_with_lines()
        cart.checkout(order_id="order-1")
        event = cart._events[-1]
        assert isinstance(event, CartCheckedOut)
        assert event.order_id == "order-1"
        assert event.line_count == 2
