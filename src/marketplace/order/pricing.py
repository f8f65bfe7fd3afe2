"""Delivery fee calculation and order totals.

Both functions are pure: the fee calculator only reads the fee schedule it is
handed, and ``recompute_totals`` derives the monetary fields of an order from
its items and the fee rule captured at creation.
"""

import os

from marketplace.order.enums import DeliveryMode, FeeType, ItemStatus


def default_delivery_fee() -> float:
    """Fixed fee applied to supermarket delivery when no platform rule exists."""
    return float(os.environ.get("MARKETPLACE_DEFAULT_DELIVERY_FEE", "5000"))


def _fee_from_rule(rule: dict, subtotal: float) -> dict:
    fee_type = rule.get("fee_type") or FeeType.FIXED.value
    value = float(rule["amount"])
    if fee_type == FeeType.PERCENTAGE.value:
        amount = subtotal * value / 100
    else:
        amount = value
    return {"fee_type": fee_type, "value": value, "amount": amount}


def calculate_delivery_fee(delivery_mode: str, subtotal: float, vendor_id: str | None, fee_schedule) -> dict:
    """Compute the delivery fee for a new order.

    Args:
        delivery_mode: One of the DeliveryMode values.
        subtotal: Sum of the order's line subtotals.
        vendor_id: The single vendor for vendor-direct delivery, else None.
        fee_schedule: A FeeSchedulePort used to look up the latest active rule.

    Returns:
        dict with keys: fee_type, value, amount
    """
    mode = DeliveryMode(delivery_mode)

    if mode == DeliveryMode.SUPERMARKET_DELIVERY:
        rule = fee_schedule.latest_fee_rule(None)
        if rule is None:
            fallback = default_delivery_fee()
            return {"fee_type": FeeType.FIXED.value, "value": fallback, "amount": fallback}
        return _fee_from_rule(rule, subtotal)

    if mode == DeliveryMode.VENDOR_DIRECT:
        rule = fee_schedule.latest_fee_rule(vendor_id)
        if rule is not None:
            return _fee_from_rule(rule, subtotal)

    return {"fee_type": FeeType.FIXED.value, "value": 0.0, "amount": 0.0}


def recompute_totals(items, delivery_fee: dict) -> tuple[float, dict, float]:
    """Derive (base_total, delivery_fee, total) from the current items.

    Percentage fees follow the new subtotal; fixed fees stay as they are
    unless nothing remains to deliver, in which case the fee drops to zero.
    """
    base_total = sum(item.unit_price * item.quantity for item in items if item.status == ItemStatus.ACTIVE.value)

    fee_type = delivery_fee.get("fee_type") or FeeType.FIXED.value
    value = delivery_fee.get("value") or 0.0
    amount = delivery_fee.get("amount") or 0.0

    if fee_type == FeeType.PERCENTAGE.value:
        amount = base_total * value / 100
    if base_total == 0:
        amount = 0.0

    fee = {"fee_type": fee_type, "value": value, "amount": amount}
    return base_total, fee, base_total + amount
