"""Order snapshot builder: turns a cart into a priced, vendor-partitioned Order.

Every check runs before anything is built, so a rejected checkout leaves no
trace. Vendor names, unit prices and the delivery fee are frozen into the
order at this point.
"""

from datetime import UTC, datetime

from marketplace.order.enums import DeliveryMode
from marketplace.order.errors import (
    DeliveryNotOfferedError,
    EmptyCartError,
    InvalidDeliveryModeError,
    MultiVendorDirectDeliveryError,
    NotFoundError,
    SameDayNotAllowedError,
)
from marketplace.order.order import Order
from marketplace.order.pricing import calculate_delivery_fee


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


def is_same_day(requested_at: datetime | None, now: datetime) -> bool:
    """True when the requested date falls on the calendar day of ``now``."""
    if requested_at is None:
        return False
    return _as_utc(requested_at).date() == _as_utc(now).date()


def group_by_vendor(lines: list[dict]) -> dict[str, list[dict]]:
    """Partition cart lines per vendor, keeping the order vendors first appear in."""
    groups: dict[str, list[dict]] = {}
    for line in lines:
        groups.setdefault(str(line["vendor_id"]), []).append(line)
    return groups


def build_order(
    client_id: str,
    lines: list[dict],
    delivery_mode: str,
    delivery_address: str | None,
    payment_method: str | None,
    note: str | None,
    requested_at: datetime | None,
    directory,
    order_number: str,
    now: datetime | None = None,
) -> Order:
    """Build (but do not persist) the order for a client's cart lines.

    Args:
        lines: Cart line snapshots (vendor_id, product_id, variation_id,
            price_id, quantity, unit_price, product_name, product_image).
        directory: Provides the vendor, fee schedule, price history and user
            directory ports.

    Raises:
        EmptyCartError, InvalidDeliveryModeError, MultiVendorDirectDeliveryError,
        DeliveryNotOfferedError, SameDayNotAllowedError
    """
    now = now or datetime.now(UTC)
    if not lines:
        raise EmptyCartError("The cart is empty")

    try:
        mode = DeliveryMode(delivery_mode)
    except ValueError as exc:
        raise InvalidDeliveryModeError(f"Unknown delivery mode: {delivery_mode}") from exc

    same_day = is_same_day(requested_at, now)
    if same_day and mode != DeliveryMode.VENDOR_DIRECT:
        raise InvalidDeliveryModeError("Same-day requests are only possible with vendor-direct delivery")

    groups = group_by_vendor(lines)
    vendors = {}
    for vendor_id in groups:
        vendor = directory.get_vendor(vendor_id)
        if vendor is None:
            raise NotFoundError(f"Vendor {vendor_id} not found")
        vendors[vendor_id] = vendor

    direct_vendor_id = None
    if mode == DeliveryMode.VENDOR_DIRECT:
        if len(groups) != 1:
            raise MultiVendorDirectDeliveryError("Vendor-direct delivery requires every item to come from one vendor")
        direct_vendor_id = next(iter(groups))
        vendor = vendors[direct_vendor_id]
        if not vendor.get("direct_delivery"):
            raise DeliveryNotOfferedError(f"{vendor['name']} does not deliver directly")
        if same_day and not vendor.get("same_day_delivery"):
            raise SameDayNotAllowedError(f"{vendor['name']} does not deliver on the same day")

    base_total = sum(line["unit_price"] * line["quantity"] for line in lines)
    delivery_fee = calculate_delivery_fee(mode.value, base_total, direct_vendor_id, directory)

    lots_data = []
    for vendor_id, vendor_lines in groups.items():
        items = []
        for line in vendor_lines:
            price_id = line.get("price_id") or directory.active_price_id(line["product_id"], line.get("variation_id"))
            items.append(
                {
                    "product_id": line["product_id"],
                    "variation_id": line.get("variation_id"),
                    "price_id": price_id,
                    "quantity": line["quantity"],
                    "unit_price": line["unit_price"],
                    "product_name": line.get("product_name"),
                    "product_image": line.get("product_image"),
                }
            )
        lots_data.append({"vendor_id": vendor_id, "vendor_name": vendors[vendor_id]["name"], "items": items})

    client = directory.get_client(client_id) or {}
    client_contact = {
        "last_name": client.get("last_name"),
        "first_name": client.get("first_name"),
        "email": client.get("email"),
        "phone": client.get("phone"),
    }

    return Order.place(
        order_number=order_number,
        client_id=client_id,
        client_contact=client_contact,
        delivery_mode=mode.value,
        delivery_address=delivery_address,
        payment_method=payment_method,
        note=note,
        requested_at=requested_at,
        lots_data=lots_data,
        delivery_fee=delivery_fee,
        now=now,
    )
