"""Fake directory adapter: in-memory collaborators for testing and development.

One object plays every directory port. Tests register vendors, fee rules,
prices and users through the ``add_*`` helpers.
"""

from datetime import UTC, datetime

from marketplace.directory.port import (
    FeeSchedulePort,
    PriceHistoryPort,
    UserDirectoryPort,
    VendorDirectoryPort,
)


class FakeDirectory(VendorDirectoryPort, FeeSchedulePort, PriceHistoryPort, UserDirectoryPort):
    def __init__(self):
        self.vendors: dict[str, dict] = {}
        self.fee_rules: list[dict] = []
        self.prices: dict[tuple[str, str | None], str] = {}
        self.clients: dict[str, dict] = {}
        self.staff: dict[str, list[str]] = {}
        self.admins: list[str] = []
        self.tokens: dict[str, dict] = {}

    # -------------------------------------------------------------------
    # Registration helpers
    # -------------------------------------------------------------------
    def add_vendor(self, vendor_id, name, direct_delivery=False, same_day_delivery=False):
        self.vendors[str(vendor_id)] = {
            "vendor_id": str(vendor_id),
            "name": name,
            "direct_delivery": direct_delivery,
            "same_day_delivery": same_day_delivery,
        }

    def add_fee_rule(self, vendor_id, fee_type, amount, active=True, starts_at=None, ends_at=None):
        self.fee_rules.append(
            {
                "vendor_id": str(vendor_id) if vendor_id is not None else None,
                "fee_type": fee_type,
                "amount": amount,
                "active": active,
                "starts_at": starts_at or datetime(2000, 1, 1, tzinfo=UTC),
                "ends_at": ends_at,
            }
        )

    def add_price(self, product_id, price_id, variation_id=None):
        self.prices[(str(product_id), str(variation_id) if variation_id else None)] = str(price_id)

    def add_client(self, user_id, first_name="", last_name="", email="", phone="", token=None):
        self.clients[str(user_id)] = {
            "user_id": str(user_id),
            "first_name": first_name,
            "last_name": last_name,
            "email": email,
            "phone": phone,
        }
        if token:
            self.tokens[token] = {"user_id": str(user_id), "role": "client", "vendor_id": None}

    def add_staff(self, vendor_id, user_id, token=None):
        self.staff.setdefault(str(vendor_id), []).append(str(user_id))
        if token:
            self.tokens[token] = {"user_id": str(user_id), "role": "vendor", "vendor_id": str(vendor_id)}

    def add_admin(self, user_id, token=None):
        self.admins.append(str(user_id))
        if token:
            self.tokens[token] = {"user_id": str(user_id), "role": "admin", "vendor_id": None}

    # -------------------------------------------------------------------
    # Ports
    # -------------------------------------------------------------------
    def get_vendor(self, vendor_id):
        return self.vendors.get(str(vendor_id))

    def latest_fee_rule(self, vendor_id):
        now = datetime.now(UTC)
        key = str(vendor_id) if vendor_id is not None else None
        candidates = [
            rule
            for rule in self.fee_rules
            if rule["vendor_id"] == key
            and rule["active"]
            and rule["starts_at"] <= now
            and (rule["ends_at"] is None or rule["ends_at"] > now)
        ]
        if not candidates:
            return None
        rule = max(candidates, key=lambda r: r["starts_at"])
        return {"fee_type": rule["fee_type"], "amount": rule["amount"]}

    def active_price_id(self, product_id, variation_id):
        key_variation = str(variation_id) if variation_id else None
        return self.prices.get((str(product_id), key_variation)) or self.prices.get((str(product_id), None))

    def get_client(self, client_id):
        return self.clients.get(str(client_id))

    def staff_ids(self, vendor_id):
        return list(self.staff.get(str(vendor_id), []))

    def admin_ids(self):
        return list(self.admins)

    def authenticate(self, token):
        return self.tokens.get(token)
