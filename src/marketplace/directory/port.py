"""Directory ports: read-only interfaces to the marketplace's collaborators.

The order workflows program against these ports; adapters backed by the
user, catalogue and billing services are swapped in via configuration.
"""

from abc import ABC, abstractmethod


class VendorDirectoryPort(ABC):
    @abstractmethod
    def get_vendor(self, vendor_id: str) -> dict | None:
        """Look up a vendor ("boutique").

        Returns:
            dict with keys: vendor_id, name, direct_delivery (bool),
            same_day_delivery (bool); None when the vendor is unknown.
        """
        ...


class FeeSchedulePort(ABC):
    @abstractmethod
    def latest_fee_rule(self, vendor_id: str | None) -> dict | None:
        """The most recent active delivery fee rule.

        ``vendor_id=None`` selects the platform-wide rule used for
        supermarket delivery.

        Returns:
            dict with keys: fee_type ("fixed" or "percentage"), amount;
            None when no rule is currently active.
        """
        ...


class PriceHistoryPort(ABC):
    @abstractmethod
    def active_price_id(self, product_id: str, variation_id: str | None) -> str | None:
        """Id of the price record currently in force for a product variation."""
        ...


class UserDirectoryPort(ABC):
    @abstractmethod
    def get_client(self, client_id: str) -> dict | None:
        """Contact details of a client.

        Returns:
            dict with keys: user_id, last_name, first_name, email, phone.
        """
        ...

    @abstractmethod
    def staff_ids(self, vendor_id: str) -> list[str]:
        """User ids of every staff account of a vendor."""
        ...

    @abstractmethod
    def admin_ids(self) -> list[str]:
        """User ids of every admin account."""
        ...

    @abstractmethod
    def authenticate(self, token: str) -> dict | None:
        """Resolve a bearer token.

        Returns:
            dict with keys: user_id, role ("client", "vendor" or "admin"),
            vendor_id (vendor staff only); None for an unknown token.
        """
        ...
