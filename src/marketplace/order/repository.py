"""Repository for the Order aggregate."""

from protean.exceptions import ExpectedVersionError, ObjectNotFoundError

from marketplace.domain import marketplace
from marketplace.order.errors import ConflictError, NotFoundError
from marketplace.order.order import Order

# Page size for list queries; listings walk every page.
PAGE_SIZE = 500


def _newest_first(orders) -> list[Order]:
    return sorted(orders, key=lambda o: o.created_at, reverse=True)


@marketplace.repository(part_of=Order)
class OrderRepository:
    def _pages(self, **filters):
        """Yield every stored order matching ``filters``, one page at a time."""
        offset = 0
        while True:
            query = self._dao.query
            if filters:
                query = query.filter(**filters)
            result = query.order_by("-created_at").offset(offset).limit(PAGE_SIZE).all()
            yield from result.items
            offset += len(result.items)
            if not result.items or offset >= result.total:
                return

    def find_by_number(self, order_number: str) -> Order | None:
        orders = self._dao.query.filter(order_number=order_number).all().items
        return orders[0] if orders else None

    def count(self) -> int:
        return self._dao.query.all().total

    def for_client(self, client_id) -> list[Order]:
        return _newest_first(self._pages(client_id=str(client_id)))

    def for_vendor(self, vendor_id) -> list[Order]:
        """Orders holding a lot of the given vendor."""
        return _newest_first(o for o in self._pages() if o.has_vendor(vendor_id))

    def list_all(self) -> list[Order]:
        return _newest_first(self._pages())

    def get_for_update(self, order_id, expected_version: int | None = None) -> Order:
        """Load an order that is about to change.

        Raises:
            NotFoundError: no order with this id.
            ConflictError: the caller read an older version than the stored one.
        """
        try:
            order = self.get(order_id)
        except ObjectNotFoundError as exc:
            raise NotFoundError(f"Order {order_id} not found") from exc
        if expected_version is not None and expected_version != order.version:
            raise ConflictError(
                f"Order {order.order_number} changed (version {order.version}, expected {expected_version})"
            )
        return order

    def add(self, order: Order) -> Order:
        """Persist the order; a write based on a stale read raises ConflictError."""
        try:
            return super().add(order)
        except ExpectedVersionError as exc:
            raise ConflictError(f"Order {order.order_number} was changed by another request, retry") from exc
