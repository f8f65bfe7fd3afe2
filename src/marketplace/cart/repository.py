"""Repository for the Cart aggregate."""

from marketplace.cart.cart import Cart
from marketplace.domain import marketplace


@marketplace.repository(part_of=Cart)
class CartRepository:
    def for_client(self, client_id) -> Cart | None:
        """The client's cart, or None when they never added anything."""
        carts = self._dao.query.filter(client_id=str(client_id)).all().items
        return carts[0] if carts else None
