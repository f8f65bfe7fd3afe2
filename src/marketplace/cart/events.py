"""Domain events for the Cart aggregate."""

from protean.fields import Identifier, Integer

from marketplace.domain import marketplace


@marketplace.event(part_of="Cart")
class CartLineAdded:
    """A product was added to the client's cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    client_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)


@marketplace.event(part_of="Cart")
class CartCheckedOut:
    """The cart was turned into an order and emptied."""

    __version__ = 1

    cart_id = Identifier(required=True)
    client_id = Identifier(required=True)
    order_id = Identifier(required=True)
    line_count = Integer(required=True)
