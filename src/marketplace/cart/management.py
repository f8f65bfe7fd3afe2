"""Cart management: commands and handler.

A client owns at most one cart; adding to the cart creates it on first use.
"""

from protean import handle
from protean.fields import Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.domain import marketplace


@marketplace.command(part_of="Cart")
class AddToCart:
    """Add a product variation to the client's cart."""

    client_id = Identifier(required=True)
    vendor_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variation_id = Identifier()
    price_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    product_name = String(max_length=255)
    product_image = String(max_length=500)


@marketplace.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_client(command.client_id)
        if cart is None:
            cart = Cart.create(client_id=command.client_id)

        cart.add_line(
            vendor_id=command.vendor_id,
            product_id=command.product_id,
            quantity=command.quantity,
            unit_price=command.unit_price,
            variation_id=command.variation_id,
            price_id=command.price_id,
            product_name=command.product_name,
            product_image=command.product_image,
        )
        repo.add(cart)
        return str(cart.id)
