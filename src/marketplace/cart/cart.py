"""Cart aggregate (CQRS): the client's basket before checkout.

The cart only holds what checkout needs: one line per product variation with
the vendor it comes from and the unit price shown to the client. Checking out
hands the lines to the order snapshot builder and empties the cart in the
same unit of work as the order write.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from marketplace.cart.events import CartCheckedOut, CartLineAdded
from marketplace.domain import marketplace


@marketplace.entity(part_of="Cart")
class CartLine:
    vendor_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variation_id = Identifier()
    price_id = Identifier()
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    product_name = String(max_length=255)
    product_image = String(max_length=500)

    @property
    def subtotal(self) -> float:
        return self.unit_price * self.quantity

    def snapshot(self) -> dict:
        return {
            "vendor_id": str(self.vendor_id),
            "product_id": str(self.product_id),
            "variation_id": str(self.variation_id) if self.variation_id else None,
            "price_id": str(self.price_id) if self.price_id else None,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "product_name": self.product_name,
            "product_image": self.product_image,
        }


@marketplace.aggregate
class Cart:
    client_id = Identifier(required=True)
    lines = HasMany(CartLine)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, client_id):
        now = datetime.now(UTC)
        return cls(client_id=client_id, created_at=now, updated_at=now)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def add_line(
        self,
        vendor_id,
        product_id,
        quantity,
        unit_price,
        variation_id=None,
        price_id=None,
        product_name=None,
        product_image=None,
    ):
        """Add a product to the cart, merging with an existing line for the same variation."""
        existing = next(
            (
                line
                for line in self.lines
                if str(line.product_id) == str(product_id) and str(line.variation_id) == str(variation_id)
            ),
            None,
        )
        if existing is not None:
            if str(existing.vendor_id) != str(vendor_id):
                raise ValidationError({"vendor_id": ["Product is already in the cart under another vendor"]})
            existing.quantity += quantity
            line = existing
        else:
            line = CartLine(
                vendor_id=vendor_id,
                product_id=product_id,
                variation_id=variation_id,
                price_id=price_id,
                quantity=quantity,
                unit_price=unit_price,
                product_name=product_name,
                product_image=product_image,
            )
            self.add_lines(line)

        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartLineAdded(
                cart_id=str(self.id),
                client_id=str(self.client_id),
                product_id=str(product_id),
                quantity=line.quantity,
            )
        )

    def checkout(self, order_id: str) -> list[dict]:
        """Empty the cart and return the snapshot of its lines."""
        snapshot = [line.snapshot() for line in self.lines]
        for line in list(self.lines):
            self.remove_lines(line)

        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartCheckedOut(
                cart_id=str(self.id),
                client_id=str(self.client_id),
                order_id=str(order_id),
                line_count=len(snapshot),
            )
        )
        return snapshot
