"""Cart line aggregate.

Each row is one (user, product, size, color, shipping selection) tuple.
Adding the same tuple again accumulates quantity on the existing row.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, Integer, String

from storefront.catalogue.stock import DEFAULT_COLOR
from storefront.domain import storefront
from storefront.ordering.events import CartItemAdded, CartItemQuantityChanged


class StockLimitExceeded(ValidationError):
    """The requested cart quantity is more than the product has on hand."""

    def __init__(self, available, in_cart):
        self.available = available
        self.in_cart = in_cart
        super().__init__({"quantity": ["Maximum stock reached!"]})


def _norm(value, default=""):
    return (value or default).strip().lower()


@storefront.aggregate
class CartItem:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    price = Float(required=True, min_value=0.0)
    image_id = Identifier()
    size = String(max_length=50)
    color = String(max_length=50, default=DEFAULT_COLOR)
    shipping_name = String(max_length=100)
    shipping_price = Float(default=0.0, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, user_id, product, quantity, size=None, color=None, shipping_name=None, shipping_price=0.0):
        now = datetime.now(UTC)
        item = cls(
            user_id=user_id,
            product_id=str(product.id),
            title=product.title,
            price=product.unit_price(size, color),
            image_id=product.image_id,
            size=size,
            color=color or DEFAULT_COLOR,
            shipping_name=shipping_name,
            shipping_price=shipping_price or 0.0,
            quantity=quantity,
            added_at=now,
            updated_at=now,
        )
        item.raise_(
            CartItemAdded(
                cart_item_id=str(item.id),
                user_id=str(user_id),
                product_id=str(product.id),
                quantity=quantity,
            )
        )
        return item

    def matches(self, product_id, size, color, shipping_name) -> bool:
        return (
            str(self.product_id) == str(product_id)
            and _norm(self.size) == _norm(size)
            and _norm(self.color, DEFAULT_COLOR) == _norm(color, DEFAULT_COLOR)
            and _norm(self.shipping_name) == _norm(shipping_name)
        )

    def same_stock_line(self, size, color) -> bool:
        return _norm(self.size) == _norm(size) and _norm(self.color, DEFAULT_COLOR) == _norm(color, DEFAULT_COLOR)

    def change_quantity(self, quantity):
        previous = self.quantity
        self.quantity = quantity
        self.updated_at = datetime.now(UTC)
        self.raise_(
            CartItemQuantityChanged(
                cart_item_id=str(self.id),
                previous_quantity=previous,
                new_quantity=quantity,
            )
        )

    @property
    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)
