"""Tests for the CartItem aggregate."""

from storefront.catalogue.product import Product
from storefront.ordering.cart import CartItem, StockLimitExceeded
from storefront.ordering.events import CartItemAdded, CartItemQuantityChanged


def _product():
    return Product.create(
        title="Red Shirt",
        price=25.0,
        image_id="img-1",
        sizes=[{"size": "M", "color": "Black", "quantity": 3, "size_price": 30.0}],
    )


class TestCartItemCreation:
    def test_snapshots_product_fields(self):
        item = CartItem.create(user_id="user-1", product=_product(), quantity=2, size="M", color="Black")

        assert item.title == "Red Shirt"
        assert item.price == 30.0
        assert item.image_id == "img-1"
        assert item.line_total == 60.0

    def test_color_defaults(self):
        item = CartItem.create(user_id="user-1", product=_product(), quantity=1, size="M")
        assert item.color == "Default"

    def test_raises_cart_item_added(self):
        item = CartItem.create(user_id="user-1", product=_product(), quantity=1, size="M", color="Black")
        assert isinstance(item._events[-1], CartItemAdded)


class TestMatching:
    def test_same_tuple_matches_case_insensitively(self):
        product = _product()
        item = CartItem.create(
            user_id="user-1", product=product, quantity=1, size="M", color="Black", shipping_name="Standard"
        )

        assert item.matches(str(product.id), "m", "black", "standard")

    def test_different_shipping_does_not_match(self):
        product = _product()
        item = CartItem.create(
            user_id="user-1", product=product, quantity=1, size="M", color="Black", shipping_name="Standard"
        )

        assert not item.matches(str(product.id), "M", "Black", "Express")
        assert item.same_stock_line("M", "Black")


class TestChangeQuantity:
    def test_change_quantity_raises_event(self):
        item = CartItem.create(user_id="user-1", product=_product(), quantity=1, size="M", color="Black")

        item.change_quantity(3)

        event = item._events[-1]
        assert isinstance(event, CartItemQuantityChanged)
        assert event.previous_quantity == 1
        assert event.new_quantity == 3


class TestStockLimitExceeded:
    def test_carries_stock_figures(self):
        exc = StockLimitExceeded(available=3, in_cart=2)

        assert exc.available == 3
        assert exc.in_cart == 2
        assert exc.messages == {"quantity": ["Maximum stock reached!"]}
