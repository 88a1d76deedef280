"""Application tests for cart line handlers and their stock checks."""

import pytest
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.ordering.cart import CartItem, StockLimitExceeded
from storefront.ordering.items import AddToCart, ChangeCartQuantity, RemoveFromCart
from storefront.utils.query import find_all

SIZES = [{"size": "M", "color": "Black", "quantity": 3}, {"size": "L", "color": "Black", "quantity": 1}]


def _add(user_id, product_id, **overrides):
    values = {"user_id": user_id, "product_id": product_id, "quantity": 1}
    values.update(overrides)
    return current_domain.process(AddToCart(**values), asynchronous=False)


class TestAddToCartWithoutSizes:
    def test_quantity_within_product_quantity(self, make_user, make_product):
        user_id = make_user()
        product_id = make_product(title="Mug", product_quantity=3)

        _add(user_id, product_id, quantity=3)

        rows = find_all(CartItem, user_id=user_id)
        assert len(rows) == 1
        assert rows[0].quantity == 3

    def test_quantity_above_product_quantity_rejected(self, make_user, make_product):
        user_id = make_user()
        product_id = make_product(title="Mug", product_quantity=3)

        with pytest.raises(StockLimitExceeded) as exc:
            _add(user_id, product_id, quantity=4)

        assert exc.value.messages == {"quantity": ["Maximum stock reached!"]}
        assert exc.value.available == 3
        assert exc.value.in_cart == 0


class TestAddToCartWithSizes:
    def test_same_line_accumulates(self, make_user, make_product):
        user_id = make_user()
        product_id = make_product(sizes=SIZES)

        first = _add(user_id, product_id, size="M", color="Black", shipping_name="Standard")
        second = _add(user_id, product_id, size="m", color="black", shipping_name="standard")

        assert first == second
        assert current_domain.repository_for(CartItem).get(first).quantity == 2

    def test_limit_counts_what_is_already_in_cart(self, make_user, make_product):
        user_id = make_user()
        product_id = make_product(sizes=SIZES)
        _add(user_id, product_id, quantity=2, size="M", color="Black")

        with pytest.raises(StockLimitExceeded) as exc:
            _add(user_id, product_id, quantity=2, size="M", color="Black", shipping_name="Standard")

        assert exc.value.in_cart == 2
        assert exc.value.available == 3

    def test_size_required(self, make_user, make_product):
        user_id = make_user()
        product_id = make_product(sizes=SIZES)

        with pytest.raises(ValidationError) as exc:
            _add(user_id, product_id)

        assert "size" in exc.value.messages

    def test_unknown_variant_has_no_stock(self, make_user, make_product):
        user_id = make_user()
        product_id = make_product(sizes=SIZES)

        with pytest.raises(StockLimitExceeded):
            _add(user_id, product_id, size="XL", color="Black")

    def test_shipping_price_is_snapshotted(self, make_user, make_product):
        user_id = make_user()
        product_id = make_product(
            sizes=SIZES, shipping_options=[{"name": "Standard", "price": 5.0}, {"name": "Express", "price": 12.0}]
        )

        item_id = _add(user_id, product_id, size="L", color="Black", shipping_name="Express")

        assert current_domain.repository_for(CartItem).get(item_id).shipping_price == 12.0

    def test_unknown_shipping_option_rejected(self, make_user, make_product):
        user_id = make_user()
        product_id = make_product(sizes=SIZES)

        with pytest.raises(ValidationError) as exc:
            _add(user_id, product_id, size="M", color="Black", shipping_name="Teleport")

        assert "shipping_name" in exc.value.messages

    def test_unknown_product(self, make_user):
        with pytest.raises(ObjectNotFoundError):
            _add(make_user(), "missing-product")


class TestChangeQuantity:
    def test_within_stock(self, make_user, make_product):
        user_id = make_user()
        product_id = make_product(sizes=SIZES)
        item_id = _add(user_id, product_id, size="M", color="Black")

        current_domain.process(
            ChangeCartQuantity(user_id=user_id, cart_item_id=item_id, quantity=3), asynchronous=False
        )

        assert current_domain.repository_for(CartItem).get(item_id).quantity == 3

    def test_above_stock_rejected(self, make_user, make_product):
        user_id = make_user()
        product_id = make_product(sizes=SIZES)
        item_id = _add(user_id, product_id, size="L", color="Black")

        with pytest.raises(StockLimitExceeded):
            current_domain.process(
                ChangeCartQuantity(user_id=user_id, cart_item_id=item_id, quantity=2), asynchronous=False
            )

    def test_other_users_row_rejected(self, make_user, make_product):
        owner = make_user()
        intruder = make_user(name="Eve", email="eve@example.com")
        item_id = _add(owner, make_product(title="Mug", product_quantity=5))

        with pytest.raises(ValidationError):
            current_domain.process(
                ChangeCartQuantity(user_id=intruder, cart_item_id=item_id, quantity=2), asynchronous=False
            )


class TestRemoveFromCart:
    def test_removes_row(self, make_user, make_product):
        user_id = make_user()
        item_id = _add(user_id, make_product(title="Mug", product_quantity=5))

        current_domain.process(RemoveFromCart(user_id=user_id, cart_item_id=item_id), asynchronous=False)

        assert find_all(CartItem, user_id=user_id) == []
