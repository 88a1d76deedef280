"""Cart line management commands and handler.

Both adding and re-quantifying check the requested total against the stock
on hand for the chosen size and color.
"""

from protean.exceptions import ValidationError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.ordering.cart import CartItem, StockLimitExceeded
from storefront.utils.query import find_all


def _shipping_price(product, shipping_name):
    if not shipping_name:
        return 0.0
    for option in product.ordered_shipping_options():
        if option.name.strip().lower() == shipping_name.strip().lower():
            return float(option.price or 0.0)
    raise ValidationError({"shipping_name": [f"Unknown shipping option: {shipping_name}"]})


def _owned_item(repo, item_id, user_id):
    item = repo.get(item_id)
    if str(item.user_id) != str(user_id):
        raise ValidationError({"cart_item": ["Cart item does not belong to this user"]})
    return item


@storefront.command(part_of="CartItem")
class AddToCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(default=1, min_value=1)
    size = String(max_length=50)
    color = String(max_length=50)
    shipping_name = String(max_length=100)


@storefront.command(part_of="CartItem")
class ChangeCartQuantity:
    user_id = Identifier(required=True)
    cart_item_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="CartItem")
class RemoveFromCart:
    user_id = Identifier(required=True)
    cart_item_id = Identifier(required=True)


@storefront.command_handler(part_of=CartItem)
class CartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        product = current_domain.repository_for(Product).get(command.product_id)
        if product.sizes and not command.size:
            raise ValidationError({"size": ["Please select a size"]})

        rows = find_all(CartItem, user_id=str(command.user_id), product_id=str(command.product_id))
        in_cart = sum(row.quantity for row in rows if row.same_stock_line(command.size, command.color))
        available = product.available_for(command.size, command.color)
        if in_cart + command.quantity > available:
            raise StockLimitExceeded(available=available, in_cart=in_cart)

        repo = current_domain.repository_for(CartItem)
        existing = next(
            (row for row in rows if row.matches(command.product_id, command.size, command.color, command.shipping_name)),
            None,
        )
        if existing is not None:
            existing.change_quantity(existing.quantity + command.quantity)
            repo.add(existing)
            return str(existing.id)

        item = CartItem.create(
            user_id=command.user_id,
            product=product,
            quantity=command.quantity,
            size=command.size,
            color=command.color,
            shipping_name=command.shipping_name,
            shipping_price=_shipping_price(product, command.shipping_name),
        )
        repo.add(item)
        return str(item.id)

    @handle(ChangeCartQuantity)
    def change_quantity(self, command):
        repo = current_domain.repository_for(CartItem)
        item = _owned_item(repo, command.cart_item_id, command.user_id)

        product = current_domain.repository_for(Product).get(item.product_id)
        others = sum(
            row.quantity
            for row in find_all(CartItem, user_id=str(command.user_id), product_id=str(item.product_id))
            if str(row.id) != str(item.id) and row.same_stock_line(item.size, item.color)
        )
        available = product.available_for(item.size, item.color)
        if others + command.quantity > available:
            raise StockLimitExceeded(available=available, in_cart=others + item.quantity)

        item.change_quantity(command.quantity)
        repo.add(item)
        return str(item.id)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(CartItem)
        item = _owned_item(repo, command.cart_item_id, command.user_id)
        repo._dao.delete(item)
