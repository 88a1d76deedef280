"""Domain events for cart rows and orders."""

from protean.fields import Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="CartItem")
class CartItemAdded:
    __version__ = 1

    cart_item_id = Identifier(required=True)
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True)


@storefront.event(part_of="CartItem")
class CartItemQuantityChanged:
    __version__ = 1

    cart_item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@storefront.event(part_of="Order")
class OrderPlaced:
    """A paid purchase was recorded."""

    __version__ = 1

    order_id = Identifier(required=True)
    user_id = Identifier()
    product_id = Identifier(required=True)
    quantity = Integer(required=True)
    price = Float(required=True)
    transaction_id = String(required=True)
    source = String(required=True)
