"""Domain events for the Product aggregate."""

from protean.fields import Boolean, Float, Identifier, Integer, String

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductCreated:
    __version__ = 1

    product_id = Identifier(required=True)
    title = String(required=True)
    product_type = String()
    price = Float(required=True)


@storefront.event(part_of="Product")
class ProductDetailsUpdated:
    __version__ = 1

    product_id = Identifier(required=True)
    title = String(required=True)
    price = Float(required=True)


@storefront.event(part_of="Product")
class ProductStockDecremented:
    """Units were taken from stock for a purchase."""

    __version__ = 1

    product_id = Identifier(required=True)
    size = String()
    color = String()
    quantity = Integer(required=True)
    remaining = Integer(required=True)
    clamped = Boolean(default=False)


@storefront.event(part_of="Product")
class ProductRated:
    __version__ = 1

    product_id = Identifier(required=True)
    rating_sum = Integer(required=True)
    rating_count = Integer(required=True)
