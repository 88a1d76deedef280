"""Product aggregate root with size variants and shipping options.

Images are referenced by Image id; URLs are resolved when a product is
rendered, so swapping an image file never touches product rows.
"""

import json
from datetime import UTC, datetime

import structlog
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, Text

from storefront.catalogue.events import (
    ProductCreated,
    ProductDetailsUpdated,
    ProductRated,
    ProductStockDecremented,
)
from storefront.catalogue.stock import (
    DEFAULT_COLOR,
    StockDecrement,
    StockLine,
    available_stock,
    clamp_decrement,
    decrement_stock,
    find_line,
)
from storefront.domain import storefront

logger = structlog.get_logger(__name__)

IMAGE_FIELDS = ("image", "hover_image")


@storefront.entity(part_of="Product")
class SizeVariant:
    size = String(required=True, max_length=50)
    color = String(max_length=50, default=DEFAULT_COLOR)
    quantity = Integer(default=0, min_value=0)
    size_price = Float(min_value=0.0)
    position = Integer(default=0)


@storefront.entity(part_of="Product")
class ShippingOption:
    name = String(required=True, max_length=100)
    price = Float(default=0.0, min_value=0.0)
    position = Integer(default=0)


@storefront.aggregate
class Product:
    title = String(required=True, max_length=255)
    product_type = String(max_length=100)
    price = Float(required=True, min_value=0.0)
    description = Text()
    materials = Text()
    sizes = HasMany(SizeVariant)
    product_quantity = Integer(default=1, min_value=0)
    shipping_options = HasMany(ShippingOption)
    image_id = Identifier()
    hover_image_id = Identifier()
    additional_image_ids = Text()  # JSON array of Image ids
    rating_sum = Integer(default=0)
    rating_count = Integer(default=0)
    visits = Integer(default=0)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        title,
        price,
        product_type=None,
        description=None,
        materials=None,
        product_quantity=1,
        sizes=None,
        shipping_options=None,
        image_id=None,
        hover_image_id=None,
        additional_image_ids=None,
    ):
        now = datetime.now(UTC)
        product = cls(
            title=title,
            price=price,
            product_type=product_type,
            description=description,
            materials=materials,
            product_quantity=product_quantity if product_quantity is not None else 1,
            image_id=image_id,
            hover_image_id=hover_image_id,
            additional_image_ids=json.dumps(list(additional_image_ids or [])),
            created_at=now,
            updated_at=now,
        )
        product._replace_sizes(sizes or [])
        product._replace_shipping_options(shipping_options or [])

        product.raise_(
            ProductCreated(
                product_id=str(product.id),
                title=product.title,
                product_type=product.product_type,
                price=product.price,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Details
    # -------------------------------------------------------------------
    def update_details(
        self,
        title,
        price,
        product_type=None,
        description=None,
        materials=None,
        product_quantity=None,
        sizes=None,
        shipping_options=None,
    ):
        """Replace the editable details. ``sizes``/``shipping_options`` of None keep the current lists."""
        self.title = title
        self.price = price
        self.product_type = product_type
        self.description = description
        self.materials = materials
        if product_quantity is not None:
            self.product_quantity = product_quantity
        if sizes is not None:
            self._replace_sizes(sizes)
        if shipping_options is not None:
            self._replace_shipping_options(shipping_options)
        self.updated_at = datetime.now(UTC)

        self.raise_(ProductDetailsUpdated(product_id=str(self.id), title=self.title, price=self.price))

    def _replace_sizes(self, sizes):
        for existing in list(self.sizes or []):
            self.remove_sizes(existing)
        for position, entry in enumerate(sizes):
            self.add_sizes(
                SizeVariant(
                    size=entry["size"],
                    color=entry.get("color") or DEFAULT_COLOR,
                    quantity=int(entry.get("quantity") or 0),
                    size_price=entry.get("size_price"),
                    position=position,
                )
            )

    def _replace_shipping_options(self, options):
        for existing in list(self.shipping_options or []):
            self.remove_shipping_options(existing)
        for position, entry in enumerate(options):
            self.add_shipping_options(
                ShippingOption(
                    name=entry["name"],
                    price=float(entry.get("price") or 0.0),
                    position=position,
                )
            )

    def ordered_sizes(self) -> list:
        return sorted(self.sizes or [], key=lambda variant: variant.position or 0)

    def ordered_shipping_options(self) -> list:
        return sorted(self.shipping_options or [], key=lambda option: option.position or 0)

    @property
    def shipping_cost(self) -> float:
        """Price of the first shipping option; zero when none is configured."""
        options = self.ordered_shipping_options()
        return float(options[0].price or 0.0) if options else 0.0

    @property
    def shipping_method(self) -> str | None:
        options = self.ordered_shipping_options()
        return options[0].name if options else None

    # -------------------------------------------------------------------
    # Images
    # -------------------------------------------------------------------
    @property
    def additional_images(self) -> list[str]:
        return json.loads(self.additional_image_ids) if self.additional_image_ids else []

    def image_ids(self) -> list[str]:
        ids = [str(self.image_id)] if self.image_id else []
        if self.hover_image_id:
            ids.append(str(self.hover_image_id))
        ids.extend(self.additional_images)
        return list(dict.fromkeys(ids))

    def references_image(self, image_id) -> bool:
        return str(image_id) in self.image_ids()

    def set_image(self, field, image_id):
        if field not in IMAGE_FIELDS:
            raise ValidationError({"field": [f"Image field must be one of {', '.join(IMAGE_FIELDS)}"]})
        setattr(self, f"{field}_id", image_id)
        self.updated_at = datetime.now(UTC)

    def add_additional_images(self, image_ids):
        current = self.additional_images
        for image_id in image_ids:
            if str(image_id) not in current:
                current.append(str(image_id))
        self.additional_image_ids = json.dumps(current)
        self.updated_at = datetime.now(UTC)

    def detach_image(self, image_id):
        """Drop every reference to ``image_id``."""
        image_id = str(image_id)
        if self.image_id and str(self.image_id) == image_id:
            self.image_id = None
        if self.hover_image_id and str(self.hover_image_id) == image_id:
            self.hover_image_id = None
        self.additional_image_ids = json.dumps([i for i in self.additional_images if i != image_id])
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Ratings & visits
    # -------------------------------------------------------------------
    @property
    def average_rating(self) -> float:
        if not self.rating_count:
            return 0.0
        return round(self.rating_sum / self.rating_count, 2)

    def apply_rating(self, value, previous=None):
        """Fold a new rating, or a changed one when ``previous`` is given, into the totals."""
        if previous is None:
            self.rating_sum = (self.rating_sum or 0) + value
            self.rating_count = (self.rating_count or 0) + 1
        else:
            self.rating_sum = (self.rating_sum or 0) + value - previous

        self.raise_(
            ProductRated(
                product_id=str(self.id),
                rating_sum=self.rating_sum,
                rating_count=self.rating_count,
            )
        )

    def withdraw_rating(self, value):
        self.rating_sum = max((self.rating_sum or 0) - value, 0)
        self.rating_count = max((self.rating_count or 0) - 1, 0)

    def record_visit(self):
        self.visits = (self.visits or 0) + 1

    # -------------------------------------------------------------------
    # Stock
    # -------------------------------------------------------------------
    def stock_lines(self) -> tuple[StockLine, ...]:
        return tuple(
            StockLine(size=variant.size, color=variant.color or DEFAULT_COLOR, quantity=variant.quantity or 0)
            for variant in self.ordered_sizes()
        )

    def available_for(self, size=None, color=None) -> int:
        return available_stock(self.stock_lines(), self.product_quantity, size, color)

    def unit_price(self, size=None, color=None) -> float:
        """Size-specific price when the matching variant carries one, else the base price."""
        variants = self.ordered_sizes()
        index = find_line(self.stock_lines(), size, color)
        if index is not None and variants[index].size_price:
            return float(variants[index].size_price)
        return float(self.price)

    def decrement_stock(self, size, color, quantity) -> StockDecrement:
        """Take purchased units out of stock, never going below zero."""
        variants = self.ordered_sizes()
        if variants:
            outcome = decrement_stock(self.stock_lines(), size, color, quantity)
            if not outcome.matched:
                logger.warning(
                    "stock_variant_not_found",
                    product_id=str(self.id),
                    size=size,
                    color=color or DEFAULT_COLOR,
                )
                return outcome
            for variant, line in zip(variants, outcome.lines, strict=True):
                variant.quantity = line.quantity
            remaining = outcome.lines[find_line(outcome.lines, size, color)].quantity
        else:
            remaining, shortfall = clamp_decrement(self.product_quantity, quantity)
            self.product_quantity = remaining
            outcome = StockDecrement(lines=(), matched=True, clamped=shortfall > 0, shortfall=shortfall)

        if outcome.clamped:
            logger.warning(
                "stock_clamped_at_zero",
                product_id=str(self.id),
                size=size,
                color=color,
                requested=quantity,
                shortfall=outcome.shortfall,
            )

        self.updated_at = datetime.now(UTC)
        self.raise_(
            ProductStockDecremented(
                product_id=str(self.id),
                size=size,
                color=color,
                quantity=quantity,
                remaining=remaining,
                clamped=outcome.clamped,
            )
        )
        return outcome
