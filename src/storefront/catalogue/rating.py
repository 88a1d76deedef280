"""Product ratings, one per user per product, folded into the product totals."""

from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, Integer
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.utils.query import find_one

MIN_RATING = 1
MAX_RATING = 5


@storefront.aggregate
class Rating:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    value = Integer(required=True, min_value=MIN_RATING, max_value=MAX_RATING)
    created_at = DateTime()
    updated_at = DateTime()


@storefront.command(part_of="Rating")
class RateProduct:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    value = Integer(required=True, min_value=MIN_RATING, max_value=MAX_RATING)


@storefront.command_handler(part_of=Rating)
class RateProductHandler:
    @handle(RateProduct)
    def rate_product(self, command):
        product_repo = current_domain.repository_for(Product)
        product = product_repo.get(command.product_id)

        repo = current_domain.repository_for(Rating)
        now = datetime.now(UTC)
        rating = find_one(Rating, user_id=str(command.user_id), product_id=str(command.product_id))
        if rating is None:
            rating = Rating(
                user_id=command.user_id,
                product_id=command.product_id,
                value=command.value,
                created_at=now,
                updated_at=now,
            )
            product.apply_rating(command.value)
        else:
            previous = rating.value
            rating.value = command.value
            rating.updated_at = now
            product.apply_rating(command.value, previous=previous)

        repo.add(rating)
        product_repo.add(product)
        return {
            "value": rating.value,
            "average_rating": product.average_rating,
            "rating_count": product.rating_count,
        }
