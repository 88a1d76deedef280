"""Account removal: deletes the user and every row owned by them."""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.catalogue.comment import Comment, descendants_of
from storefront.catalogue.draft import Draft
from storefront.catalogue.product import Product
from storefront.catalogue.rating import Rating
from storefront.domain import storefront
from storefront.identity.user import User
from storefront.ordering.cart import CartItem
from storefront.ordering.wishlist import WishlistItem
from storefront.utils.query import delete_all, find_all

logger = structlog.get_logger(__name__)


@storefront.command(part_of="User")
class RemoveUser:
    user_id = Identifier(required=True)


@storefront.command_handler(part_of=User)
class RemoveUserHandler:
    @handle(RemoveUser)
    def remove_user(self, command):
        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)
        user_id = str(user.id)

        product_repo = current_domain.repository_for(Product)
        ratings = find_all(Rating, user_id=user_id)
        for rating in ratings:
            try:
                product = product_repo.get(rating.product_id)
            except ObjectNotFoundError:
                logger.warning("rating_without_product", rating_id=str(rating.id), product_id=str(rating.product_id))
                continue
            product.withdraw_rating(rating.value)
            product_repo.add(product)

        comments = []
        for comment in find_all(Comment, user_id=user_id):
            comments.extend(descendants_of(comment, find_all(Comment, product_id=str(comment.product_id))))
        unique_comments = list({str(c.id): c for c in comments}.values())

        removed = {
            "cart_items": delete_all(CartItem, find_all(CartItem, user_id=user_id)),
            "wishlist_items": delete_all(WishlistItem, find_all(WishlistItem, user_id=user_id)),
            "ratings": delete_all(Rating, ratings),
            "comments": delete_all(Comment, unique_comments),
            "drafts": delete_all(Draft, find_all(Draft, user_id=user_id)),
        }
        repo._dao.delete(user)

        logger.info("user_removed", user_id=user_id, **removed)
