"""Product removal with cascading cleanup of everything that points at it."""

import structlog
from protean.fields import Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.catalogue.comment import Comment
from storefront.catalogue.product import Product
from storefront.catalogue.rating import Rating
from storefront.domain import storefront
from storefront.media.image import Image
from storefront.media.references import unreferenced_images
from storefront.ordering.cart import CartItem
from storefront.ordering.wishlist import WishlistItem
from storefront.utils.query import delete_all, find_all

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Product")
class RemoveProduct:
    product_id = Identifier(required=True)


@storefront.command_handler(part_of=Product)
class RemoveProductHandler:
    @handle(RemoveProduct)
    def remove_product(self, command):
        """Delete the product and its dependents; returns store file ids to purge."""
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product_id = str(product.id)

        image_dao = current_domain.repository_for(Image)._dao
        file_ids = []
        for image in unreferenced_images(product.image_ids(), exclude_product=product_id):
            file_ids.append(image.file_id)
            image_dao.delete(image)

        removed = {
            "cart_items": delete_all(CartItem, find_all(CartItem, product_id=product_id)),
            "wishlist_items": delete_all(WishlistItem, find_all(WishlistItem, product_id=product_id)),
            "ratings": delete_all(Rating, find_all(Rating, product_id=product_id)),
            "comments": delete_all(Comment, find_all(Comment, product_id=product_id)),
        }
        repo._dao.delete(product)

        logger.info("product_removed", product_id=product_id, images=len(file_ids), **removed)
        return file_ids
