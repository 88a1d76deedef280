"""Wishlist rows, one per (user, product)."""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.utils.query import find_one


@storefront.aggregate
class WishlistItem:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    added_at = DateTime()


def wishlist_entry(user_id, product_id):
    return find_one(WishlistItem, user_id=str(user_id), product_id=str(product_id))


@storefront.command(part_of="WishlistItem")
class AddToWishlist:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command(part_of="WishlistItem")
class RemoveFromWishlist:
    user_id = Identifier(required=True)
    wishlist_item_id = Identifier(required=True)


@storefront.command_handler(part_of=WishlistItem)
class WishlistHandler:
    @handle(AddToWishlist)
    def add(self, command):
        current_domain.repository_for(Product).get(command.product_id)

        existing = wishlist_entry(command.user_id, command.product_id)
        if existing is not None:
            return str(existing.id)

        item = WishlistItem(
            user_id=command.user_id,
            product_id=command.product_id,
            added_at=datetime.now(UTC),
        )
        current_domain.repository_for(WishlistItem).add(item)
        return str(item.id)

    @handle(RemoveFromWishlist)
    def remove(self, command):
        repo = current_domain.repository_for(WishlistItem)
        item = repo.get(command.wishlist_item_id)
        if str(item.user_id) != str(command.user_id):
            raise ValidationError({"wishlist_item": ["Wishlist item does not belong to this user"]})
        repo._dao.delete(item)
