"""Application tests for product removal and its cascade."""

import json
from uuid import uuid4

import pytest
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.catalogue.comment import AddComment, Comment
from storefront.catalogue.draft import SaveDraft
from storefront.catalogue.product import Product
from storefront.catalogue.rating import RateProduct, Rating
from storefront.catalogue.removal import RemoveProduct
from storefront.identity.profile import UpdateProfile
from storefront.media.image import Image
from storefront.ordering.cart import CartItem
from storefront.ordering.items import AddToCart
from storefront.ordering.wishlist import AddToWishlist, WishlistItem
from storefront.site.settings import UpdatePageSettings
from storefront.utils.query import find_all, find_one


def _engage(user_id, product_id):
    current_domain.process(AddToCart(user_id=user_id, product_id=product_id, quantity=1), asynchronous=False)
    current_domain.process(AddToWishlist(user_id=user_id, product_id=product_id), asynchronous=False)
    current_domain.process(RateProduct(user_id=user_id, product_id=product_id, value=4), asynchronous=False)
    current_domain.process(AddComment(user_id=user_id, product_id=product_id, text="Nice"), asynchronous=False)


class TestRemoveProduct:
    def test_leaves_nothing_referencing_the_product(self, make_user, make_product):
        user_id = make_user()
        product_id = make_product(title="Mug", product_quantity=5)
        _engage(user_id, product_id)

        current_domain.process(RemoveProduct(product_id=product_id), asynchronous=False)

        with pytest.raises(ObjectNotFoundError):
            current_domain.repository_for(Product).get(product_id)
        for element in (CartItem, WishlistItem, Rating, Comment):
            assert find_all(element, product_id=product_id) == []

    def test_other_products_are_untouched(self, make_user, make_product):
        user_id = make_user()
        doomed = make_product(title="Mug", product_quantity=5)
        kept = make_product(title="Cup", product_quantity=5)
        _engage(user_id, doomed)
        _engage(user_id, kept)

        current_domain.process(RemoveProduct(product_id=doomed), asynchronous=False)

        assert len(find_all(CartItem, product_id=kept)) == 1
        assert len(find_all(Comment, product_id=kept)) == 1

    def test_returns_file_ids_of_unshared_images(self, make_product, make_image):
        own = make_image(file_id="file-own")
        shared = make_image(file_id="file-shared")
        product_id = make_product(image_id=own, hover_image_id=shared)
        make_product(title="Blue Shirt", image_id=shared)

        file_ids = current_domain.process(RemoveProduct(product_id=product_id), asynchronous=False)

        assert file_ids == ["file-own"]
        assert find_one(Image, id=own) is None
        assert find_one(Image, id=shared) is not None

    def test_images_still_used_elsewhere_are_kept(self, make_user, make_product, make_image):
        on_draft, as_avatar, as_logo = make_image(), make_image(), make_image()
        product_id = make_product(additional_image_ids=json.dumps([on_draft, as_avatar, as_logo]))
        user_id = make_user()
        current_domain.process(
            SaveDraft(user_id=user_id, product_data=json.dumps({"title": "Mug", "image_id": on_draft})),
            asynchronous=False,
        )
        current_domain.process(UpdateProfile(user_id=user_id, avatar_image_id=as_avatar), asynchronous=False)
        current_domain.process(UpdatePageSettings(logo_image_id=as_logo), asynchronous=False)

        file_ids = current_domain.process(RemoveProduct(product_id=product_id), asynchronous=False)

        assert file_ids == []
        for image_id in (on_draft, as_avatar, as_logo):
            assert find_one(Image, id=image_id) is not None

    def test_cascade_reaches_every_row(self, make_product):
        product_id = make_product(title="Mug", product_quantity=500)
        for _ in range(120):
            current_domain.process(AddToCart(user_id=str(uuid4()), product_id=product_id, quantity=1), asynchronous=False)

        current_domain.process(RemoveProduct(product_id=product_id), asynchronous=False)

        assert find_all(CartItem, product_id=product_id) == []
