"""Application tests for registration, profile updates and account removal."""

import pytest
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.catalogue.comment import AddComment, Comment
from storefront.catalogue.draft import Draft, SaveDraft
from storefront.catalogue.product import Product
from storefront.catalogue.rating import RateProduct, Rating
from storefront.identity.account import RemoveUser
from storefront.identity.profile import UpdateProfile
from storefront.identity.registration import RegisterUser, find_user_by_email
from storefront.identity.security import verify_password
from storefront.identity.user import User
from storefront.ordering.cart import CartItem
from storefront.ordering.items import AddToCart
from storefront.ordering.wishlist import AddToWishlist, WishlistItem
from storefront.utils.query import find_all


class TestRegisterUser:
    def test_registers_user(self, make_user):
        user_id = make_user(email="Jane@Example.com")

        user = current_domain.repository_for(User).get(user_id)
        assert user.email == "jane@example.com"
        assert find_user_by_email("JANE@example.com").id == user.id

    def test_duplicate_email_rejected(self, make_user):
        make_user()

        with pytest.raises(ValidationError) as exc:
            current_domain.process(
                RegisterUser(name="Other", email="jane@example.com", password_hash="x"), asynchronous=False
            )

        assert exc.value.messages == {"email": ["User already exists"]}


class TestUpdateProfile:
    def test_updates_fields_and_address(self, make_user):
        user_id = make_user()

        current_domain.process(
            UpdateProfile(user_id=user_id, phone="555-0100", city="Springfield", country="US"), asynchronous=False
        )

        user = current_domain.repository_for(User).get(user_id)
        assert user.phone == "555-0100"
        assert user.address.city == "Springfield"
        assert user.name == "Jane Doe"

    def test_email_taken_by_another_user(self, make_user):
        user_id = make_user()
        make_user(name="Bob", email="bob@example.com")

        with pytest.raises(ValidationError):
            current_domain.process(UpdateProfile(user_id=user_id, email="bob@example.com"), asynchronous=False)

    def test_changes_password(self, make_user):
        from storefront.identity.security import hash_password

        user_id = make_user()

        current_domain.process(
            UpdateProfile(user_id=user_id, password_hash=hash_password("new-secret")), asynchronous=False
        )

        user = current_domain.repository_for(User).get(user_id)
        assert verify_password("new-secret", user.password_hash)


class TestRemoveUser:
    def test_cascades_to_everything_the_user_owns(self, make_user, make_product, admin_id):
        user_id = make_user()
        product_id = make_product(title="Mug", product_quantity=5)
        current_domain.process(AddToCart(user_id=user_id, product_id=product_id), asynchronous=False)
        current_domain.process(AddToWishlist(user_id=user_id, product_id=product_id), asynchronous=False)
        current_domain.process(RateProduct(user_id=user_id, product_id=product_id, value=4), asynchronous=False)
        current_domain.process(AddComment(user_id=user_id, product_id=product_id, text="Hi"), asynchronous=False)
        current_domain.process(SaveDraft(user_id=user_id, product_data="{}"), asynchronous=False)

        current_domain.process(RemoveUser(user_id=user_id), asynchronous=False)

        with pytest.raises(ObjectNotFoundError):
            current_domain.repository_for(User).get(user_id)
        for element in (CartItem, WishlistItem, Rating, Comment, Draft):
            assert find_all(element, user_id=user_id) == []

        product = current_domain.repository_for(Product).get(product_id)
        assert product.rating_count == 0
        assert product.rating_sum == 0
