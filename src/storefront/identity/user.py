"""User aggregate root."""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, ValueObject

from storefront.domain import storefront
from storefront.identity.events import UserProfileUpdated, UserRegistered
from storefront.shared.address import Address


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


@storefront.aggregate
class User:
    name = String(required=True, max_length=100)
    email = String(required=True, max_length=254)
    password_hash = String(required=True, max_length=128)
    first_name = String(max_length=100)
    last_name = String(max_length=100)
    phone = String(max_length=30)
    avatar_image_id = Identifier()
    address = ValueObject(Address)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def email_must_look_like_an_address(self):
        local, _, host = (self.email or "").partition("@")
        if not local or "." not in host or " " in self.email or "@" in host:
            raise ValidationError({"email": [f"Invalid email address: {self.email!r}"]})

    @classmethod
    def register(cls, name, email, password_hash):
        now = datetime.now(UTC)
        user = cls(
            name=name.strip(),
            email=normalize_email(email),
            password_hash=password_hash,
            created_at=now,
            updated_at=now,
        )
        user.raise_(UserRegistered(user_id=str(user.id), name=user.name, email=user.email))
        return user

    def update_profile(
        self,
        name=None,
        email=None,
        first_name=None,
        last_name=None,
        phone=None,
        avatar_image_id=None,
        address=None,
    ):
        """Apply the supplied profile fields; ``None`` leaves a field untouched."""
        if name is not None:
            self.name = name.strip()
        if email is not None:
            self.email = normalize_email(email)
        if first_name is not None:
            self.first_name = first_name
        if last_name is not None:
            self.last_name = last_name
        if phone is not None:
            self.phone = phone
        if avatar_image_id is not None:
            self.avatar_image_id = avatar_image_id
        if address is not None:
            self.address = address
        self.updated_at = datetime.now(UTC)

        self.raise_(UserProfileUpdated(user_id=str(self.id), name=self.name, email=self.email))

    def change_password(self, password_hash):
        self.password_hash = password_hash
        self.updated_at = datetime.now(UTC)
