"""Profile updates for self-service and admin edits."""

from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.domain import storefront
from storefront.identity.registration import find_user_by_email
from storefront.identity.user import User, normalize_email
from storefront.shared.address import Address

_ADDRESS_FIELDS = ("address_line1", "address_line2", "city", "state", "postal_code", "country")


@storefront.command(part_of="User")
class UpdateProfile:
    user_id = Identifier(required=True)
    name = String(max_length=100)
    email = String(max_length=254)
    password_hash = String(max_length=128)
    first_name = String(max_length=100)
    last_name = String(max_length=100)
    phone = String(max_length=30)
    avatar_image_id = Identifier()
    address_line1 = String(max_length=255)
    address_line2 = String(max_length=255)
    city = String(max_length=100)
    state = String(max_length=100)
    postal_code = String(max_length=20)
    country = String(max_length=2)


@storefront.command_handler(part_of=User)
class UpdateProfileHandler:
    @handle(UpdateProfile)
    def update_profile(self, command):
        repo = current_domain.repository_for(User)
        user = repo.get(command.user_id)

        if command.email and normalize_email(command.email) != user.email:
            other = find_user_by_email(command.email)
            if other is not None and str(other.id) != str(user.id):
                raise ValidationError({"email": ["Email is already in use"]})

        address = None
        if any(getattr(command, field) for field in _ADDRESS_FIELDS):
            address = Address(
                name=" ".join(part for part in (command.first_name, command.last_name) if part) or user.name,
                **{field: getattr(command, field) for field in _ADDRESS_FIELDS},
            )

        user.update_profile(
            name=command.name,
            email=command.email,
            first_name=command.first_name,
            last_name=command.last_name,
            phone=command.phone,
            avatar_image_id=command.avatar_image_id,
            address=address,
        )
        if command.password_hash:
            user.change_password(command.password_hash)

        repo.add(user)
        return str(user.id)
