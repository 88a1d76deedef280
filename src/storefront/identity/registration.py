"""User registration command and handler."""

from protean.exceptions import ValidationError
from protean.fields import String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.domain import storefront
from storefront.identity.user import User, normalize_email
from storefront.utils.query import find_one


def find_user_by_email(email):
    return find_one(User, email=normalize_email(email))


@storefront.command(part_of="User")
class RegisterUser:
    name = String(required=True, max_length=100)
    email = String(required=True, max_length=254)
    password_hash = String(required=True, max_length=128)


@storefront.command_handler(part_of=User)
class RegisterUserHandler:
    @handle(RegisterUser)
    def register_user(self, command):
        if find_user_by_email(command.email) is not None:
            raise ValidationError({"email": ["User already exists"]})

        user = User.register(
            name=command.name,
            email=command.email,
            password_hash=command.password_hash,
        )
        current_domain.repository_for(User).add(user)
        return str(user.id)
