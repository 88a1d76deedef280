"""Image metadata lifecycle: registration, file replacement and removal.

Bytes are written to and deleted from the image store by the API layer;
these handlers only keep the Image rows (and references to them) in step.
"""

import structlog
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, Integer, String
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.catalogue.draft import Draft
from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.identity.user import User
from storefront.media.image import Image
from storefront.media.references import image_references
from storefront.site.settings import PageSettings

logger = structlog.get_logger(__name__)


def products_using_image(image_id) -> list:
    return image_references(image_id).products


@storefront.command(part_of="Image")
class RegisterImage:
    filename = String(required=True, max_length=300)
    original_name = String(max_length=255)
    content_type = String(required=True, max_length=100)
    size = Integer(default=0)
    file_id = String(required=True, max_length=100)


@storefront.command(part_of="Image")
class ReplaceImageFile:
    image_id = Identifier(required=True)
    filename = String(required=True, max_length=300)
    original_name = String(max_length=255)
    content_type = String(required=True, max_length=100)
    size = Integer(default=0)
    file_id = String(required=True, max_length=100)


@storefront.command(part_of="Image")
class RemoveImage:
    image_id = Identifier(required=True)
    force = Boolean(default=False)


@storefront.command_handler(part_of=Image)
class ImageManagementHandler:
    @handle(RegisterImage)
    def register_image(self, command):
        image = Image.register(
            filename=command.filename,
            original_name=command.original_name,
            content_type=command.content_type,
            size=command.size,
            file_id=command.file_id,
        )
        current_domain.repository_for(Image).add(image)
        return str(image.id)

    @handle(ReplaceImageFile)
    def replace_file(self, command):
        """Swap the stored file behind an image; returns the old file id."""
        repo = current_domain.repository_for(Image)
        image = repo.get(command.image_id)
        previous_file_id = image.replace_file(
            filename=command.filename,
            original_name=command.original_name,
            content_type=command.content_type,
            size=command.size,
            file_id=command.file_id,
        )
        repo.add(image)
        return previous_file_id

    @handle(RemoveImage)
    def remove_image(self, command):
        """Delete image metadata; returns the file id to purge from the store."""
        repo = current_domain.repository_for(Image)
        image = repo.get(command.image_id)

        references = image_references(image.id)
        if references and not command.force:
            raise ValidationError({"image": [f"Image is in use: {references.describe()}"]})

        for element_cls, records in (
            (Product, references.products),
            (Draft, references.drafts),
            (PageSettings, references.page_settings),
        ):
            element_repo = current_domain.repository_for(element_cls)
            for record in records:
                record.detach_image(image.id)
                element_repo.add(record)

        user_repo = current_domain.repository_for(User)
        for user in references.users:
            user.avatar_image_id = None
            user_repo.add(user)

        repo._dao.delete(image)
        logger.info(
            "image_removed",
            image_id=str(image.id),
            detached_products=len(references.products),
            detached_drafts=len(references.drafts),
            detached_avatars=len(references.users),
        )
        return image.file_id
