"""Drafts: auto-saved product data an admin edits before publishing it as a Product."""

import json
from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Text
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.catalogue.creation import ensure_images_exist
from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.media.image import Image


@storefront.aggregate
class Draft:
    user_id = Identifier(required=True)
    product_data = Text()  # JSON object with the product form fields
    last_updated = DateTime()

    @property
    def data(self) -> dict:
        return json.loads(self.product_data) if self.product_data else {}

    def image_ids(self) -> list[str]:
        data = self.data
        ids = [data.get("image_id"), data.get("hover_image_id"), *(data.get("additional_image_ids") or [])]
        return [str(i) for i in ids if i]

    def detach_image(self, image_id):
        """Drop every reference to ``image_id`` from the saved form data."""
        image_id = str(image_id)
        data = self.data
        for key in ("image_id", "hover_image_id"):
            if data.get(key) and str(data[key]) == image_id:
                data[key] = None
        if data.get("additional_image_ids"):
            data["additional_image_ids"] = [i for i in data["additional_image_ids"] if str(i) != image_id]
        self.product_data = json.dumps(data)

    def touch(self, product_data):
        self.product_data = product_data
        self.last_updated = datetime.now(UTC)


@storefront.command(part_of="Draft")
class SaveDraft:
    user_id = Identifier(required=True)
    product_data = Text(required=True)


@storefront.command(part_of="Draft")
class UpdateDraft:
    draft_id = Identifier(required=True)
    product_data = Text(required=True)


@storefront.command(part_of="Draft")
class DiscardDraft:
    draft_id = Identifier(required=True)


@storefront.command(part_of="Draft")
class PublishDraft:
    draft_id = Identifier(required=True)


@storefront.command_handler(part_of=Draft)
class DraftHandler:
    @handle(SaveDraft)
    def save_draft(self, command):
        draft = Draft(user_id=command.user_id)
        draft.touch(command.product_data)
        current_domain.repository_for(Draft).add(draft)
        return str(draft.id)

    @handle(UpdateDraft)
    def update_draft(self, command):
        repo = current_domain.repository_for(Draft)
        draft = repo.get(command.draft_id)
        draft.touch(command.product_data)
        repo.add(draft)
        return str(draft.id)

    @handle(DiscardDraft)
    def discard_draft(self, command):
        """Delete the draft and its unshared images; returns their store file ids."""
        from storefront.media.references import unreferenced_images

        repo = current_domain.repository_for(Draft)
        draft = repo.get(command.draft_id)

        image_dao = current_domain.repository_for(Image)._dao
        file_ids = []
        for image in unreferenced_images(draft.image_ids(), exclude_draft=draft.id):
            file_ids.append(image.file_id)
            image_dao.delete(image)

        repo._dao.delete(draft)
        return file_ids

    @handle(PublishDraft)
    def publish_draft(self, command):
        repo = current_domain.repository_for(Draft)
        draft = repo.get(command.draft_id)
        data = draft.data

        if not data.get("title") or data.get("price") is None:
            raise ValidationError({"product_data": ["A draft needs a title and a price before publishing"]})

        additional = data.get("additional_image_ids") or []
        ensure_images_exist([data.get("image_id"), data.get("hover_image_id"), *additional])

        product = Product.create(
            title=data["title"],
            price=float(data["price"]),
            product_type=data.get("product_type"),
            description=data.get("description"),
            materials=data.get("materials"),
            product_quantity=data.get("product_quantity", 1),
            sizes=data.get("sizes") or [],
            shipping_options=data.get("shipping_options") or [],
            image_id=data.get("image_id"),
            hover_image_id=data.get("hover_image_id"),
            additional_image_ids=additional,
        )
        current_domain.repository_for(Product).add(product)
        repo._dao.delete(draft)
        return str(product.id)
