"""Product image references and visit counting."""

import json

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.creation import ensure_images_exist
from storefront.catalogue.product import Product
from storefront.domain import storefront


@storefront.command(part_of="Product")
class SetProductImage:
    product_id: Identifier(required=True)
    field: String(required=True, max_length=20)  # image | hover_image
    image_id: Identifier(required=True)


@storefront.command(part_of="Product")
class AddProductImages:
    product_id: Identifier(required=True)
    image_ids: Text(required=True)  # JSON array of Image ids


@storefront.command(part_of="Product")
class RecordProductVisit:
    product_id: Identifier(required=True)


@storefront.command_handler(part_of=Product)
class ProductImagesHandler:
    @handle(SetProductImage)
    def set_image(self, command):
        ensure_images_exist([command.image_id])
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.set_image(command.field, command.image_id)
        repo.add(product)

    @handle(AddProductImages)
    def add_images(self, command):
        image_ids = json.loads(command.image_ids)
        ensure_images_exist(image_ids)
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.add_additional_images(image_ids)
        repo.add(product)

    @handle(RecordProductVisit)
    def record_visit(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.record_visit()
        repo.add(product)
        return product.visits
