"""Product creation and detail edits."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.media.image import Image
from storefront.utils.query import find_one


def ensure_images_exist(image_ids) -> None:
    missing = [image_id for image_id in image_ids if image_id and find_one(Image, id=str(image_id)) is None]
    if missing:
        raise ValidationError({"images": [f"Unknown image id(s): {', '.join(map(str, missing))}"]})


def _load_list(raw) -> list:
    return json.loads(raw) if raw else []


@storefront.command(part_of="Product")
class CreateProduct:
    title: String(required=True, max_length=255)
    product_type: String(max_length=100)
    price: Float(required=True, min_value=0.0)
    description: Text()
    materials: Text()
    product_quantity: Integer(default=1, min_value=0)
    sizes: Text()  # JSON array of {size, color, quantity, size_price}
    shipping_options: Text()  # JSON array of {name, price}
    image_id: Identifier()
    hover_image_id: Identifier()
    additional_image_ids: Text()  # JSON array of Image ids


@storefront.command(part_of="Product")
class UpdateProduct:
    product_id: Identifier(required=True)
    title: String(required=True, max_length=255)
    product_type: String(max_length=100)
    price: Float(required=True, min_value=0.0)
    description: Text()
    materials: Text()
    product_quantity: Integer(min_value=0)
    sizes: Text()
    shipping_options: Text()


@storefront.command_handler(part_of=Product)
class ProductDetailsHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        additional = _load_list(command.additional_image_ids)
        ensure_images_exist([command.image_id, command.hover_image_id, *additional])

        product = Product.create(
            title=command.title,
            price=command.price,
            product_type=command.product_type,
            description=command.description,
            materials=command.materials,
            product_quantity=command.product_quantity,
            sizes=_load_list(command.sizes),
            shipping_options=_load_list(command.shipping_options),
            image_id=command.image_id,
            hover_image_id=command.hover_image_id,
            additional_image_ids=additional,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(UpdateProduct)
    def update_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.update_details(
            title=command.title,
            price=command.price,
            product_type=command.product_type,
            description=command.description,
            materials=command.materials,
            product_quantity=command.product_quantity,
            sizes=_load_list(command.sizes) if command.sizes is not None else None,
            shipping_options=_load_list(command.shipping_options) if command.shipping_options is not None else None,
        )
        repo.add(product)
        return str(product.id)
