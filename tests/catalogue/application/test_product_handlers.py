"""Application tests for product creation, edits, images and visits."""

import json

import pytest
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from storefront.catalogue.creation import CreateProduct, UpdateProduct
from storefront.catalogue.images import AddProductImages, RecordProductVisit, SetProductImage
from storefront.catalogue.product import Product


class TestCreateProduct:
    def test_persists_sizes_and_shipping(self, make_product):
        product_id = make_product(sizes=[{"size": "M", "color": "Black", "quantity": 3}])

        product = current_domain.repository_for(Product).get(product_id)
        assert product.title == "Red Shirt"
        assert product.available_for("M", "Black") == 3
        assert product.shipping_cost == 5.0

    def test_rejects_unknown_image(self):
        command = CreateProduct(title="Red Shirt", price=25.0, image_id="no-such-image")

        with pytest.raises(ValidationError) as exc:
            current_domain.process(command, asynchronous=False)

        assert "images" in exc.value.messages

    def test_accepts_registered_images(self, make_image):
        image_id = make_image()
        command = CreateProduct(
            title="Red Shirt",
            price=25.0,
            image_id=image_id,
            additional_image_ids=json.dumps([image_id]),
        )

        product_id = current_domain.process(command, asynchronous=False)

        assert current_domain.repository_for(Product).get(product_id).image_ids() == [image_id]


class TestUpdateProduct:
    def test_replaces_details_and_sizes(self, make_product):
        product_id = make_product(sizes=[{"size": "M", "color": "Black", "quantity": 3}])

        current_domain.process(
            UpdateProduct(
                product_id=product_id,
                title="Crimson Shirt",
                price=30.0,
                sizes=json.dumps([{"size": "L", "color": "Red", "quantity": 5}]),
            ),
            asynchronous=False,
        )

        product = current_domain.repository_for(Product).get(product_id)
        assert product.title == "Crimson Shirt"
        assert [(v.size, v.color, v.quantity) for v in product.ordered_sizes()] == [("L", "Red", 5)]

    def test_omitted_lists_are_kept(self, make_product):
        product_id = make_product(sizes=[{"size": "M", "color": "Black", "quantity": 3}])

        current_domain.process(UpdateProduct(product_id=product_id, title="Red Shirt", price=20.0), asynchronous=False)

        product = current_domain.repository_for(Product).get(product_id)
        assert product.price == 20.0
        assert len(product.sizes) == 1
        assert product.shipping_method == "Standard"


class TestProductImages:
    def test_set_hover_image(self, make_product, make_image):
        product_id = make_product()
        image_id = make_image()

        current_domain.process(
            SetProductImage(product_id=product_id, field="hover_image", image_id=image_id), asynchronous=False
        )

        assert current_domain.repository_for(Product).get(product_id).hover_image_id == image_id

    def test_add_additional_images(self, make_product, make_image):
        product_id = make_product()
        first, second = make_image(), make_image()

        current_domain.process(
            AddProductImages(product_id=product_id, image_ids=json.dumps([first, second])), asynchronous=False
        )

        assert current_domain.repository_for(Product).get(product_id).additional_images == [first, second]


class TestRecordVisit:
    def test_counts_visits(self, make_product):
        product_id = make_product()

        current_domain.process(RecordProductVisit(product_id=product_id), asynchronous=False)
        visits = current_domain.process(RecordProductVisit(product_id=product_id), asynchronous=False)

        assert visits == 2
