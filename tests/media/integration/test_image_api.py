"""Integration tests for image upload, serving and gallery management."""

import pytest
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.media.api import router
from storefront.media.image import Image
from storefront.utils.query import find_one

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 4


@pytest.fixture()
def client(build_client):
    return build_client(router)


@pytest.fixture()
def store(client):
    return client.app.state.image_store


def _upload(client, headers, data=PNG_BYTES, name="red shirt.png", content_type="image/png"):
    return client.post("/api/upload/productImage", files={"image": (name, data, content_type)}, headers=headers)


class TestUpload:
    def test_requires_login(self, client):
        assert _upload(client, headers={}).status_code == 401

    def test_upload_then_fetch_returns_identical_bytes(self, client, make_user, auth_cookie):
        uploaded = _upload(client, auth_cookie(make_user()))

        assert uploaded.status_code == 201
        body = uploaded.json()
        assert body["filename"].endswith("-red-shirt.png")
        assert body["url"] == f"http://testserver/api/images/{body['filename']}"
        assert body["size"] == len(PNG_BYTES)

        fetched = client.get(f"/api/images/{body['filename']}")
        assert fetched.status_code == 200
        assert fetched.content == PNG_BYTES
        assert fetched.headers["content-type"] == "image/png"
        assert fetched.headers["cache-control"] == "public, max-age=31536000"
        assert "expires" in fetched.headers

    def test_rejects_non_images(self, client, make_user, auth_cookie):
        response = _upload(client, auth_cookie(make_user()), data=b"hello", name="notes.txt", content_type="text/plain")

        assert response.status_code == 400

    def test_rejects_empty_files(self, client, make_user, auth_cookie):
        assert _upload(client, auth_cookie(make_user()), data=b"").status_code == 400


class TestFetch:
    def test_unknown_filename(self, client):
        assert client.get("/api/images/nope.png").status_code == 404

    def test_metadata_without_stored_file(self, client, make_image):
        make_image(filename="1700000000000-orphan.png", file_id="not-in-store")

        assert client.get("/api/images/1700000000000-orphan.png").status_code == 404


class TestGallery:
    def test_admin_only(self, client, make_user, auth_cookie):
        assert client.get("/api/images", headers=auth_cookie(make_user())).status_code == 403

    def test_lists_images_with_products(self, client, admin_id, auth_cookie, make_image, make_product):
        image_id = make_image()
        make_product(image_id=image_id)

        response = client.get("/api/images?include_products=true", headers=auth_cookie(admin_id))

        assert response.status_code == 200
        [image] = response.json()
        assert image["id"] == image_id
        assert [p["title"] for p in image["products"]] == ["Red Shirt"]

    def test_image_products(self, client, admin_id, auth_cookie, make_image, make_product):
        image_id = make_image()
        product_id = make_product(hover_image_id=image_id)

        response = client.get(f"/api/images/{image_id}/products", headers=auth_cookie(admin_id))

        assert response.json() == [{"id": product_id, "title": "Red Shirt"}]


class TestDelete:
    def test_image_in_use_is_refused(self, client, admin_id, auth_cookie, make_product):
        image_id = _upload(client, auth_cookie(admin_id)).json()["id"]
        make_product(image_id=image_id)

        response = client.delete(f"/api/images/{image_id}", headers=auth_cookie(admin_id))

        assert response.status_code == 400
        assert response.json()["detail"]["message"] == "Image is in use"
        assert response.json()["detail"]["products"][0]["title"] == "Red Shirt"

    def test_forced_delete_detaches_and_purges(self, client, store, admin_id, auth_cookie, make_product):
        uploaded = _upload(client, auth_cookie(admin_id)).json()
        product_id = make_product(image_id=uploaded["id"])

        response = client.delete(f"/api/images/{uploaded['id']}?force=true", headers=auth_cookie(admin_id))

        assert response.status_code == 200
        assert response.json() == {"status": "deleted", "detached_products": 1}
        assert current_domain.repository_for(Product).get(product_id).image_id is None
        assert store.files == {}
        assert client.get(f"/api/images/{uploaded['filename']}").status_code == 404

    def test_unknown_image(self, client, admin_id, auth_cookie):
        assert client.delete("/api/images/missing", headers=auth_cookie(admin_id)).status_code == 404


class TestReplace:
    def test_replaces_file_and_keeps_id(self, client, store, admin_id, auth_cookie, make_product):
        original = _upload(client, auth_cookie(admin_id)).json()
        product_id = make_product(image_id=original["id"])

        response = client.post(
            f"/api/images/{original['id']}/replace",
            files={"image": ("blue.jpg", b"\xff\xd8\xff new bytes", "image/jpeg")},
            headers=auth_cookie(admin_id),
        )

        assert response.status_code == 200
        assert response.json()["id"] == original["id"]
        assert response.json()["content_type"] == "image/jpeg"
        assert str(current_domain.repository_for(Product).get(product_id).image_id) == original["id"]
        assert len(store.files) == 1
        assert find_one(Image, filename=original["filename"]) is None
        assert client.get(f"/api/images/{response.json()['filename']}").content == b"\xff\xd8\xff new bytes"
