"""Integration tests for the cart and wishlist endpoints."""

import pytest

from storefront.ordering.api import cart_router, wishlist_router


@pytest.fixture()
def client(build_client):
    return build_client(cart_router, wishlist_router)


@pytest.fixture()
def headers(make_user, auth_cookie):
    return auth_cookie(make_user())


@pytest.fixture()
def red_shirt(make_product):
    return make_product(sizes=[{"size": "M", "color": "Black", "quantity": 3}])


def _add(client, headers, product_id, quantity=1, **extra):
    return client.post(
        "/api/cart",
        json={"product_id": product_id, "quantity": quantity, "size": "M", "color": "Black", **extra},
        headers=headers,
    )


class TestCart:
    def test_requires_login(self, client):
        assert client.get("/api/cart").status_code == 401

    def test_add_and_view(self, client, headers, red_shirt):
        added = _add(client, headers, red_shirt, quantity=2)

        assert added.status_code == 201
        cart = client.get("/api/cart", headers=headers).json()
        assert [item["quantity"] for item in cart["items"]] == [2]
        assert cart["subtotal"] == 50.0
        assert client.get("/api/cart/count", headers=headers).json() == {"count": 2}

    def test_adding_past_stock_reports_limit(self, client, headers, red_shirt):
        _add(client, headers, red_shirt, quantity=2)

        response = _add(client, headers, red_shirt, quantity=2)

        assert response.status_code == 400
        assert response.json()["detail"] == {
            "message": "Maximum stock reached!",
            "available_stock": 3,
            "current_in_cart": 2,
        }

    def test_change_quantity_within_stock(self, client, headers, red_shirt):
        item_id = _add(client, headers, red_shirt).json()["cart_item_id"]

        assert client.patch(f"/api/cart/{item_id}", json={"quantity": 3}, headers=headers).status_code == 200
        assert client.patch(f"/api/cart/{item_id}", json={"quantity": 4}, headers=headers).status_code == 400

    def test_remove(self, client, headers, red_shirt):
        item_id = _add(client, headers, red_shirt).json()["cart_item_id"]

        response = client.delete(f"/api/cart/{item_id}", headers=headers)

        assert response.json() == {"status": "removed"}
        assert client.get("/api/cart/count", headers=headers).json() == {"count": 0}

    def test_unknown_shipping_option(self, client, headers, red_shirt):
        assert _add(client, headers, red_shirt, shipping_name="Teleport").status_code == 400


class TestWishlist:
    def test_add_check_remove(self, client, headers, red_shirt):
        added = client.post("/api/wishlist", json={"product_id": red_shirt}, headers=headers)
        assert added.status_code == 201
        item_id = added.json()["wishlist_item_id"]

        check = client.get(f"/api/wishlist/check/{red_shirt}", headers=headers).json()
        assert check == {"in_wishlist": True, "wishlist_item_id": item_id}
        assert [item["title"] for item in client.get("/api/wishlist", headers=headers).json()] == ["Red Shirt"]

        client.delete(f"/api/wishlist/{item_id}", headers=headers)
        assert client.get(f"/api/wishlist/check/{red_shirt}", headers=headers).json()["in_wishlist"] is False

    def test_unknown_product(self, client, headers):
        assert client.post("/api/wishlist", json={"product_id": "missing"}, headers=headers).status_code == 404
