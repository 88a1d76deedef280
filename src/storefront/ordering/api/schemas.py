"""Pydantic request/response schemas for the Ordering API."""

from datetime import datetime

from pydantic import BaseModel, Field


# --- Cart ---


class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)
    size: str | None = None
    color: str | None = None
    shipping_name: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "product_id": "d5f9c1a2-8f6e-4b7a-9c3d-1e2f3a4b5c6d",
                    "quantity": 2,
                    "size": "M",
                    "color": "Black",
                    "shipping_name": "Standard",
                }
            ]
        }
    }


class ChangeQuantityRequest(BaseModel):
    quantity: int = Field(ge=1)


class CartItemResponse(BaseModel):
    id: str
    product_id: str
    title: str
    price: float
    image_url: str | None = None
    size: str | None = None
    color: str | None = None
    shipping_name: str | None = None
    shipping_price: float = 0.0
    quantity: int
    line_total: float


class CartResponse(BaseModel):
    items: list[CartItemResponse]
    subtotal: float


class CartItemIdResponse(BaseModel):
    cart_item_id: str


class CountResponse(BaseModel):
    count: int


class StatusResponse(BaseModel):
    status: str = "ok"


# --- Wishlist ---


class AddToWishlistRequest(BaseModel):
    product_id: str


class WishlistItemResponse(BaseModel):
    id: str
    product_id: str
    title: str | None = None
    price: float | None = None
    image_url: str | None = None
    added_at: datetime | None = None


class WishlistCheckResponse(BaseModel):
    in_wishlist: bool
    wishlist_item_id: str | None = None


# --- Orders ---


class AddressResponse(BaseModel):
    name: str | None = None
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None


class OrderResponse(BaseModel):
    id: str
    product_id: str
    title: str
    price: float
    image_url: str | None = None
    size: str | None = None
    color: str | None = None
    quantity: int
    shipping_cost: float = 0.0
    shipping_method: str | None = None
    total: float
    transaction_id: str
    payer_email: str | None = None
    payer_name: str | None = None
    shipping_address: AddressResponse | None = None
    status: str
    source: str
    created_at: datetime | None = None


class HasPurchasedResponse(BaseModel):
    has_purchased: bool
