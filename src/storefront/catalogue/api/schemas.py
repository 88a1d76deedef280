"""Pydantic request/response schemas for the Catalogue API."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


# --- Product schemas ---


class SizeSchema(BaseModel):
    size: str = Field(min_length=1, max_length=50)
    color: str = Field(default="Default", max_length=50)
    quantity: int = Field(default=0, ge=0)
    size_price: float | None = Field(default=None, ge=0)


class ShippingOptionSchema(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    price: float = Field(default=0.0, ge=0)


class UpdateProductRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    product_type: str | None = None
    price: float = Field(ge=0)
    description: str | None = None
    materials: str | None = None
    product_quantity: int | None = Field(default=None, ge=0)
    sizes: list[SizeSchema] | None = None
    shipping_options: list[ShippingOptionSchema] | None = None


class CreateProductRequest(UpdateProductRequest):
    product_quantity: int = Field(default=1, ge=0)
    sizes: list[SizeSchema] = []
    shipping_options: list[ShippingOptionSchema] = []
    image_id: str | None = None
    hover_image_id: str | None = None
    additional_image_ids: list[str] = []

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "title": "Red Shirt",
                    "product_type": "Shirts",
                    "price": 25.0,
                    "sizes": [{"size": "M", "color": "Black", "quantity": 3}],
                    "shipping_options": [{"name": "Standard", "price": 5.0}],
                }
            ]
        }
    }


class AddProductImagesRequest(BaseModel):
    image_ids: list[str] = Field(min_length=1)


class UpdateProductImageRequest(BaseModel):
    field: Literal["image", "hover_image"]
    image_id: str


class ImageRef(BaseModel):
    id: str
    url: str


class ProductResponse(BaseModel):
    id: str
    title: str
    product_type: str | None = None
    price: float
    description: str | None = None
    materials: str | None = None
    product_quantity: int
    sizes: list[SizeSchema] = []
    shipping_options: list[ShippingOptionSchema] = []
    image: ImageRef | None = None
    hover_image: ImageRef | None = None
    additional_images: list[ImageRef] = []
    average_rating: float = 0.0
    rating_count: int = 0
    visits: int = 0
    created_at: datetime | None = None


class ProductDetailResponse(ProductResponse):
    recommendations: list[ProductResponse] = []


class ProductIdResponse(BaseModel):
    product_id: str


class VisitResponse(BaseModel):
    visits: int


class StatusResponse(BaseModel):
    status: str = "ok"


# --- Rating & comment schemas ---


class RateProductRequest(BaseModel):
    value: int = Field(ge=1, le=5)


class RatingResponse(BaseModel):
    value: int | None = None
    average_rating: float = 0.0
    rating_count: int = 0


class AddCommentRequest(BaseModel):
    text: str = Field(min_length=1, max_length=2000)
    parent_id: str | None = None


class CommentResponse(BaseModel):
    id: str
    user_id: str
    user_name: str | None = None
    text: str
    parent_id: str | None = None
    likes: int = 0
    dislikes: int = 0
    created_at: datetime | None = None
    replies: list["CommentResponse"] = []


class DeletedResponse(BaseModel):
    deleted: int


# --- Draft schemas ---


class DraftRequest(BaseModel):
    product_data: dict


class DraftResponse(BaseModel):
    id: str
    user_id: str
    product_data: dict
    last_updated: datetime | None = None


class CountResponse(BaseModel):
    count: int
