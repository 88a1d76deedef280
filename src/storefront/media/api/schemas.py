"""Pydantic response schemas for the image API."""

from datetime import datetime

from pydantic import BaseModel


class ProductRef(BaseModel):
    id: str
    title: str


class ImageResponse(BaseModel):
    id: str
    filename: str
    url: str
    content_type: str
    size: int
    original_name: str | None = None
    uploaded_at: datetime | None = None
    products: list[ProductRef] | None = None


class DeleteImageResponse(BaseModel):
    status: str
    detached_products: int = 0
