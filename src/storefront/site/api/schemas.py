"""Pydantic request/response schemas for page settings and suggestions."""

from datetime import datetime

from pydantic import BaseModel, Field


class UpdatePageSettingsRequest(BaseModel):
    icon_image_id: str | None = None
    logo_image_id: str | None = None
    typography_headers: str | None = Field(default=None, max_length=100)
    typography_body: str | None = Field(default=None, max_length=100)
    colors: dict[str, str] | None = None
    filters: list[str] | None = None
    message_per_day: int | None = Field(default=None, ge=0)
    message_char_limit: int | None = Field(default=None, ge=1)


class PageSettingsResponse(BaseModel):
    icon_image_id: str | None = None
    icon_url: str | None = None
    logo_image_id: str | None = None
    logo_url: str | None = None
    typography_headers: str
    typography_body: str
    colors: dict[str, str]
    filters: list[str]
    message_per_day: int
    message_char_limit: int
    updated_at: datetime | None = None


class SuggestionRequest(BaseModel):
    message: str = Field(min_length=1)


class SuggestionResponse(BaseModel):
    id: str
    user_id: str
    user_name: str | None = None
    user_email: str | None = None
    message: str
    created_at: datetime | None = None
