"""Pydantic request/response schemas for the account API."""

from datetime import datetime

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: str = Field(min_length=3, max_length=254)
    password: str = Field(min_length=6, max_length=128)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Jane Doe",
                    "email": "jane@example.com",
                    "password": "correct-horse",
                }
            ]
        }
    }


class LoginRequest(BaseModel):
    email: str
    password: str


class AddressSchema(BaseModel):
    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = Field(default=None, max_length=2)


class UpdateProfileRequest(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    email: str | None = Field(default=None, max_length=254)
    password: str | None = Field(default=None, min_length=6, max_length=128)
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    avatar_image_id: str | None = None
    address: AddressSchema | None = None


class AdminUpdateUserRequest(BaseModel):
    name: str | None = Field(default=None, max_length=100)
    email: str | None = Field(default=None, max_length=254)


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    avatar_image_id: str | None = None
    address: AddressSchema | None = None
    is_admin: bool = False
    created_at: datetime | None = None


class MessageResponse(BaseModel):
    message: str


class CheckAdminResponse(BaseModel):
    is_admin: bool
