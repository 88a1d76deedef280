"""FastAPI routes for accounts: sessions, profiles and admin user management."""

import os

from fastapi import APIRouter, Depends, HTTPException, Response
from protean.utils.globals import current_domain

from storefront.identity.account import RemoveUser
from storefront.identity.api.auth import current_user, optional_user, require_admin
from storefront.identity.api.schemas import (
    AddressSchema,
    AdminUpdateUserRequest,
    CheckAdminResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    UpdateProfileRequest,
    UserResponse,
)
from storefront.identity.profile import UpdateProfile
from storefront.identity.registration import RegisterUser, find_user_by_email
from storefront.identity.security import (
    TOKEN_COOKIE,
    hash_password,
    is_admin_email,
    issue_token,
    token_ttl,
    verify_password,
)
from storefront.identity.user import User, normalize_email
from storefront.utils.query import find_all


def user_response(user: User) -> UserResponse:
    address = None
    if user.address is not None:
        address = AddressSchema(
            address_line1=user.address.address_line1,
            address_line2=user.address.address_line2,
            city=user.address.city,
            state=user.address.state,
            postal_code=user.address.postal_code,
            country=user.address.country,
        )
    return UserResponse(
        id=str(user.id),
        name=user.name,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        phone=user.phone,
        avatar_image_id=str(user.avatar_image_id) if user.avatar_image_id else None,
        address=address,
        is_admin=is_admin_email(user.email),
        created_at=user.created_at,
    )


def _set_session_cookie(response: Response, user: User) -> None:
    production = os.environ.get("PROTEAN_ENV") == "production"
    response.set_cookie(
        TOKEN_COOKIE,
        issue_token(str(user.id)),
        max_age=int(token_ttl().total_seconds()),
        httponly=True,
        samesite="lax",
        secure=production,
    )


def _guard_admin_email(user: User, new_email: str | None) -> None:
    """The admin account keeps its email, and nobody else may take it."""
    if new_email is None or normalize_email(new_email) == user.email:
        return
    if is_admin_email(user.email):
        raise HTTPException(status_code=403, detail="The admin email cannot be changed")
    if is_admin_email(new_email):
        raise HTTPException(status_code=403, detail="This email is reserved")


# ---------------------------------------------------------------------------
# Session & self-service Router
# ---------------------------------------------------------------------------
account_router = APIRouter(tags=["accounts"])


@account_router.post("/register", status_code=201, response_model=MessageResponse)
async def register(body: RegisterRequest) -> MessageResponse:
    if find_user_by_email(body.email) is not None:
        raise HTTPException(status_code=400, detail="User already exists")

    command = RegisterUser(
        name=body.name,
        email=body.email,
        password_hash=hash_password(body.password),
    )
    current_domain.process(command, asynchronous=False)
    return MessageResponse(message="User created successfully")


@account_router.post("/login", response_model=UserResponse)
async def login(body: LoginRequest, response: Response) -> UserResponse:
    user = find_user_by_email(body.email)
    if user is None or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    _set_session_cookie(response, user)
    return user_response(user)


@account_router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> MessageResponse:
    response.delete_cookie(TOKEN_COOKIE)
    return MessageResponse(message="Logged out successfully")


@account_router.get("/get-user-details", response_model=UserResponse)
async def get_user_details(user: User = Depends(current_user)) -> UserResponse:
    return user_response(user)


@account_router.put("/update-user", response_model=UserResponse)
async def update_user(body: UpdateProfileRequest, user: User = Depends(current_user)) -> UserResponse:
    _guard_admin_email(user, body.email)

    address = body.address.model_dump() if body.address else {}
    command = UpdateProfile(
        user_id=str(user.id),
        name=body.name,
        email=body.email,
        password_hash=hash_password(body.password) if body.password else None,
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
        avatar_image_id=body.avatar_image_id,
        **address,
    )
    current_domain.process(command, asynchronous=False)
    return user_response(current_domain.repository_for(User).get(str(user.id)))


@account_router.delete("/delete-user", response_model=MessageResponse)
async def delete_user(response: Response, user: User = Depends(current_user)) -> MessageResponse:
    if is_admin_email(user.email):
        raise HTTPException(status_code=403, detail="The admin account cannot be deleted")

    current_domain.process(RemoveUser(user_id=str(user.id)), asynchronous=False)
    response.delete_cookie(TOKEN_COOKIE)
    return MessageResponse(message="Account deleted")


@account_router.get("/api/check-admin", response_model=CheckAdminResponse)
async def check_admin(user: User | None = Depends(optional_user)) -> CheckAdminResponse:
    return CheckAdminResponse(is_admin=user is not None and is_admin_email(user.email))


# ---------------------------------------------------------------------------
# Admin user management Router
# ---------------------------------------------------------------------------
users_router = APIRouter(prefix="/api/users", tags=["users"], dependencies=[Depends(require_admin)])


@users_router.get("", response_model=list[UserResponse])
async def list_users() -> list[UserResponse]:
    users = sorted(find_all(User), key=lambda u: u.created_at, reverse=True)
    return [user_response(user) for user in users]


@users_router.put("/{user_id}", response_model=UserResponse)
async def admin_update_user(user_id: str, body: AdminUpdateUserRequest) -> UserResponse:
    user = current_domain.repository_for(User).get(user_id)
    _guard_admin_email(user, body.email)

    command = UpdateProfile(user_id=user_id, name=body.name, email=body.email)
    current_domain.process(command, asynchronous=False)
    return user_response(current_domain.repository_for(User).get(user_id))


@users_router.delete("/{user_id}", response_model=MessageResponse)
async def admin_delete_user(user_id: str) -> MessageResponse:
    user = current_domain.repository_for(User).get(user_id)
    if is_admin_email(user.email):
        raise HTTPException(status_code=403, detail="The admin account cannot be deleted")

    current_domain.process(RemoveUser(user_id=user_id), asynchronous=False)
    return MessageResponse(message="User deleted")
