"""Request authentication dependencies.

Missing cookie → 401, bad or expired token → 403, non-admin on an admin
route → 403.
"""

from fastapi import Cookie, Depends, HTTPException
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.identity.security import InvalidToken, is_admin_email, read_token
from storefront.identity.user import User


async def current_user(token: str | None = Cookie(default=None)) -> User:
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        user_id = read_token(token)
    except InvalidToken:
        raise HTTPException(status_code=403, detail="Invalid or expired token") from None

    try:
        return current_domain.repository_for(User).get(user_id)
    except ObjectNotFoundError:
        raise HTTPException(status_code=401, detail="User no longer exists") from None


async def optional_user(token: str | None = Cookie(default=None)) -> User | None:
    if not token:
        return None
    try:
        return await current_user(token)
    except HTTPException:
        return None


async def require_admin(user: User = Depends(current_user)) -> User:
    if not is_admin_email(user.email):
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
