"""Password hashing and session tokens.

Passwords are stored as bcrypt hashes. Sessions are HS256 JWTs carried in
an HTTP-only ``token`` cookie.
"""

import os
from datetime import UTC, datetime, timedelta

import bcrypt
import jwt

TOKEN_COOKIE = "token"
TOKEN_ALGORITHM = "HS256"


class InvalidToken(Exception):
    """Raised when a session token is malformed, forged or expired."""


def _jwt_secret() -> str:
    return os.environ.get("JWT_SECRET", "storefront-development-secret")


def token_ttl() -> timedelta:
    return timedelta(hours=int(os.environ.get("TOKEN_TTL_HOURS", "24")))


def admin_email() -> str:
    return os.environ.get("ADMIN_EMAIL", "").strip().lower()


def is_admin_email(email: str | None) -> bool:
    configured = admin_email()
    return bool(configured) and (email or "").strip().lower() == configured


def hash_password(password: str) -> str:
    rounds = int(os.environ.get("BCRYPT_ROUNDS", "12"))
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def issue_token(user_id: str, now: datetime | None = None) -> str:
    issued_at = now or datetime.now(UTC)
    payload = {
        "user_id": str(user_id),
        "iat": issued_at,
        "exp": issued_at + token_ttl(),
    }
    return jwt.encode(payload, _jwt_secret(), algorithm=TOKEN_ALGORITHM)


def read_token(token: str) -> str:
    """Return the user id carried by ``token``."""
    try:
        payload = jwt.decode(token, _jwt_secret(), algorithms=[TOKEN_ALGORITHM])
    except jwt.InvalidTokenError as exc:
        raise InvalidToken(str(exc)) from exc

    user_id = payload.get("user_id")
    if not user_id:
        raise InvalidToken("Token carries no user id")
    return user_id
