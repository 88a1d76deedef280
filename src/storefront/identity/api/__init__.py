"""Identity API package."""

from storefront.identity.api.routes import account_router, users_router

__all__ = ["account_router", "users_router"]
