"""Site API package."""

from storefront.site.api.routes import settings_router, suggestion_router

__all__ = ["settings_router", "suggestion_router"]
