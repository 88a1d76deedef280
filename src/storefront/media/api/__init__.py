"""Image API package."""

from storefront.media.api.routes import router

__all__ = ["router"]
