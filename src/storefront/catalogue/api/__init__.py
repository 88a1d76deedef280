"""Catalogue API package."""

from storefront.catalogue.api.routes import (
    admin_product_router,
    comment_router,
    draft_router,
    product_activity_router,
    product_router,
)

__all__ = [
    "product_router",
    "product_activity_router",
    "admin_product_router",
    "comment_router",
    "draft_router",
]
