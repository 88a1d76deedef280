"""Payments API package."""

from storefront.payments.api.routes import paypal_router

__all__ = ["paypal_router"]
