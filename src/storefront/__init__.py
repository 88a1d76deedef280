"""Storefront backend: catalogue, cart, orders, payments and site settings."""
