"""Postal address value object, shared by user profiles and orders."""

from protean.fields import String

from storefront.domain import storefront


@storefront.value_object
class Address:
    name = String(max_length=255)
    address_line1 = String(max_length=255)
    address_line2 = String(max_length=255)
    city = String(max_length=100)
    state = String(max_length=100)
    postal_code = String(max_length=20)
    country = String(max_length=2)
