"""Encodings that carry cart context through the payment provider.

Line references (``productId|size|color``) ride on provider order items as
the SKU. The notification ``custom`` field carries
``userId|size|color|quantity`` for single-item purchases.
"""

from dataclasses import dataclass

from protean.exceptions import ValidationError

from storefront.catalogue.stock import DEFAULT_COLOR

SEPARATOR = "|"


@dataclass(frozen=True)
class LineReference:
    product_id: str
    size: str | None
    color: str


@dataclass(frozen=True)
class CustomField:
    user_id: str
    size: str | None
    color: str
    quantity: int


def encode_line_reference(product_id, size=None, color=None) -> str:
    return SEPARATOR.join([str(product_id), size or "", color or DEFAULT_COLOR])


def decode_line_reference(reference: str) -> LineReference:
    parts = (reference or "").split(SEPARATOR)
    if not parts[0]:
        raise ValidationError({"reference": [f"Malformed line reference: {reference!r}"]})
    size = parts[1] if len(parts) > 1 and parts[1] else None
    color = parts[2] if len(parts) > 2 and parts[2] else DEFAULT_COLOR
    return LineReference(product_id=parts[0], size=size, color=color)


def parse_custom_field(custom: str, fallback_quantity=None) -> CustomField:
    """Split ``userId|size|color|quantity``; quantity falls back to the notification's own."""
    parts = [part.strip() for part in (custom or "").split(SEPARATOR)]
    if not parts[0]:
        raise ValidationError({"custom": [f"Malformed custom field: {custom!r}"]})

    raw_quantity = parts[3] if len(parts) > 3 and parts[3] else fallback_quantity
    try:
        quantity = int(raw_quantity) if raw_quantity not in (None, "") else 1
    except (TypeError, ValueError):
        raise ValidationError({"custom": [f"Invalid quantity in custom field: {raw_quantity!r}"]}) from None
    if quantity < 1:
        raise ValidationError({"custom": [f"Invalid quantity in custom field: {quantity}"]})

    return CustomField(
        user_id=parts[0],
        size=parts[1] if len(parts) > 1 and parts[1] else None,
        color=parts[2] if len(parts) > 2 and parts[2] else DEFAULT_COLOR,
        quantity=quantity,
    )
