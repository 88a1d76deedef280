"""Stock arithmetic shared by checkout capture, payment notifications and the cart.

Everything here is pure: callers pass plain stock lines in and write the
returned lines back onto the product.
"""

from dataclasses import dataclass

DEFAULT_COLOR = "Default"


@dataclass(frozen=True)
class StockLine:
    """Quantity on hand for one size/color combination."""

    size: str
    color: str
    quantity: int


@dataclass(frozen=True)
class StockDecrement:
    """Outcome of a decrement request.

    ``clamped`` is set when fewer units were on hand than requested;
    ``shortfall`` is how many units could not be taken.
    """

    lines: tuple[StockLine, ...]
    matched: bool
    clamped: bool = False
    shortfall: int = 0


def _key(value: str | None, default: str = "") -> str:
    return (value or default).strip().lower()


def _matches(line: StockLine, size: str | None, color: str | None) -> bool:
    return _key(line.size) == _key(size) and _key(line.color, DEFAULT_COLOR) == _key(color, DEFAULT_COLOR)


def find_line(lines, size: str | None, color: str | None) -> int | None:
    """Index of the line matching ``size``/``color`` (case-insensitive), or None."""
    for index, line in enumerate(lines):
        if _matches(line, size, color):
            return index
    return None


def clamp_decrement(available: int, quantity: int) -> tuple[int, int]:
    """Return ``(remaining, shortfall)`` after taking ``quantity`` from ``available``."""
    remaining = max(available or 0, 0) - quantity
    if remaining < 0:
        return 0, -remaining
    return remaining, 0


def decrement_stock(lines, size: str | None, color: str | None, quantity: int) -> StockDecrement:
    """Take ``quantity`` units from the line matching ``size`` and ``color``."""
    lines = tuple(lines)
    index = find_line(lines, size, color)
    if index is None:
        return StockDecrement(lines=lines, matched=False)

    line = lines[index]
    remaining, shortfall = clamp_decrement(line.quantity, quantity)
    updated = StockLine(size=line.size, color=line.color, quantity=remaining)
    return StockDecrement(
        lines=lines[:index] + (updated,) + lines[index + 1 :],
        matched=True,
        clamped=shortfall > 0,
        shortfall=shortfall,
    )


def available_stock(lines, aggregate_quantity: int | None, size: str | None, color: str | None) -> int:
    """Units on hand for a size/color, or the aggregate quantity when there are no lines."""
    lines = tuple(lines)
    if not lines:
        return max(aggregate_quantity or 0, 0)

    index = find_line(lines, size, color)
    if index is None:
        return 0
    return max(lines[index].quantity or 0, 0)
