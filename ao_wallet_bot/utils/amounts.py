"""Conversion between display amounts and integer base units.

All arithmetic goes through :class:`decimal.Decimal` with a single rounding
policy (banker's rounding) so transfers, swaps and balance displays agree.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation, localcontext

from ao_wallet_bot.errors import InvalidAmount

ROUNDING = ROUND_HALF_EVEN
DISPLAY_PLACES = 6
ALL_KEYWORDS = frozenset({"all", "max"})

_INTEGER_PATTERN = re.compile(r"^\d+$")
# Plenty for 10^decimals scaling of realistic token supplies.
_PRECISION = 80


def is_all_keyword(text: str | None) -> bool:
    """Return True for the "whole balance" sentinels ``all`` / ``max``."""
    if text is None:
        return False
    return text.strip().lower() in ALL_KEYWORDS


def is_base_units(value: str | None) -> bool:
    """Return True if ``value`` is a non-negative integer string."""
    return bool(value) and bool(_INTEGER_PATTERN.match(value.strip()))


def parse_decimal(value: str | int | Decimal) -> Decimal:
    """Parse a finite decimal, raising InvalidAmount otherwise."""
    if isinstance(value, Decimal):
        parsed = value
    else:
        try:
            parsed = Decimal(str(value).strip().replace(",", ""))
        except (InvalidOperation, ValueError):
            raise InvalidAmount(str(value), "not a number") from None
    if not parsed.is_finite():
        raise InvalidAmount(str(value), "not a number")
    return parsed


def to_base_units(display: str, decimals: int) -> str:
    """Convert a human amount such as ``"0.1"`` into an integer string.

    Raises:
        InvalidAmount: unparsable, non-positive, or rounds to zero base units.
    """
    if decimals < 0:
        raise ValueError("decimals must be >= 0")
    if is_all_keyword(display):
        raise InvalidAmount(display, "the whole-balance keyword needs a live balance")

    amount = parse_decimal(display)
    if amount <= 0:
        raise InvalidAmount(display)

    try:
        with localcontext() as ctx:
            ctx.prec = _PRECISION
            scaled = amount.scaleb(decimals).quantize(Decimal(1), rounding=ROUNDING)
    except InvalidOperation:
        raise InvalidAmount(display, "too large") from None

    if scaled <= 0:
        raise InvalidAmount(display, f"smaller than the token's {decimals}-decimal precision")
    return str(int(scaled))


def to_display_units(base: str | int, decimals: int) -> str:
    """Convert base units back into a trimmed decimal string (max 6 places)."""
    if decimals < 0:
        raise ValueError("decimals must be >= 0")
    value = parse_decimal(base)

    places = min(decimals, DISPLAY_PLACES)
    try:
        with localcontext() as ctx:
            ctx.prec = _PRECISION
            display = value.scaleb(-decimals).quantize(
                Decimal(1).scaleb(-places), rounding=ROUNDING
            )
    except InvalidOperation:
        raise InvalidAmount(str(base), "too large") from None

    text = format(display, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        text = "0"
    return text


def is_positive(value: str | None) -> bool:
    """Compare against zero numerically so ``"0"``, ``"0.0"``, ``"000"`` are all zero."""
    if value is None:
        return False
    try:
        return parse_decimal(value) > 0
    except InvalidAmount:
        return False


__all__ = [
    "ALL_KEYWORDS",
    "DISPLAY_PLACES",
    "ROUNDING",
    "is_all_keyword",
    "is_base_units",
    "is_positive",
    "parse_decimal",
    "to_base_units",
    "to_display_units",
]
