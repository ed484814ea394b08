"""Conversion between human decimal strings and integer base units.

Token amounts are handled purely as digit strings so that 18-decimal values
never pass through floating point.
"""

from __future__ import annotations

import re
from typing import Optional

from .errors import AmountError

_HUMAN_RE = re.compile(r"^[0-9]*(\.[0-9]*)?$")
_BASE_RE = re.compile(r"^[0-9]+$")


def _check_decimals(decimals: int) -> None:
    if decimals < 0:
        raise AmountError(f"decimals must be non-negative, got {decimals}")


def to_base_units(human: str, decimals: int) -> str:
    """Convert ``"1.5"`` with 6 decimals into ``"1500000"``.

    Excess fractional digits are truncated, never rounded.
    """
    _check_decimals(decimals)
    value = (human or "").strip()
    if not value or value == "." or not _HUMAN_RE.match(value):
        raise AmountError(f"Invalid amount: {human!r}")

    int_part, _, frac_part = value.partition(".")
    frac_part = frac_part.ljust(decimals, "0")[:decimals]
    return f"{int_part}{frac_part}".lstrip("0") or "0"


def to_human(
    base_units: str, decimals: int, max_fraction_digits: Optional[int] = None
) -> str:
    """Convert ``"1500000"`` with 6 decimals into ``"1.5"``.

    Args:
        base_units: Non-negative integer string.
        decimals: Token decimal count.
        max_fraction_digits: Optional display cap applied before trimming
            trailing zeros.
    """
    _check_decimals(decimals)
    value = (base_units or "").strip()
    if not _BASE_RE.match(value):
        raise AmountError(f"Invalid base-unit amount: {base_units!r}")

    if decimals == 0:
        return value.lstrip("0") or "0"

    padded = value.rjust(decimals + 1, "0")
    int_part = padded[:-decimals].lstrip("0") or "0"
    frac_part = padded[-decimals:]
    if max_fraction_digits is not None:
        frac_part = frac_part[:max_fraction_digits]
    frac_part = frac_part.rstrip("0")
    return f"{int_part}.{frac_part}" if frac_part else int_part


def is_positive_amount(human: str) -> bool:
    """Return ``True`` when ``human`` parses and is greater than zero."""
    try:
        return to_base_units(human, 18) != "0"
    except AmountError:
        return False
