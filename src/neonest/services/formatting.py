"""Rounding and display helpers shared by the calculators."""

import math


def round1(value: float) -> float:
    """Round to 0.1, halves toward positive infinity."""
    return math.floor(value * 10 + 0.5) / 10


def format_fixed(value: float, digits: int = 1) -> str:
    """Format a value with a fixed number of decimals."""
    if digits == 1:
        value = round1(value)
    return f"{value:.{digits}f}"


def plain_number(value: float) -> str:
    """Render a number without a trailing '.0' for whole values."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def is_shown(volume_ml: float) -> bool:
    """Return True when a volume rounds to a visible dose."""
    return round1(abs(volume_ml)) > 0
