"""Tests for display rounding helpers."""

from neonest.services.formatting import format_fixed, is_shown, plain_number, round1


def test_round1_rounds_halves_up() -> None:
    assert round1(2.25) == 2.3
    assert round1(-2.25) == -2.2
    assert round1(0.04) == 0


def test_format_fixed() -> None:
    assert format_fixed(9.86) == "9.9"
    assert format_fixed(9.856, digits=2) == "9.86"


def test_plain_number() -> None:
    assert plain_number(120.0) == "120"
    assert plain_number(-5.2) == "-5.2"


def test_is_shown_hides_doses_below_display_precision() -> None:
    assert is_shown(0.04) is False
    assert is_shown(-0.06) is True
    assert is_shown(0) is False
