from __future__ import annotations

import math

import pytest

from weightcheck import util


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("49.4", 49.4),
        (" 12. ", 12.0),
        (".5", 0.5),
        ("+50", 50.0),
        (50, 50.0),
        ("-1.5", -1.5),
    ],
)
def test_parse_number_accepts_decimal_literals(raw, expected) -> None:
    assert util.parse_number(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", [None, "", "  ", "abc", "4 9", "nan", "1e3", ".", "-", True, math.inf, math.nan])
def test_parse_number_rejects_everything_else(raw) -> None:
    assert util.parse_number(raw) is None


def test_weight_value_rejects_negative() -> None:
    assert util.weight_value("-0.1") is None
    assert util.weight_value("0") == 0.0


def test_round_half_up_uses_exact_binary_value() -> None:
    assert util.round_half_up(49.75, 1) == 49.8
    assert util.round_half_up(0.25, 1) == 0.3
    # 2.675 is stored as 2.67499999...
    assert util.round_half_up(2.675, 2) == 2.67


def test_stdev_is_population_and_zero_for_single_value() -> None:
    assert util.stdev_of([7.0]) == 0.0
    assert util.stdev_of([]) == 0.0
    assert util.stdev_of([1, 2, 3, 4]) == pytest.approx(math.sqrt(1.25))


def test_raw_text_keeps_typed_text() -> None:
    assert util.raw_text(None) == ""
    assert util.raw_text("49.") == "49."
    assert util.raw_text(50.0) == "50"
    assert util.raw_text(49.4) == "49.4"


def test_parse_number_out_of_float_range() -> None:
    assert util.parse_number(10 ** 400) is None
    assert util.parse_number("1" + "0" * 400) is None


def test_round_half_up_large_values_pass_through() -> None:
    assert util.round_half_up(1e20, 1) == 1e20
    assert util.round_half_up(1e308, 1) == 1e308


def test_mean_overflow_counts_as_zero() -> None:
    assert util.mean_of([1e308, 1e308]) == 0.0
    # exact-fraction pstdev stays finite on newer interpreters and overflows on older ones
    assert math.isfinite(util.stdev_of([1e308, 0.0]))
