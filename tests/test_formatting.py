"""
Unit tests for Rupiah formatting and margin presentation.
"""
import pytest

from pos_api.common.currency import format_rupiah, format_rupiah_plain
from pos_api.reports.schemas import MarginTier
from pos_api.reports.services import classify_margin, format_margin, profit_margin_percent


@pytest.mark.parametrize("amount, expected", [
    (0, "Rp 0,00"),
    (45000, "Rp 45.000,00"),
    (1234567, "Rp 1.234.567,00"),
    (1234.5, "Rp 1.234,50"),
    ("2500", "Rp 2.500,00"),
    (-15000, "-Rp 15.000,00"),
])
def test_format_rupiah(amount, expected):
    assert format_rupiah(amount) == expected


@pytest.mark.parametrize("amount", [None, "abc", float("nan")])
def test_format_rupiah_invalid_amount(amount):
    assert format_rupiah(amount) == "Rp 0,00"


@pytest.mark.parametrize("amount, expected", [
    (45000, "Rp 45.000"),
    (5000000, "Rp 5.000.000"),
    (1234.5, "Rp 1.234,5"),
    (0, "Rp 0"),
])
def test_format_rupiah_plain(amount, expected):
    assert format_rupiah_plain(amount) == expected


def test_profit_margin_percent():
    assert profit_margin_percent(150000, 110000) == pytest.approx(73.333, rel=1e-3)


def test_profit_margin_without_revenue_is_zero():
    assert profit_margin_percent(0, 0) == 0
    assert profit_margin_percent(0, -5000) == 0


@pytest.mark.parametrize("percent, tier", [
    (73.3, MarginTier.STRONG),
    (50, MarginTier.STRONG),
    (49.99, MarginTier.GOOD),
    (30, MarginTier.GOOD),
    (29.9, MarginTier.WEAK),
    (10, MarginTier.WEAK),
    (9.99, MarginTier.POOR),
    (0, MarginTier.POOR),
    (-25, MarginTier.POOR),
])
def test_classify_margin(percent, tier):
    assert classify_margin(percent) == tier


def test_format_margin_uses_one_decimal():
    assert format_margin(73.33333) == "73.3%"
    assert format_margin(0) == "0.0%"
    assert format_margin(-12.345) == "-12.3%"
