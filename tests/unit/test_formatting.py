"""
Unit tests for display formatting.
"""
import pytest
from datetime import datetime, timedelta

from stageboard.utils.formatting import (
    days_until, format_datetime, format_eur, format_processing_time, format_relative, format_usd, start_of_day
)

NOW = datetime(2025, 1, 15, 14, 30, 0)


@pytest.mark.parametrize("value,expected", [
    (0, "0,00 €"),
    (9.9, "9,90 €"),
    (1234.5, "1.234,50 €"),
    (1234567.891, "1.234.567,89 €"),
])
def test_format_eur(value, expected):
    assert format_eur(value) == expected


@pytest.mark.parametrize("value,expected", [(25, "$25"), (1250, "$1,250"), (12.5, "$12.50")])
def test_format_usd(value, expected):
    assert format_usd(value) == expected


@pytest.mark.parametrize("ms,expected", [(850, "850ms"), (1000, "1.0s"), (12345, "12.3s")])
def test_format_processing_time(ms, expected):
    assert format_processing_time(ms) == expected


@pytest.mark.parametrize("delta,expected", [
    (timedelta(minutes=5), "5m ago"),
    (timedelta(hours=3), "3h ago"),
    (timedelta(days=1, hours=2), "Yesterday"),
    (timedelta(days=4), "4d ago"),
    (timedelta(days=10), "Jan 5"),
])
def test_format_relative(delta, expected):
    assert format_relative(NOW - delta, NOW) == expected


def test_format_datetime():
    assert format_datetime(NOW) == "15.01. 14:30"
    assert format_datetime(None) == "-"


def test_days_until_rounds_up():
    assert days_until(NOW + timedelta(days=2, hours=1), NOW) == 3
    assert days_until(NOW - timedelta(hours=12), NOW) == 0


def test_start_of_day():
    assert start_of_day(NOW) == datetime(2025, 1, 15)
