from datetime import date

import pytest

from src.utils.formatters import (
    chart_color,
    clamp,
    format_currency,
    format_date,
    format_duration,
    format_percentage,
    parse_currency,
    parse_percentage,
    round_to,
)


def test_format_currency():
    assert format_currency(1234.5) == "$1,234.50"
    assert format_currency(-10, "EUR") == "-€10.00"
    assert format_currency(1500, "JPY") == "¥1,500"
    assert format_currency(3, "CHF") == "CHF 3.00"


def test_format_percentage_and_date():
    assert format_percentage(0.045) == "4.50%"
    assert format_percentage(0.1, 0) == "10%"
    assert format_date(date(2024, 3, 5)) == "Mar 5, 2024"


def test_format_duration():
    assert format_duration(0.5) == "Less than a month"
    assert format_duration(1) == "1 month"
    assert format_duration(13.07) == "1 year and 1 month"
    assert format_duration(24) == "2 years"
    assert format_duration(30) == "2 years and 6 months"


def test_parse_helpers():
    assert parse_currency("$1,234.50") == 1234.5
    assert parse_currency("abc") == 0.0
    assert parse_percentage("4.5%") == pytest.approx(0.045)
    assert clamp(5, 0, 3) == 3
    assert round_to(1.23456, 2) == 1.23
    assert chart_color(0) == chart_color(10)
