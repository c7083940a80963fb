from __future__ import annotations

import re
from datetime import date

_CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "INR": "₹",
    "CAD": "CA$",
    "AUD": "A$",
}

_CHART_COLORS = [
    "#3B82F6",  # blue
    "#10B981",  # green
    "#F59E0B",  # yellow
    "#EF4444",  # red
    "#8B5CF6",  # purple
    "#F97316",  # orange
    "#06B6D4",  # cyan
    "#84CC16",  # lime
    "#EC4899",  # pink
    "#6B7280",  # gray
]

_NUMBER_RE = re.compile(r"[^0-9.\-]+")


def format_currency(amount: float, currency: str = "USD") -> str:
    code = (currency or "USD").upper()
    decimals = 0 if code == "JPY" else 2
    symbol = _CURRENCY_SYMBOLS.get(code)
    body = f"{abs(amount):,.{decimals}f}"
    sign = "-" if amount < 0 else ""
    if symbol is None:
        return f"{sign}{code} {body}"
    return f"{sign}{symbol}{body}"


def format_percentage(value: float, decimals: int = 2) -> str:
    return f"{value * 100:.{decimals}f}%"


def format_date(d: date) -> str:
    return f"{d.strftime('%b')} {d.day}, {d.year}"


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}{'' if n == 1 else 's'}"


def format_duration(months: float) -> str:
    """12.5 -> '1 year', 30 -> '2 years and 6 months'."""
    if months < 1:
        return "Less than a month"

    years = int(months // 12)
    remaining = int(months % 12)

    if years == 0:
        return _plural(remaining, "month")
    if remaining == 0:
        return _plural(years, "year")
    return f"{_plural(years, 'year')} and {_plural(remaining, 'month')}"


def parse_currency(value: str) -> float:
    try:
        return float(_NUMBER_RE.sub("", value or ""))
    except ValueError:
        return 0.0


def parse_percentage(value: str) -> float:
    return parse_currency(value) / 100


def clamp(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)


def round_to(value: float, decimals: int) -> float:
    return round(value, decimals)


def chart_color(index: int) -> str:
    return _CHART_COLORS[index % len(_CHART_COLORS)]
