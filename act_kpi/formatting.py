"""
Display formatting for KPI values, driven by the catalog's format field.
"""
from __future__ import annotations

import re

from .catalog import KPI_CONFIG

CURRENCY_SYMBOLS = {
    "EUR": "€",
    "USD": "$",
    "GBP": "£",
    "JPY": "¥",
}

_DURATION_RE = re.compile(r"^\s*(-?\d+)h\s+(\d+)m\s+(\d+)s\s*$")


def currency_symbol(currency: str) -> str:
    return CURRENCY_SYMBOLS.get(currency.upper(), currency.upper() + " ")


def format_duration(seconds: float) -> str:
    total = int(seconds)
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60
    return f"{hours}h {minutes}m {secs}s"


def format_value(value: float, kpi: str, currency: str = "EUR") -> str:
    """
    Format a KPI value for display.

    >>> format_value(1234.5, "cost")
    '€1,234.50'
    >>> format_value(12.345, "ctr")
    '12.35%'
    >>> format_value(3723, "watch_time")
    '1h 2m 3s'
    """
    config = KPI_CONFIG.get(kpi)
    if config is None:
        return str(value)

    fmt = config.format
    if fmt == "number":
        return f"{value:,.2f}"
    if fmt == "percentage":
        return f"{value:.2f}%"
    if fmt == "currency":
        sign = "-" if value < 0 else ""
        return f"{sign}{currency_symbol(currency)}{abs(value):,.2f}"
    if fmt == "duration":
        return format_duration(value)
    if fmt == "multiplier":
        return f"{value:.2f}x"
    return str(value)


def parse_value(text: str, kpi: str) -> float:
    """Inverse of format_value (to the displayed precision)."""
    config = KPI_CONFIG.get(kpi)
    s = text.strip()
    if config is not None and config.format == "duration":
        m = _DURATION_RE.match(s)
        if not m:
            raise ValueError(f"Not a duration: {text!r}")
        h, mi, se = (int(g) for g in m.groups())
        return float(h * 3600 + mi * 60 + se)

    negative = s.startswith("-")
    cleaned = re.sub(r"[^0-9.]", "", s)
    if not cleaned:
        raise ValueError(f"Not a number: {text!r}")
    number = float(cleaned)
    return -number if negative else number
