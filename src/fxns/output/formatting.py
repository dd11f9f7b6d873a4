"""
Display formats shared by the output renderer and transform steps.

The ``format_*`` functions are strict and raise ``ValueError`` for values they
cannot interpret; ``format_display`` is the lenient wrapper the renderer uses.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Optional

from ..formula.values import is_numeric, to_number, to_text

PLACEHOLDER = "N/A"

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "JPY": "¥", "INR": "₹"}
_ZERO_DECIMAL_CURRENCIES = {"JPY"}

_TRUE_WORDS = {"true", "yes", "y", "1", "on"}
_FALSE_WORDS = {"false", "no", "n", "0", "off", ""}


def _number(value: Any) -> float:
    if isinstance(value, bool) or not is_numeric(value):
        raise ValueError(f"Expected a number, got {value!r}.")
    return to_number(value)


def format_number(value: Any) -> str:
    number = _number(value)
    text = f"{number:,.2f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text in {"-0", ""} else text


def format_currency(value: Any, currency: str = "USD") -> str:
    number = _number(value)
    code = (currency or "USD").upper()
    decimals = 0 if code in _ZERO_DECIMAL_CURRENCIES else 2
    amount = f"{abs(number):,.{decimals}f}"
    symbol = CURRENCY_SYMBOLS.get(code, f"{code} ")
    sign = "-" if number < 0 and float(amount.replace(",", "")) != 0 else ""
    return f"{sign}{symbol}{amount}"


def format_percentage(value: Any) -> str:
    """``12.5`` renders as ``12.5%``: the value is already a percentage."""
    return f"{format_number(value)}%"


def parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # epoch milliseconds
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).date()
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            pass
        for fmt in ("%m/%d/%Y", "%B %d, %Y", "%b %d, %Y", "%d %B %Y"):
            try:
                return datetime.strptime(text, fmt).date()
            except ValueError:
                continue
    raise ValueError(f"Expected a date, got {value!r}.")


def format_date(value: Any) -> str:
    day = parse_date(value)
    return f"{MONTH_NAMES[day.month - 1]} {day.day}, {day.year}"


def format_boolean(value: Any) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (int, float)):
        return "Yes" if value != 0 else "No"
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return "Yes"
        if word in _FALSE_WORDS:
            return "No"
    raise ValueError(f"Expected a boolean, got {value!r}.")


def format_text(value: Any) -> str:
    return to_text(value)


_FORMATTERS = {
    "currency": format_currency,
    "date": format_date,
    "percentage": format_percentage,
    "number": format_number,
    "boolean": format_boolean,
    "text": format_text,
}


def format_display(value: Any, display_format: Optional[str] = "text", *, placeholder: str = PLACEHOLDER) -> str:
    if value is None:
        return placeholder
    formatter = _FORMATTERS.get(display_format or "text", format_text)
    try:
        return formatter(value)
    except (ValueError, TypeError, OverflowError):
        return to_text(value)
