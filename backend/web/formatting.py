"""
Display formatting for commission data (dates, amounts, statuses).

All helpers are pure and never raise on bad input: they degrade to the
placeholder dash (or echo the input) instead.
"""
from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from email.utils import parsedate_to_datetime
from typing import Optional, Union

from .i18n import translate

PLACEHOLDER = "—"

STATUS_COLORS = {
    "requested": "yellow",
    "confirmed": "blue",
    "paid": "green",
}
DEFAULT_STATUS_COLOR = "gray"

# currency -> (symbol, thousands separator, symbol after amount)
_CURRENCY_STYLES = {
    "USD": ("$", ",", False),
    "VND": ("₫", ".", True),
}

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_FRACTION = re.compile(r"\.(\d+)")
# Leading numeric prefix, as JavaScript's parseFloat reads it.
_LEADING_NUMBER = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def _parse_instant(value: str) -> Optional[datetime]:
    text = value.strip()
    try:
        if _DATE_ONLY.match(text):
            # Date-only ISO strings denote UTC midnight.
            return datetime.fromisoformat(text).replace(tzinfo=timezone.utc)
        # Postgres trims trailing zeros; older fromisoformat wants 3 or 6 digits.
        iso = _FRACTION.sub(lambda m: "." + (m.group(1) + "000000")[:6], text, count=1)
        return datetime.fromisoformat(iso.replace("Z", "+00:00").replace("z", "+00:00"))
    except ValueError:
        pass
    try:
        return parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        return None


def format_date(value: Union[str, datetime, None]) -> str:
    """Format as `DD/MM/YYYY HH:mm` in local time.

    Empty input yields the placeholder; unparseable input is echoed unchanged.
    """
    if not value:
        return PLACEHOLDER
    if isinstance(value, datetime):
        d = value
    else:
        d = _parse_instant(str(value))
        if d is None:
            return str(value)
    # Naive datetimes already are local time; aware ones are converted.
    if d.tzinfo is not None:
        d = d.astimezone()
    return f"{d.day:02d}/{d.month:02d}/{d.year} {d.hour:02d}:{d.minute:02d}"


def _to_number(value: Union[int, float, str, Decimal, None]) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        m = _LEADING_NUMBER.match(value.strip())
        if not m:
            return None
        num = Decimal(m.group(0))
    elif isinstance(value, (int, Decimal)):
        num = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            return None
        num = Decimal(repr(value))
    else:
        return None
    # Amounts beyond the float range read as infinite, as parseFloat does.
    if not num.is_finite() or not math.isfinite(float(num)):
        return None
    return num


def format_value(value: Union[int, float, str, Decimal, None], currency: str = "USD") -> str:
    """Format an amount as a grouped integer with its currency symbol.

    `"$1,234"` for USD, `"1.234 ₫"` for VND; any other code renders like USD.
    """
    num = _to_number(value)
    if num is None:
        return PLACEHOLDER
    symbol, sep, suffix = _CURRENCY_STYLES.get(currency, _CURRENCY_STYLES["USD"])
    rounded = int(num.to_integral_value(rounding=ROUND_HALF_UP))
    grouped = f"{rounded:,}".replace(",", sep)
    return f"{grouped} {symbol}" if suffix else f"{symbol}{grouped}"


def format_status(status: str, locale: Optional[str] = None) -> str:
    """Localized status label with an upper-cased first character.

    Unknown statuses pass through (still capitalized).
    """
    text = translate(f"commissions.{status}", locale) if status in STATUS_COLORS else (status or "")
    return text[:1].upper() + text[1:]


def status_color(status: str) -> str:
    return STATUS_COLORS.get(status, DEFAULT_STATUS_COLOR)


__all__ = [
    "PLACEHOLDER",
    "format_date",
    "format_value",
    "format_status",
    "status_color",
]
