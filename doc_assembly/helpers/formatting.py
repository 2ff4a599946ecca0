"""Number, currency and date formatting helpers.

Output follows US English conventions: comma thousands separators, a leading
currency symbol and month-name dates. ``None`` input renders as the empty
string; a date that cannot be parsed is returned unchanged.

Examples
--------
>>> dollar_currency("1234.5"), currency(1234.5, "EUR"), ordinal(22)
('1,234.50', '€1,234.50', '22nd')
>>> format_date("2024-10-18T10:30:00", "long")
'Friday, October 18, 2024'
>>> format_date("not a date", "short")
'not a date'
"""

from __future__ import annotations

import datetime as dt
import math
import re

from doc_assembly.values import is_truthy, stringify, to_int, to_number

from .numeric import round_half_up
from .registry import HelperKind, HelperRegistry

CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CNY": "CN¥",
    "INR": "₹",
    "MXN": "MX$",
    "CAD": "CA$",
    "AUD": "A$",
}
ZERO_DECIMAL_CURRENCIES = frozenset({"JPY", "KRW", "CLP", "VND"})
CURRENCY_CODE_PATTERN = re.compile(r"^[A-Za-z]{3}$")
BYTE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")
DATE_INPUT_FORMATS = (
    "%m/%d/%Y",
    "%Y/%m/%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
)


def _signed(amount: float, body: str) -> str:
    return f"-{body}" if amount < 0 else body


def currency(amount: object = None, code: object = "USD", _locale: object = "en-US") -> str:
    """Format ``amount`` with the symbol of the ISO currency ``code``."""
    if amount is None:
        return ""
    number = to_number(amount)
    text = stringify(code) or "USD"
    if not CURRENCY_CODE_PATTERN.match(text):
        symbol = {"EUR": "€", "GBP": "£"}.get(text, "$")
        return f"{symbol}{number:.2f}"
    upper = text.upper()
    decimals = 0 if upper in ZERO_DECIMAL_CURRENCIES else 2
    grouped = f"{abs(number):,.{decimals}f}"
    symbol = CURRENCY_SYMBOLS.get(upper)
    if symbol is None:
        return _signed(number, f"{upper}\xa0{grouped}")
    return _signed(number, f"{symbol}{grouped}")


def dollar_currency(amount: object = None, *_args: object, **_hash: object) -> str:
    """Format ``amount`` with grouping and two decimals, without a symbol."""
    if amount is None:
        return ""
    return f"{to_number(amount):,.2f}"


def number(value: object = None, decimals: object = 0, _locale: object = "en-US") -> str:
    """Format ``value`` with grouping and a fixed number of decimals."""
    if value is None:
        return ""
    places = max(to_int(decimals), 0)
    return f"{round_half_up(value, places):,.{places}f}"


def byte_size(value: object = None, decimals: object = 2) -> str:
    """Format a byte count with a binary unit, such as ``1.5 KB``."""
    amount = to_number(value)
    if amount <= 0:
        return "0 Bytes"
    exponent = min(int(math.floor(math.log(amount) / math.log(1024))), len(BYTE_UNITS) - 1)
    exponent = max(exponent, 0)
    scaled = round_half_up(amount / 1024**exponent, decimals)
    return f"{stringify(scaled)} {BYTE_UNITS[exponent]}"


def ordinal(value: object = None) -> str:
    """Append the English ordinal suffix to ``value``."""
    amount = to_number(value)
    whole = int(amount)
    last_two = abs(whole) % 100
    if 11 <= last_two <= 13:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(last_two % 10, "th")
    return f"{stringify(amount)}{suffix}"


def parse_date(value: object) -> dt.datetime | None:
    """Interpret ``value`` as a datetime or return ``None``.

    Accepts :class:`datetime.datetime`, :class:`datetime.date`, epoch
    milliseconds and ISO 8601 or common US-style date strings.
    """
    match value:
        case dt.datetime():
            return value
        case dt.date():
            return dt.datetime(value.year, value.month, value.day)
        case bool():
            return None
        case int() | float():
            try:
                return dt.datetime.fromtimestamp(value / 1000, tz=dt.UTC)
            except (OverflowError, OSError, ValueError):
                return None
        case str():
            text = value.strip()
            if not text:
                return None
            try:
                return dt.datetime.fromisoformat(text)
            except ValueError:
                pass
            for pattern in DATE_INPUT_FORMATS:
                try:
                    return dt.datetime.strptime(text, pattern)  # noqa: DTZ007 - naive input
                except ValueError:
                    continue
            return None
        case _:
            return None


def _hour12(moment: dt.datetime) -> int:
    return moment.hour % 12 or 12


def render_date(moment: dt.datetime, fmt: str | None) -> str:
    """Render ``moment`` in one of the named formats."""
    match fmt:
        case "long":
            return f"{moment:%A}, {moment:%B} {moment.day}, {moment.year}"
        case "iso":
            if moment.tzinfo is not None:
                moment = moment.astimezone(dt.UTC)
            return moment.date().isoformat()
        case "time":
            return f"{moment:%I:%M %p}"
        case "datetime":
            return (
                f"{moment.month}/{moment.day}/{moment.year}, "
                f"{_hour12(moment)}:{moment:%M:%S %p}"
            )
        case _:
            return f"{moment:%b} {moment.day}, {moment.year}"


def format_date(value: object = None, fmt: object = None, **_hash: object) -> object:
    """Format a date value; unparseable input is returned unchanged."""
    if not is_truthy(value):
        return ""
    moment = parse_date(value)
    if moment is None:
        return value
    return render_date(moment, stringify(fmt) if fmt is not None else None)


def now(fmt: object = None, **_hash: object) -> object:
    """Format the current local time."""
    return format_date(dt.datetime.now().astimezone(), fmt)


def date_add(value: object = None, days: object = 0, fmt: object = None) -> object:
    """Shift a date by a number of days, then format it."""
    if not is_truthy(value):
        return ""
    moment = parse_date(value)
    if moment is None:
        return value
    return render_date(
        moment + dt.timedelta(days=to_number(days)),
        stringify(fmt) if fmt is not None else None,
    )


def register(registry: HelperRegistry) -> None:
    """Register the formatting helpers on ``registry``."""
    helpers = {
        "currency": currency,
        "$currency": dollar_currency,
        "number": number,
        "bytes": byte_size,
        "ordinal": ordinal,
        "$date": format_date,
        "formatDate": format_date,
        "now": now,
        "dateAdd": date_add,
    }
    for name, fn in helpers.items():
        registry.register(name, HelperKind.VALUE, fn)


__all__ = [
    "CURRENCY_SYMBOLS",
    "byte_size",
    "currency",
    "date_add",
    "dollar_currency",
    "format_date",
    "now",
    "number",
    "ordinal",
    "parse_date",
    "register",
    "render_date",
]
