"""Normalize heterogeneous export dates to YYYY-MM-DD."""

import re
from datetime import date, datetime, timedelta
from typing import Any

from .constants import EXCEL_SERIAL_MAX, EXCEL_SERIAL_MIN

EXCEL_EPOCH = date(1899, 12, 30)

_ISO_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ].*)?$")
_YEAR_FIRST_SLASH_RE = re.compile(r"^(\d{4})/(\d{1,2})/(\d{1,2})(?:\s.*)?$")
_YEAR_LAST_RE = re.compile(r"^(\d{1,2})([/.-])(\d{1,2})\2(\d{4}|\d{2})(?:[\sT,].*)?$")
_SERIAL_RE = re.compile(r"^\d+(?:\.\d+)?$")
_TRAILING_TIME_RE = re.compile(r"[\s,T]+\d{1,2}:\d{2}(?::\d{2})?(?:\.\d+)?\s*(?:[AaPp][Mm])?.*$")
_CLOCK_RE = re.compile(r"(\d{1,2}):(\d{2})(?::\d{2}(?:\.\d+)?)?\s*([AaPp][Mm])?")

_TEXT_FORMATS = (
    "%d-%b-%Y",
    "%d-%b-%y",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%B %d %Y",
    "%a, %d %b %Y",
    "%A, %B %d, %Y",
)


def _build(year: int, month: int, day: int) -> str | None:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def _from_excel_serial(text: str) -> str | None:
    serial = float(text)
    if not EXCEL_SERIAL_MIN <= serial < EXCEL_SERIAL_MAX:
        return None
    return (EXCEL_EPOCH + timedelta(days=int(serial))).isoformat()


def _from_year_last(match: re.Match[str]) -> str | None:
    first, separator, second, year_text = match.groups()
    a, b = int(first), int(second)
    year = int(year_text)
    if len(year_text) == 2:
        year += 2000

    # Dotted dates and first parts above 12 are day-first; otherwise US month-first
    if separator == "." or a > 12:
        return _build(year, b, a)
    return _build(year, a, b)


def _from_text(text: str) -> str | None:
    candidates = [text]
    without_time = _TRAILING_TIME_RE.sub("", text).strip()
    if without_time and without_time != text:
        candidates.append(without_time)

    for candidate in candidates:
        for fmt in _TEXT_FORMATS:
            try:
                return datetime.strptime(candidate, fmt).date().isoformat()
            except ValueError:
                continue
    return None


def normalize_date(value: Any) -> str | None:
    """Convert a raw cell value into a canonical YYYY-MM-DD string.

    Accepts ISO dates and timestamps, year-first slashed dates, US
    month-first dates (day-first when unambiguous), textual month forms,
    and five-digit Excel serial day numbers. Blank or unparseable values
    (including bare years such as ``2024``) yield None;
    this function never raises.

    Args:
        value: Raw cell value (usually a string).

    Returns:
        str | None: Date in YYYY-MM-DD format, or None if it cannot be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()

    text = str(value).strip()
    if not text:
        return None

    if _SERIAL_RE.match(text):
        return _from_excel_serial(text)

    if match := _ISO_RE.match(text):
        return _build(*(int(part) for part in match.groups()))

    if match := _YEAR_FIRST_SLASH_RE.match(text):
        return _build(*(int(part) for part in match.groups()))

    if match := _YEAR_LAST_RE.match(text):
        return _from_year_last(match)

    return _from_text(text)


def parse_time_of_day(value: Any) -> tuple[int, int] | None:
    """Return the (hour, minute) written in a dated cell.

    Cells whose date cannot be parsed give None. A date with no clock time
    reads as midnight; Excel serials take the time from their fraction.
    """
    if isinstance(value, datetime):
        return value.hour, value.minute
    if normalize_date(value) is None:
        return None

    text = str(value).strip()
    if _SERIAL_RE.match(text):
        minutes = min(int(float(text) % 1 * 24 * 60 + 0.5), 24 * 60 - 1)
        return divmod(minutes, 60)

    match = _CLOCK_RE.search(text)
    if match is None:
        return 0, 0
    hour, minute = int(match.group(1)), int(match.group(2))
    if meridiem := match.group(3):
        hour = hour % 12 + (12 if meridiem.lower() == "pm" else 0)
    if hour > 23 or minute > 59:
        return 0, 0
    return hour, minute


def date_to_int(date_str: str) -> int:
    """Convert a YYYY-MM-DD string to a comparable YYYYMMDD integer."""
    return int(date_str.replace("-", ""))
