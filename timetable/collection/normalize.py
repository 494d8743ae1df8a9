"""
Canonicalize upstream clock and date strings.

Clock values become zero-padded 24-hour "HH:MM" with no timezone; dates become ISO "YYYY-MM-DD".
Malformed input yields "" instead of raising, so callers decide whether an empty value is acceptable.
"""
import logging
import re
from datetime import date, datetime
from typing import Mapping, Optional

from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)

AM = "AM"
PM = "PM"

_MERIDIEM_RE = re.compile(r"^(\d{1,2})(?:[:.](\d{2}))?(AM|PM)$")
_POSITIONAL_RE = re.compile(r"^(\d{1,2})[.:](\d{2})$")
_24H_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")
_ORDINAL_RE = re.compile(r"(?<=\d)(st|nd|rd|th)\b", re.IGNORECASE)
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Appended before parsing a date so a daylight-saving shift can never move it to the previous day.
MIDDAY_SUFFIX = " 14:00:00"

# Two unrelated fallbacks: a date only counts when both parses agree, i.e. nothing came from a default.
_DEFAULTS = (datetime(2000, 1, 1), datetime(2004, 2, 2))


def to_24_hour(hour: int, minute: int, period: str) -> str:
    """12-hour clock to "HH:MM". PM adds 12 unless hour is 12; 12 AM is midnight."""
    period = period.upper()
    if period == PM and hour != 12:
        hour += 12
    elif period == AM and hour == 12:
        hour = 0
    return f"{hour:02d}:{minute:02d}"


def normalize_meridiem_time(value: Optional[str]) -> str:
    """"6:15AM", "12:30 pm", "7PM" -> "06:15", "12:30", "19:00". Empty or malformed -> ""."""
    if not value:
        return ""
    cleaned = re.sub(r"\s+", "", value).upper()
    match = _MERIDIEM_RE.match(cleaned)
    if not match:
        return ""
    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    if hour > 12 or minute > 59:
        return ""
    return to_24_hour(hour, minute, match.group(3))


def normalize_positional_time(value: Optional[str], period: str) -> str:
    """"6.15" with "AM" -> "06:15"; "1.45" with "PM" -> "13:45". The period comes from the cell's column."""
    if not value:
        return ""
    match = _POSITIONAL_RE.match(re.sub(r"\s+", "", value))
    if not match:
        return ""
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 12 or minute > 59:
        return ""
    return to_24_hour(hour, minute, period)


def normalize_24h_time(value: Optional[str]) -> str:
    """"4:05" or "16:30:00" -> "04:05", "16:30". For sources already publishing 24-hour clocks."""
    if not value:
        return ""
    match = _24H_RE.match(value.strip())
    if not match:
        return ""
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return ""
    return f"{hour:02d}:{minute:02d}"


def column_period(index: int, periods: Mapping[int, str]) -> str:
    """
    Meridiem for a cell by its column index, looked up in a fixed per-source table.
    This breaks silently if the upstream reorders its columns; the table must be edited with it.
    """
    return periods[index]


def strip_ordinals(value: str) -> str:
    """"1st January 2024" -> "1 January 2024"."""
    return _ORDINAL_RE.sub("", value)


def normalize_date(value: Optional[str], midday: bool = False) -> str:
    """
    "23rd March 2024" -> "2024-03-23". With midday=True a fixed 14:00:00 is parsed along with
    the date. Returns "" when the string is not a date or lacks its day, month or year.
    """
    if not value:
        return ""
    cleaned = re.sub(r"\s+", " ", strip_ordinals(value)).strip()
    if _ISO_DATE_RE.match(cleaned):
        # dayfirst would swap month and day of an ISO string
        try:
            return date.fromisoformat(cleaned).isoformat()
        except ValueError:
            return ""
    if midday:
        cleaned += MIDDAY_SUFFIX
    try:
        parsed = {dateutil_parser.parse(cleaned, dayfirst=True, default=d).date() for d in _DEFAULTS}
    except (ValueError, OverflowError) as e:
        logger.debug(f"Could not parse date {value!r}: {e}")
        return ""
    if len(parsed) > 1:
        logger.debug(f"Incomplete date {value!r}")
        return ""
    return parsed.pop().isoformat()
