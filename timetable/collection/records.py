"""
In-memory types for one collection run.
Records are plain namedtuples; ORM rows only exist once the batch is persisted.
"""
import calendar
from collections import namedtuple
from datetime import date, datetime, timezone
from typing import Optional, Union

PRAYER_TIME_FIELDS = (
    "location_id",
    "date",          # ISO YYYY-MM-DD
    "fajr",
    "fajr_jamat",
    "sunrise",
    "dhuhr",
    "dhuhr_jamat",
    "asr",
    "asr2",          # second Asr time; equals asr when the source publishes one
    "asr_jamat",
    "maghrib",
    "maghrib_jamat",
    "isha",
    "isha_jamat",
)

CLOCK_FIELDS = PRAYER_TIME_FIELDS[2:]

# Start times every stored day must have; jamat times and sunrise may be missing upstream.
REQUIRED_FIELDS = ("date", "fajr", "dhuhr", "asr", "asr2", "maghrib", "isha")

# One canonical prayer-time row. Clock fields are zero-padded 24h "HH:MM", or None when absent.
PrayerTimeRecord = namedtuple(
    "PrayerTimeRecord",
    PRAYER_TIME_FIELDS,
    defaults=(None,) * (len(PRAYER_TIME_FIELDS) - 2),
)

_MONTH_NUMBERS = {name.lower(): i for i, name in enumerate(calendar.month_name) if name}
_MONTH_NUMBERS.update({name.lower(): i for i, name in enumerate(calendar.month_abbr) if name})


class Period(namedtuple("Period", ["year", "month"])):
    """Calendar month to collect. Sources render it as (year, month) or (month name, year)."""
    __slots__ = ()

    @property
    def month_name(self) -> str:
        return calendar.month_name[self.month]

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    @classmethod
    def create(cls, year: Union[int, str], month: Union[int, str]) -> "Period":
        """Build a Period from a year and a month given as number ("5") or English name ("May")."""
        month_num = parse_month(month)
        year_num = int(year)
        if year_num < 1:
            raise ValueError(f"Invalid year: {year}")
        return cls(year_num, month_num)

    @classmethod
    def current(cls, now: Optional[datetime] = None) -> "Period":
        now = now or datetime.now(timezone.utc)
        return cls(now.year, now.month)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def parse_month(month: Union[int, str]) -> int:
    """Month number from 1-12, "05" or a full/abbreviated English month name."""
    if isinstance(month, int):
        value = month
    else:
        text = str(month).strip()
        if text.isdigit():
            value = int(text)
        else:
            value = _MONTH_NUMBERS.get(text.lower(), 0)
    if not 1 <= value <= 12:
        raise ValueError(f"Invalid month: {month}")
    return value
