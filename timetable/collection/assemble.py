"""
Map extracted rows and JSON entries onto PrayerTimeRecord.

Each source has a fixed column layout. The tables below are the only place the layouts live:
when an upstream moves a column, edit its table.
"""
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from timetable.collection.errors import MarkupShapeError
from timetable.collection.normalize import (
    AM,
    PM,
    column_period,
    normalize_24h_time,
    normalize_date,
    normalize_meridiem_time,
    normalize_positional_time,
)
from timetable.collection.records import CLOCK_FIELDS, REQUIRED_FIELDS, Period, PrayerTimeRecord

# Birmingham: "1st May 2024" | - | 6:15AM | ... explicit AM/PM in every clock cell
BIRMINGHAM_COLUMNS: Dict[int, str] = {
    0: "date",
    2: "fajr",
    3: "fajr_jamat",
    4: "sunrise",
    6: "dhuhr",
    7: "dhuhr_jamat",
    8: "asr",
    9: "maghrib",
    10: "asr_jamat",
    11: "maghrib_jamat",
    12: "isha",
    13: "isha_jamat",
}

# Manchester: day of month | weekday | 6.15 | ... no AM/PM in the cells
MANCHESTER_COLUMNS: Dict[int, str] = {
    0: "day",
    2: "fajr",
    3: "fajr_jamat",
    4: "sunrise",
    6: "dhuhr",
    7: "dhuhr_jamat",
    8: "asr",
    9: "asr_jamat",
    10: "maghrib",
    11: "maghrib_jamat",
    12: "isha",
    13: "isha_jamat",
}

# Manchester meridiem by column: morning columns first, everything from Dhuhr on is afternoon.
MANCHESTER_COLUMN_PERIODS: Dict[int, str] = {
    2: AM,
    3: AM,
    4: AM,
    6: PM,
    7: PM,
    8: PM,
    9: PM,
    10: PM,
    11: PM,
    12: PM,
    13: PM,
}

# London JSON keys -> record fields
LONDON_FIELDS: Dict[str, str] = {
    "date": "date",
    "fajr": "fajr",
    "fajr_jamat": "fajr_jamat",
    "sunrise": "sunrise",
    "dhuhr": "dhuhr",
    "dhuhr_jamat": "dhuhr_jamat",
    "asr": "asr",
    "asr_2": "asr2",
    "asr_jamat": "asr_jamat",
    "magrib": "maghrib",
    "magrib_jamat": "maghrib_jamat",
    "isha": "isha",
    "isha_jamat": "isha_jamat",
}


def _finish(fields: Dict[str, Any], location_id: int, row: Any) -> PrayerTimeRecord:
    """Blank optional clocks become None; a blank required field rejects the whole row."""
    for name in CLOCK_FIELDS:
        if not fields.get(name):
            fields[name] = None
    if fields.get("asr2") is None:
        fields["asr2"] = fields.get("asr")
    missing = [name for name in REQUIRED_FIELDS if not fields.get(name)]
    if missing:
        raise MarkupShapeError(f"Could not parse {', '.join(missing)} from row: {row!r}")
    fields["location_id"] = location_id
    return PrayerTimeRecord(**fields)


def _require_cells(cells: Sequence[str], columns: Mapping[int, str]) -> None:
    needed = max(columns) + 1
    if len(cells) < needed:
        raise MarkupShapeError(f"Row has {len(cells)} cells, expected at least {needed}: {list(cells)}")


def assemble_row(
    cells: Sequence[str],
    columns: Mapping[int, str],
    location_id: int,
    clock: Callable[[int, str], str],
    date_of: Callable[[str], str],
) -> PrayerTimeRecord:
    """
    Build one record from a row of cells.
    clock(index, text) normalizes a clock cell; date_of(text) turns the first mapped
    date/day cell into an ISO date.
    """
    _require_cells(cells, columns)
    fields: Dict[str, Any] = {}
    for index, name in columns.items():
        text = cells[index]
        if name in ("date", "day"):
            fields["date"] = date_of(text)
        else:
            fields[name] = clock(index, text)
    return _finish(fields, location_id, list(cells))


def assemble_birmingham_rows(rows: List[List[str]], location_id: int) -> List[PrayerTimeRecord]:
    return [
        assemble_row(
            cells,
            BIRMINGHAM_COLUMNS,
            location_id,
            clock=lambda _index, text: normalize_meridiem_time(text),
            date_of=normalize_date,
        )
        for cells in rows
    ]


def assemble_manchester_rows(rows: List[List[str]], location_id: int, period: Period) -> List[PrayerTimeRecord]:
    def clock(index: int, text: str) -> str:
        return normalize_positional_time(text, column_period(index, MANCHESTER_COLUMN_PERIODS))

    def date_of(day: str) -> str:
        return normalize_date(f"{day} {period.month_name} {period.year}", midday=True)

    return [assemble_row(cells, MANCHESTER_COLUMNS, location_id, clock=clock, date_of=date_of) for cells in rows]


def assemble_london_entry(entry: Mapping[str, Any], location_id: int) -> PrayerTimeRecord:
    fields: Dict[str, Any] = {}
    for key, name in LONDON_FIELDS.items():
        value: Optional[Any] = entry.get(key)
        text = "" if value is None else str(value)
        fields[name] = normalize_date(text) if name == "date" else normalize_24h_time(text)
    return _finish(fields, location_id, dict(entry))


def assemble_london_payload(payload: Mapping[str, Any], location_id: int) -> List[PrayerTimeRecord]:
    """payload: {"city": ..., "times": {"YYYY-MM-DD": {...}, ...}}. Records come out in date order."""
    times = payload.get("times") if isinstance(payload, Mapping) else None
    if not isinstance(times, Mapping):
        raise MarkupShapeError("London payload has no 'times' object")
    records = []
    for key in sorted(times):
        entry = dict(times[key] or {})
        entry.setdefault("date", key)
        records.append(assemble_london_entry(entry, location_id))
    return records
