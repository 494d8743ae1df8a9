"""
Service layer: store and load locations and prayer times.
insert_batch is the only write the collection run makes; it never checks for existing rows.
"""
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, func, select

from timetable.core.db import session_scope
from timetable.collection.errors import PersistenceError
from timetable.collection.models import Location, PrayerTime
from timetable.collection.records import Period, PrayerTimeRecord


def _to_row(record: PrayerTimeRecord) -> PrayerTime:
    values = record._asdict()
    values["date"] = date.fromisoformat(values["date"])
    return PrayerTime(**values)


def insert_batch(records: Iterable[PrayerTimeRecord]) -> List[PrayerTime]:
    """Insert all records in one transaction and return the stored rows (with ids)."""
    rows = [_to_row(r) for r in records]
    if not rows:
        return []
    try:
        with session_scope() as session:
            session.add_all(rows)
            session.flush()
    except Exception as e:
        raise PersistenceError(f"Error inserting prayer times: {e}") from e
    return rows


def delete_month(location_id: int, period: Period) -> int:
    """Delete every row for the location dated within the period's month. Returns rows removed."""
    with session_scope() as session:
        result = session.execute(
            delete(PrayerTime).where(
                PrayerTime.location_id == location_id,
                PrayerTime.date >= period.first_day,
                PrayerTime.date <= period.last_day,
            )
        )
        return result.rowcount or 0


def create_prayer_time(values: Dict[str, Any]) -> PrayerTime:
    """Insert a single row (manual correction). values uses PrayerTimeRecord field names."""
    record = PrayerTimeRecord(**values)
    rows = insert_batch([record])
    if not rows:
        raise PersistenceError("Error creating prayer time")
    return rows[0]


def find_month(location_id: int, period: Period) -> List[PrayerTime]:
    with session_scope() as session:
        stmt = (
            select(PrayerTime)
            .where(
                PrayerTime.location_id == location_id,
                PrayerTime.date >= period.first_day,
                PrayerTime.date <= period.last_day,
            )
            .order_by(PrayerTime.date, PrayerTime.id)
        )
        return list(session.execute(stmt).scalars().all())


def list_prayer_times(location_id: Optional[int] = None) -> List[PrayerTime]:
    with session_scope() as session:
        stmt = select(PrayerTime).order_by(PrayerTime.location_id, PrayerTime.date, PrayerTime.id)
        if location_id is not None:
            stmt = stmt.where(PrayerTime.location_id == location_id)
        return list(session.execute(stmt).scalars().all())


def count_prayer_times(location_id: int) -> int:
    with session_scope() as session:
        return session.execute(
            select(func.count()).select_from(PrayerTime).where(PrayerTime.location_id == location_id)
        ).scalar_one()


def list_locations() -> List[Location]:
    with session_scope() as session:
        return list(session.execute(select(Location).order_by(Location.id)).scalars().all())


def get_location(location_id: int) -> Optional[Location]:
    with session_scope() as session:
        return session.get(Location, location_id)


def sync_locations_from_config(config_data: Dict[str, Any]) -> None:
    """Upsert the location reference rows listed in config. Rows not in config are left alone."""
    entries = config_data.get("locations") or []
    with session_scope() as session:
        for entry in entries:
            location_id = int(entry["id"])
            row = session.get(Location, location_id)
            if row:
                row.name = entry.get("name", row.name)
                row.code = entry.get("code", row.code)
                row.description = entry.get("description", row.description)
            else:
                session.add(Location(
                    id=location_id,
                    name=entry.get("name", ""),
                    code=entry.get("code", ""),
                    description=entry.get("description"),
                ))
