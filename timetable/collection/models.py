"""
SQLAlchemy models for locations and collected prayer times.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, String, Date, DateTime, Integer, ForeignKey, Text

from timetable.core.db import Base


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Location(Base):
    """Reference data: one row per collected city. Ids are fixed (London 1, Birmingham 2, Manchester 3)."""
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    code = Column(String(10), nullable=False)  # e.g. 'LDN', 'BIRM', 'MANC'
    description = Column(Text, nullable=True)


class PrayerTime(Base):
    """
    One day of prayer times for a location. No uniqueness on (location_id, date):
    collecting the same month twice stores the rows twice.
    """
    __tablename__ = "prayer_times"

    id = Column(Integer, primary_key=True, autoincrement=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    fajr = Column(String(5), nullable=False)
    fajr_jamat = Column(String(5), nullable=True)
    sunrise = Column(String(5), nullable=True)
    dhuhr = Column(String(5), nullable=False)
    dhuhr_jamat = Column(String(5), nullable=True)
    asr = Column(String(5), nullable=False)
    asr2 = Column(String(5), nullable=False)
    asr_jamat = Column(String(5), nullable=True)
    maghrib = Column(String(5), nullable=False)
    maghrib_jamat = Column(String(5), nullable=True)
    isha = Column(String(5), nullable=False)
    isha_jamat = Column(String(5), nullable=True)
    created_at = Column(DateTime(timezone=False), default=_utc_now, nullable=False)
