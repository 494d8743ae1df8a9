"""
Pydantic views of Location and PrayerTime ORM rows for the API.
"""
from datetime import date as date_type, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class LocationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    code: str
    description: Optional[str] = None


class PrayerTimeResponse(BaseModel):
    """One stored day of prayer times; clock fields are 24-hour "HH:MM"."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    location_id: int
    date: date_type
    fajr: Optional[str] = None
    fajr_jamat: Optional[str] = None
    sunrise: Optional[str] = None
    dhuhr: Optional[str] = None
    dhuhr_jamat: Optional[str] = None
    asr: Optional[str] = None
    asr2: Optional[str] = None
    asr_jamat: Optional[str] = None
    maghrib: Optional[str] = None
    maghrib_jamat: Optional[str] = None
    isha: Optional[str] = None
    isha_jamat: Optional[str] = None
    created_at: Optional[datetime] = None


class PrayerTimeWithLocation(PrayerTimeResponse):
    location: Optional[LocationResponse] = None


class PrayerTimeCreate(BaseModel):
    """Body for POST /times."""

    location_id: int
    date: date_type
    fajr: str
    fajr_jamat: Optional[str] = None
    sunrise: Optional[str] = None
    dhuhr: str
    dhuhr_jamat: Optional[str] = None
    asr: str
    asr2: Optional[str] = None
    asr_jamat: Optional[str] = None
    maghrib: str
    maghrib_jamat: Optional[str] = None
    isha: str
    isha_jamat: Optional[str] = None


class CollectionResponse(BaseModel):
    """Uniform result of one collection run: status plus inserted rows or an error message."""

    status: int
    body: Optional[List[PrayerTimeResponse]] = None
    error: Optional[str] = None


class DeleteResponse(BaseModel):
    success: bool
    deleted: int


class LocationsResponse(BaseModel):
    success: bool = True
    result: List[LocationResponse]


class PrayerTimesResponse(BaseModel):
    success: bool = True
    result: List[PrayerTimeWithLocation]


class PrayerTimeCreatedResponse(BaseModel):
    success: bool = True
    result: PrayerTimeResponse
