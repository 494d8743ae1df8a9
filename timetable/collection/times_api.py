"""
Read API for stored locations and prayer times, plus single-row manual insert.
"""
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException

from timetable.collection import service
from timetable.collection.errors import PersistenceError
from timetable.collection.models import PrayerTime
from timetable.collection.normalize import normalize_24h_time
from timetable.collection.records import CLOCK_FIELDS, REQUIRED_FIELDS, Period
from timetable.collection.schemas import (
    LocationResponse,
    LocationsResponse,
    PrayerTimeCreate,
    PrayerTimeCreatedResponse,
    PrayerTimeResponse,
    PrayerTimesResponse,
    PrayerTimeWithLocation,
)


def _with_locations(rows: List[PrayerTime]) -> List[PrayerTimeWithLocation]:
    locations: Dict[int, LocationResponse] = {
        loc.id: LocationResponse.model_validate(loc) for loc in service.list_locations()
    }
    result = []
    for row in rows:
        item = PrayerTimeWithLocation.model_validate(row)
        item.location = locations.get(row.location_id)
        result.append(item)
    return result


def get_router(timetable_app) -> Optional[APIRouter]:
    router = APIRouter(tags=["Prayer Times"])

    @router.get("/locations/find", response_model=LocationsResponse)
    def find_locations() -> LocationsResponse:
        return LocationsResponse(result=[LocationResponse.model_validate(r) for r in service.list_locations()])

    @router.get("/times", response_model=PrayerTimesResponse)
    def list_times() -> PrayerTimesResponse:
        """All stored prayer times with their location."""
        return PrayerTimesResponse(result=_with_locations(service.list_prayer_times()))

    @router.get("/times/find/{location_id}/{year}/{month}", response_model=PrayerTimesResponse)
    def find_location_month(location_id: int, year: int, month: str) -> PrayerTimesResponse:
        try:
            period = Period.create(year, month)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return PrayerTimesResponse(result=_with_locations(service.find_month(location_id, period)))

    @router.get("/times/{location_id}", response_model=PrayerTimesResponse)
    def list_location_times(location_id: int) -> PrayerTimesResponse:
        return PrayerTimesResponse(result=_with_locations(service.list_prayer_times(location_id)))

    @router.post("/times", response_model=PrayerTimeCreatedResponse)
    def create_time(body: PrayerTimeCreate) -> PrayerTimeCreatedResponse:
        """Insert one row by hand. Clock fields must already be 24-hour "HH:MM"."""
        values = body.model_dump()
        values["date"] = body.date.isoformat()
        if not values.get("asr2"):
            values["asr2"] = values.get("asr")
        for name in CLOCK_FIELDS:
            if not values.get(name):
                if name in REQUIRED_FIELDS:
                    raise HTTPException(status_code=422, detail=f"{name} is required")
                values[name] = None
                continue
            normalized = normalize_24h_time(values[name])
            if not normalized:
                raise HTTPException(status_code=422, detail=f"{name} is not a 24-hour HH:MM time: {values[name]!r}")
            values[name] = normalized
        try:
            row = service.create_prayer_time(values)
        except PersistenceError as e:
            raise HTTPException(status_code=500, detail=e.message)
        return PrayerTimeCreatedResponse(result=PrayerTimeResponse.model_validate(row))

    return router
