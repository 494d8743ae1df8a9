"""
Collection endpoints: fetch + persist one month for a location, and clear a month before re-collecting.
Each collection answers with the HTTP status of its CollectionResult.
"""
import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Response

from timetable.core.secrets import SecretsProvider
from timetable.collection import service
from timetable.collection.orchestrator import CollectionResult, collect
from timetable.collection.records import Period
from timetable.collection.schemas import CollectionResponse, DeleteResponse, PrayerTimeResponse
from timetable.collection.sources import get_source
from timetable.collection.task import source_config

logger = logging.getLogger(__name__)


def _period(year: Any, month: Any) -> Period:
    try:
        return Period.create(year, month)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _to_response(result: CollectionResult, response: Response) -> CollectionResponse:
    response.status_code = result.status
    body = None
    if result.body is not None:
        body = [PrayerTimeResponse.model_validate(row) for row in result.body]
    return CollectionResponse(status=result.status, body=body, error=result.error)


def get_router(timetable_app) -> Optional[APIRouter]:
    """Return router with the per-location collection routes and the month delete route."""
    router = APIRouter(tags=["Collection"])

    def run(source_name: str, period: Period, response: Response) -> CollectionResponse:
        config_data = timetable_app.config.data
        source = get_source(source_name, source_config(config_data, source_name), SecretsProvider(config_data))
        return _to_response(collect(source, period), response)

    @router.get("/london/{year}/{month}", response_model=CollectionResponse)
    def collect_london(year: int, month: str, response: Response) -> CollectionResponse:
        """Fetch and store London prayer times for the month."""
        return run("london", _period(year, month), response)

    @router.get("/birmingham", response_model=CollectionResponse)
    def collect_birmingham_current(response: Response) -> CollectionResponse:
        """Fetch and store Birmingham prayer times for the current month."""
        return run("birmingham", Period.current(), response)

    @router.get("/birmingham/{year}/{month}", response_model=CollectionResponse)
    def collect_birmingham(year: int, month: str, response: Response) -> CollectionResponse:
        """Fetch and store Birmingham prayer times for the month."""
        return run("birmingham", _period(year, month), response)

    @router.get("/manchester/{month}/{year}", response_model=CollectionResponse)
    def collect_manchester(month: str, year: int, response: Response) -> CollectionResponse:
        """Fetch and store Manchester prayer times. month may be a number or an English month name."""
        return run("manchester", _period(year, month), response)

    @router.delete("/times/location/{location_id}/{year}/{month}", response_model=DeleteResponse)
    def delete_location_month(location_id: int, year: int, month: str) -> DeleteResponse:
        """Remove every stored row for the location within the calendar month."""
        period = _period(year, month)
        deleted = service.delete_month(location_id, period)
        logger.info(f"Deleted {deleted} prayer times for location {location_id} in {period}")
        return DeleteResponse(success=True, deleted=deleted)

    return router
