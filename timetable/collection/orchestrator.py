"""
Run one source end to end: fetch, extract, assemble, persist.
Stages raise; this module is the single place errors become a CollectionResult.
No retry happens here. A retry is simply another call.
"""
import logging
from collections import namedtuple
from typing import Any, Callable, List, Sequence

from timetable.collection import service
from timetable.collection.errors import PersistenceError, TimetableError, UnknownError
from timetable.collection.records import Period, PrayerTimeRecord
from timetable.collection.sources.base import TimetableSource

logger = logging.getLogger(__name__)

STATUS_OK = 200

CollectionResult = namedtuple("CollectionResult", ["status", "body", "error"], defaults=(None, None))


def _persist(records: List[PrayerTimeRecord], insert_batch: Callable[[Sequence[PrayerTimeRecord]], List[Any]]) -> List[Any]:
    if not records:
        raise PersistenceError("No prayer times were assembled, nothing to insert")
    try:
        inserted = insert_batch(records)
    except TimetableError:
        raise
    except Exception as e:
        raise PersistenceError(f"Error inserting prayer times: {e}") from e
    if not inserted:
        raise PersistenceError("Insert stored no prayer times")
    return inserted


def collect(
    source: TimetableSource,
    period: Period,
    insert_batch: Callable[[Sequence[PrayerTimeRecord]], List[Any]] = service.insert_batch,
) -> CollectionResult:
    """Collect and persist one month for one source. Never raises."""
    logger.info(f"Collecting {source.name} for {period}")
    try:
        payload = source.fetch(period)
        records = source.records(payload, period)
        inserted = _persist(records, insert_batch)
    except TimetableError as e:
        logger.error(f"Collection of {source.name} for {period} failed: {type(e).__name__}: {e.message}")
        return CollectionResult(status=e.status, error=e.message)
    except Exception as e:
        error = UnknownError(e)
        logger.exception(f"Collection of {source.name} for {period} failed unexpectedly: {e}")
        return CollectionResult(status=error.status, error=error.message)

    logger.info(f"Stored {len(inserted)} prayer times for {source.name} {period}")
    return CollectionResult(status=STATUS_OK, body=inserted)
