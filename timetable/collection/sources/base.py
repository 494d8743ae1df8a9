from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Union
import logging

import requests

from timetable.collection.errors import SourceUnavailable
from timetable.collection.records import Period, PrayerTimeRecord

DEFAULT_TIMEOUT_SECONDS = 30
USER_AGENT = "Mozilla/5.0 (compatible; PrayerTimetableCollector/1.0)"

RawPayload = Union[str, Dict[str, Any]]


class TimetableSource(ABC):
    """One upstream publisher of a monthly timetable for one location. Holds config only."""

    name = ""
    default_location_id = 0

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.logger = logging.getLogger(self.__class__.__name__)
        self.location_id = int(config.get("location_id") or self.default_location_id)
        self.url = config.get("url")
        self.timeout = float(config.get("timeout_seconds") or DEFAULT_TIMEOUT_SECONDS)

    @abstractmethod
    def fetch(self, period: Period) -> RawPayload:
        """Fetch the raw timetable (HTML text or decoded JSON) for the period."""
        pass

    @abstractmethod
    def records(self, payload: RawPayload, period: Period) -> List[PrayerTimeRecord]:
        """Turn a raw payload into canonical records stamped with this source's location_id."""
        pass

    def collect(self, period: Period) -> List[PrayerTimeRecord]:
        return self.records(self.fetch(period), period)

    def _request(
        self,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """Send one request to the source URL. Non-success status or transport failure -> SourceUnavailable."""
        if not self.url:
            raise SourceUnavailable(f"No URL configured for source {self.name}")
        self.logger.info(f"{method} {self.url} for {self.name}")
        try:
            response = requests.request(
                method,
                self.url,
                params=params,
                data=data,
                headers={"User-Agent": USER_AGENT},
                timeout=self.timeout,
            )
        except requests.Timeout:
            raise SourceUnavailable(f"Timed out after {self.timeout:g}s")
        except requests.ConnectionError as e:
            raise SourceUnavailable(f"Connection failed: {e}")

        if not response.ok:
            self.logger.error(f"{self.name} returned {response.status_code} {response.reason}")
            raise SourceUnavailable(f"Failed to fetch prayer times: {response.reason or response.status_code}")
        return response
