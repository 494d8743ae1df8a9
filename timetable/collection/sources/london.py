from typing import Any, Dict, List, Optional

from timetable.collection.assemble import assemble_london_payload
from timetable.collection.errors import MarkupShapeError
from timetable.collection.records import Period, PrayerTimeRecord
from timetable.core.secrets import SecretsProvider

from .base import RawPayload, TimetableSource

DEFAULT_API_KEY_SECRET = "LONDON_PRAYER_TIMES_API"


class LondonSource(TimetableSource):
    """JSON API: GET with the API key, year and month in the query string, 24-hour clocks."""

    name = "london"
    default_location_id = 1

    def __init__(self, config: Dict[str, Any], secrets: Optional[SecretsProvider] = None):
        super().__init__(config)
        self.secrets = secrets or SecretsProvider()
        self.api_key_secret = config.get("api_key_secret") or DEFAULT_API_KEY_SECRET

    def query_params(self, period: Period) -> Dict[str, str]:
        return {
            "format": "json",
            "key": self.secrets.get(self.api_key_secret),
            "year": str(period.year),
            "month": str(period.month),
            "24hours": "true",
        }

    def fetch(self, period: Period) -> RawPayload:
        response = self._request("GET", params=self.query_params(period))
        try:
            return response.json()
        except ValueError:
            raise MarkupShapeError("London API did not return JSON")

    def records(self, payload: RawPayload, period: Period) -> List[PrayerTimeRecord]:
        if not isinstance(payload, dict):
            raise MarkupShapeError("London payload is not a JSON object")
        return assemble_london_payload(payload, self.location_id)
