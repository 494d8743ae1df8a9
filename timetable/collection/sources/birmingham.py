from typing import Dict, List

from timetable.collection.assemble import assemble_birmingham_rows
from timetable.collection.extract import extract_rows
from timetable.collection.records import Period, PrayerTimeRecord

from .base import RawPayload, TimetableSource


class BirminghamSource(TimetableSource):
    """HTML table returned by a form POST to an ajax action; numeric month and year."""

    name = "birmingham"
    default_location_id = 2
    action = "get_monthly_timetable"

    def form_data(self, period: Period) -> Dict[str, str]:
        return {
            "action": self.config.get("action") or self.action,
            "month": str(period.month),
            "year": str(period.year),
        }

    def fetch(self, period: Period) -> RawPayload:
        return self._request("POST", data=self.form_data(period)).text

    def records(self, payload: RawPayload, period: Period) -> List[PrayerTimeRecord]:
        rows = extract_rows(str(payload), selector=self.config.get("table_selector"))
        self.logger.info(f"Extracted {len(rows)} rows for {period}")
        return assemble_birmingham_rows(rows, self.location_id)
