from typing import Dict, List

from timetable.collection.assemble import assemble_manchester_rows
from timetable.collection.extract import extract_rows
from timetable.collection.records import Period, PrayerTimeRecord

from .base import RawPayload, TimetableSource


class ManchesterSource(TimetableSource):
    """HTML table from a form POST naming the month in words. Rows start with the day of month."""

    name = "manchester"
    default_location_id = 3

    def form_data(self, period: Period) -> Dict[str, str]:
        return {
            "month": period.month_name,
            "year": str(period.year),
            "submit": "Show",
        }

    def fetch(self, period: Period) -> RawPayload:
        return self._request("POST", data=self.form_data(period)).text

    def records(self, payload: RawPayload, period: Period) -> List[PrayerTimeRecord]:
        rows = extract_rows(str(payload), selector=self.config.get("table_selector"), numbered_only=True)
        self.logger.info(f"Extracted {len(rows)} day rows for {period}")
        return assemble_manchester_rows(rows, self.location_id, period)
