from typing import Any, Dict, List, Optional

import pytest
import requests

from timetable.core import db as core_db

BIRMINGHAM_ROW = [
    "1st May 2024", "-", "6:15AM", "6:30AM", "7:02AM", "-", "1:05PM", "1:15PM",
    "5:30PM", "5:30PM", "-", "8:45PM", "8:45PM", "9:00PM", "9:00PM",
]


def table_html(rows: List[List[str]], header: Optional[List[str]] = None) -> str:
    head = ""
    if header:
        head = "<thead><tr>" + "".join(f"<th>{h}</th>" for h in header) + "</tr></thead>"
    body = "".join("<tr>" + "".join(f"<td>{c}</td>" for c in row) + "</tr>" for row in rows)
    return f"<html><body><table>{head}<tbody>{body}</tbody></table></body></html>"


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "", json_data: Any = None, reason: str = "OK"):
        self.status_code = status_code
        self.text = text
        self._json = json_data
        self.reason = reason

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self) -> Any:
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json


class FakeHttp:
    """Stands in for requests.request; replays queued responses (the last one repeats)."""

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.responses: List[Any] = []

    def queue(self, response: Any) -> None:
        self.responses.append(response)

    def __call__(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def fake_http(monkeypatch) -> FakeHttp:
    fake = FakeHttp()
    monkeypatch.setattr(requests, "request", fake)
    return fake


@pytest.fixture
def birmingham_html() -> str:
    header = ["Date", "Day", "Fajr", "Jamat", "Sunrise", "Ishraq", "Zuhr", "Jamat",
              "Asr", "Maghrib", "Asr Jamat", "Maghrib Jamat", "Isha", "Jamat", "Notes"]
    return table_html([BIRMINGHAM_ROW], header=header)


@pytest.fixture
def manchester_html() -> str:
    rows = [
        ["Date", "Day", "Fajr", "Jamat", "Sunrise", "", "Zuhr", "Jamat", "Asr", "Jamat",
         "Maghrib", "Jamat", "Isha", "Jamat"],
        ["1", "Wed", "3.45", "4.15", "5.10", "-", "1.05", "1.30", "6.10", "7.00",
         "8.50", "8.55", "10.20", "10.30"],
        ["May&nbsp;Bank&nbsp;Holiday"],
        ["2", "Thu", "3.42", "4.15", "5.08", "-", "12.59", "1.30", "6.11", "7.00",
         "8.52", "8.57", "10.23", "10.30"],
    ]
    return table_html(rows)


@pytest.fixture
def london_payload() -> Dict[str, Any]:
    return {
        "city": "london",
        "times": {
            "2024-05-02": {
                "date": "2024-05-02", "fajr": "03:38", "fajr_jamat": "04:15", "sunrise": "05:29",
                "dhuhr": "12:58", "dhuhr_jamat": "13:30", "asr": "16:51", "asr_2": "17:51",
                "asr_jamat": "18:15", "magrib": "20:28", "magrib_jamat": "20:28",
                "isha": "21:49", "isha_jamat": "22:00",
            },
            "2024-05-01": {
                "date": "2024-05-01", "fajr": "3:41", "fajr_jamat": "04:15", "sunrise": "05:31",
                "dhuhr": "12:58", "dhuhr_jamat": "13:30", "asr": "16:50",
                "asr_jamat": "18:15", "magrib": "20:26", "magrib_jamat": "20:26",
                "isha": "21:47", "isha_jamat": "22:00",
            },
        },
    }


@pytest.fixture
def database(tmp_path):
    core_db.dispose_db()
    core_db.init_db(db_url=f"sqlite:///{tmp_path / 'timetable.db'}")
    yield
    core_db.dispose_db()


@pytest.fixture
def config_data() -> Dict[str, Any]:
    return {
        "http": {"timeout_seconds": 5},
        "secrets": {"LONDON_PRAYER_TIMES_API": "test-key"},
        "locations": [
            {"id": 1, "name": "London", "code": "LDN"},
            {"id": 2, "name": "Birmingham", "code": "BIRM"},
            {"id": 3, "name": "Manchester", "code": "MANC"},
        ],
        "sources": {
            "london": {"location_id": 1, "url": "https://london.test/api/times/"},
            "birmingham": {"location_id": 2, "url": "https://birmingham.test/ajax"},
            "manchester": {"location_id": 3, "url": "https://manchester.test/timetable"},
        },
        "schedules": {},
    }
