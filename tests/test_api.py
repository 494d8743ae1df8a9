from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from timetable.api.server import create_app
from timetable.collection import service
from timetable.core.task_manager import TaskManager
from tests.conftest import FakeResponse


@pytest.fixture
def client(database, config_data):
    service.sync_locations_from_config(config_data)
    app = SimpleNamespace(config=SimpleNamespace(data=config_data), task_manager=TaskManager())
    return TestClient(create_app(app))


def test_collect_birmingham_month(client, fake_http, birmingham_html):
    fake_http.queue(FakeResponse(text=birmingham_html))

    response = client.get("/birmingham/2024/5")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == 200
    assert data["error"] is None
    [row] = data["body"]
    assert row["date"] == "2024-05-01"
    assert row["location_id"] == 2
    assert row["maghrib"] == "17:30"
    assert fake_http.calls[0]["url"] == "https://birmingham.test/ajax"
    assert fake_http.calls[0]["timeout"] == 5


def test_collect_manchester_by_month_name(client, fake_http, manchester_html):
    fake_http.queue(FakeResponse(text=manchester_html))

    response = client.get("/manchester/May/2024")

    assert response.status_code == 200
    assert [row["date"] for row in response.json()["body"]] == ["2024-05-01", "2024-05-02"]
    assert fake_http.calls[0]["data"]["month"] == "May"


def test_collect_london(client, fake_http, london_payload, monkeypatch):
    monkeypatch.delenv("LONDON_PRAYER_TIMES_API", raising=False)
    fake_http.queue(FakeResponse(json_data=london_payload))

    response = client.get("/london/2024/5")

    assert response.status_code == 200
    assert len(response.json()["body"]) == 2
    assert fake_http.calls[0]["params"]["key"] == "test-key"


def test_upstream_failure_is_reported_with_status(client, fake_http):
    fake_http.queue(FakeResponse(status_code=500, reason="Internal Server Error"))

    response = client.get("/birmingham/2024/5")

    assert response.status_code == 503
    data = response.json()
    assert data["body"] is None
    assert "Internal Server Error" in data["error"]


def test_bad_month_is_rejected(client, fake_http):
    response = client.get("/manchester/Smarch/2024")
    assert response.status_code == 400
    assert fake_http.calls == []


def test_delete_month_then_find(client, fake_http, birmingham_html):
    fake_http.queue(FakeResponse(text=birmingham_html))
    client.get("/birmingham/2024/5")
    client.get("/birmingham/2024/5")

    found = client.get("/times/find/2/2024/5").json()
    assert len(found["result"]) == 2
    assert found["result"][0]["location"]["code"] == "BIRM"

    response = client.delete("/times/location/2/2024/5")
    assert response.json() == {"success": True, "deleted": 2}
    assert client.get("/times/find/2/2024/5").json()["result"] == []


def test_create_and_list_times(client):
    response = client.post("/times", json={
        "location_id": 1, "date": "2024-05-01", "fajr": "3:41", "dhuhr": "12:58",
        "asr": "16:50", "maghrib": "20:26", "isha": "21:47",
    })
    assert response.status_code == 200
    created = response.json()["result"]
    assert created["fajr"] == "03:41"
    assert created["asr2"] == "16:50"
    assert created["isha_jamat"] is None

    listed = client.get("/times").json()["result"]
    assert [r["id"] for r in listed] == [created["id"]]
    assert listed[0]["location"]["name"] == "London"
    assert client.get("/times/1").json()["result"][0]["id"] == created["id"]
    assert client.get("/times/2").json()["result"] == []


DAY = {"location_id": 1, "date": "2024-05-01", "fajr": "03:41", "dhuhr": "12:58",
       "asr": "16:50", "maghrib": "20:26", "isha": "21:47"}


def test_create_rejects_12_hour_clock(client):
    response = client.post("/times", json={**DAY, "fajr": "6:15AM"})
    assert response.status_code == 422


@pytest.mark.parametrize("body", [
    {k: v for k, v in DAY.items() if k != "isha"},
    {**DAY, "maghrib": ""},
])
def test_create_requires_every_start_time(client, body):
    response = client.post("/times", json=body)
    assert response.status_code == 422
    assert client.get("/times").json()["result"] == []


def test_find_locations(client):
    data = client.get("/locations/find").json()
    assert data["success"] is True
    assert [l["code"] for l in data["result"]] == ["LDN", "BIRM", "MANC"]


def test_tasks_endpoint(client):
    data = client.get("/api/tasks").json()
    assert data == {"db_schedules": [], "active_timers": []}
