from datetime import datetime
from queue import Queue

import pytest
from sqlalchemy import select

from timetable.collection import task as collection_task
from timetable.collection.orchestrator import CollectionResult
from timetable.collection.task import CollectionTask, source_config
from timetable.core.db import session_scope
from timetable.core.models import TaskSchedule
from timetable.core.task import TaskType, compute_next_run, get_next_run_from_db

MONTHLY = {"day": 1, "time": "09:00"}
FRIDAY = {"weekday": 4, "time": "14:00"}


@pytest.mark.parametrize("last_run, expected", [
    (datetime(2024, 5, 15, 10, 0), datetime(2024, 6, 1, 9, 0)),
    (datetime(2024, 5, 1, 8, 0), datetime(2024, 5, 1, 9, 0)),
    (datetime(2024, 5, 1, 9, 0), datetime(2024, 6, 1, 9, 0)),
    (datetime(2024, 12, 2, 0, 0), datetime(2025, 1, 1, 9, 0)),
])
def test_monthly_next_run(last_run, expected):
    assert compute_next_run(TaskType.MONTHLY, MONTHLY, last_run) == expected


@pytest.mark.parametrize("last_run, expected", [
    # Wednesday
    (datetime(2024, 5, 1, 12, 0), datetime(2024, 5, 3, 14, 0)),
    # Friday before and after 14:00
    (datetime(2024, 5, 3, 13, 0), datetime(2024, 5, 3, 14, 0)),
    (datetime(2024, 5, 3, 15, 0), datetime(2024, 5, 10, 14, 0)),
    # Saturday
    (datetime(2024, 5, 4, 9, 0), datetime(2024, 5, 10, 14, 0)),
])
def test_weekly_next_run(last_run, expected):
    assert compute_next_run(TaskType.WEEKLY, FRIDAY, last_run) == expected


def test_schedule_from_config():
    monthly = CollectionTask("Collect London", {"source": "london", "type": "monthly"})
    assert (monthly.schedule_type, monthly.schedule_config) == (TaskType.MONTHLY, MONTHLY)

    retry = CollectionTask("Retry Manchester If Needed", {"source": "manchester", "type": "weekly"})
    assert (retry.schedule_type, retry.schedule_config) == (TaskType.WEEKLY, FRIDAY)
    assert retry.source_name == "manchester"

    with pytest.raises(ValueError):
        CollectionTask("Bad", {"source": "london", "type": "fortnightly"})


def test_source_config_fills_in_global_timeout(config_data):
    assert source_config(config_data, "birmingham")["timeout_seconds"] == 5
    config_data["sources"]["birmingham"]["timeout_seconds"] = 60
    assert source_config(config_data, "birmingham")["timeout_seconds"] == 60
    assert source_config(config_data, "leeds") == {"timeout_seconds": 5}


def test_ensure_scheduled_creates_row_once(database):
    task = CollectionTask("Collect Birmingham", {"source": "birmingham", "type": "monthly"})
    first = task.ensure_scheduled()
    assert first.day == 1 and (first.hour, first.minute) == (9, 0)
    assert task.ensure_scheduled() == first
    assert get_next_run_from_db("Collect Birmingham") == first


def test_run_reports_and_reschedules(database, config_data, monkeypatch):
    calls = []

    def fake_collect(source, period):
        calls.append((source.name, source.location_id, source.timeout, period))
        return CollectionResult(status=200, body=["row"])

    monkeypatch.setattr(collection_task, "collect", fake_collect)
    task = CollectionTask("Retry Manchester If Needed", {"source": "manchester", "type": "weekly"})
    task.ensure_scheduled()
    results = Queue()

    result = task.run({"source": "manchester"}, results, config_data=config_data)

    assert result.status == 200
    [(name, location_id, timeout, period)] = calls
    assert (name, location_id, timeout) == ("manchester", 3, 5)
    assert results.get_nowait() == ("Retry Manchester If Needed", result)
    with session_scope() as session:
        row = session.execute(select(TaskSchedule)).scalars().one()
    assert row.last_run_at is not None
    assert row.last_error is None
    assert row.next_run_at > row.last_run_at
    assert row.next_run_at.weekday() == 4


def test_failed_run_still_moves_next_run_forward(database, config_data, monkeypatch):
    monkeypatch.setattr(
        collection_task, "collect",
        lambda source, period: CollectionResult(status=503, error="Failed to fetch prayer times: Bad Gateway"),
    )
    task = CollectionTask("Collect London", {"source": "london", "type": "monthly"})
    task.ensure_scheduled()

    result = task.run({"source": "london"}, Queue(), config_data=config_data)

    assert result.status == 503
    with session_scope() as session:
        row = session.execute(select(TaskSchedule)).scalars().one()
    assert row.last_error == "503: Failed to fetch prayer times: Bad Gateway"
    assert row.next_run_at > row.last_run_at


def test_unknown_schedule_type_has_no_next_run():
    with pytest.raises(ValueError):
        compute_next_run("daily", {"time": "09:00"}, datetime(2024, 5, 1))
