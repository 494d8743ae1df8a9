"""
Base task type and abstract BaseTask with next_run persistence in DB.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from queue import Queue
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import select

from timetable.core.db import session_scope
from timetable.core.models import TaskSchedule

logger = logging.getLogger(__name__)


class TaskType:
    """Schedule kind for tasks."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _parse_time(time_str: Any) -> Tuple[int, int]:
    parts = str(time_str).strip().split(":")
    hour = int(parts[0]) if parts and parts[0] else 0
    minute = int(parts[1]) if len(parts) > 1 else 0
    return hour, minute


def compute_next_run(
    schedule_type: str,
    schedule_config: Optional[Dict[str, Any]],
    last_run: Optional[datetime],
) -> datetime:
    """Compute next run datetime from schedule_type, schedule_config, and last_run."""
    if last_run is None:
        last_run = _utc_now()
    schedule_config = schedule_config or {}

    if schedule_type == TaskType.WEEKLY:
        # weekday follows datetime.weekday(): Monday is 0, Friday is 4
        weekday = int(schedule_config.get("weekday", 0)) % 7
        hour, minute = _parse_time(schedule_config.get("time", "00:00"))
        next_run = last_run.replace(hour=hour, minute=minute, second=0, microsecond=0)
        next_run += timedelta(days=(weekday - last_run.weekday()) % 7)
        if next_run <= last_run:
            next_run += timedelta(days=7)
        return next_run

    if schedule_type == TaskType.MONTHLY:
        # Clamped so every month has the day
        day = min(max(int(schedule_config.get("day", 1)), 1), 28)
        hour, minute = _parse_time(schedule_config.get("time", "00:00"))
        next_run = last_run.replace(day=day, hour=hour, minute=minute, second=0, microsecond=0)
        if next_run <= last_run:
            if next_run.month == 12:
                next_run = next_run.replace(year=next_run.year + 1, month=1)
            else:
                next_run = next_run.replace(month=next_run.month + 1)
        return next_run

    raise ValueError(f"Unsupported schedule type {schedule_type!r}")


def get_next_run_from_db(task_name: str) -> Optional[datetime]:
    """Read next_run_at for task from DB. Returns None if no row or next_run_at is null."""
    try:
        with session_scope() as session:
            row = session.execute(
                select(TaskSchedule).where(TaskSchedule.task_name == task_name)
            ).scalars().first()
            if row and row.next_run_at is not None:
                return row.next_run_at
    except Exception as e:
        logger.debug(f"get_next_run_from_db {task_name}: {e}")
    return None


def upsert_task_schedule(
    task_name: str,
    schedule_type: str,
    schedule_config: Optional[Dict[str, Any]],
) -> datetime:
    """
    Create or update TaskSchedule row and return its next_run_at.
    New rows get the next slot computed from now. Existing rows keep next_run_at unless the
    schedule itself changed (e.g. config reload), in which case it is recomputed.
    """
    with session_scope() as session:
        row = session.execute(
            select(TaskSchedule).where(TaskSchedule.task_name == task_name)
        ).scalars().first()
        now = _utc_now()
        if row:
            changed = row.schedule_type != schedule_type or row.schedule_config != schedule_config
            row.schedule_type = schedule_type
            row.schedule_config = schedule_config
            if changed or row.next_run_at is None:
                row.next_run_at = compute_next_run(schedule_type, schedule_config, now)
            row.updated_at = now
            return row.next_run_at
        next_run_at = compute_next_run(schedule_type, schedule_config, now)
        session.add(TaskSchedule(
            task_name=task_name,
            schedule_type=schedule_type,
            schedule_config=schedule_config,
            next_run_at=next_run_at,
            created_at=now,
            updated_at=now,
        ))
        return next_run_at


def update_after_run(task_name: str, last_error: Optional[str] = None) -> None:
    """Update last_run_at, last_error and next_run_at in DB after a task run (successful or not)."""
    with session_scope() as session:
        row = session.execute(
            select(TaskSchedule).where(TaskSchedule.task_name == task_name)
        ).scalars().first()
        if not row:
            return
        now = _utc_now()
        row.last_run_at = now
        row.last_error = last_error
        row.next_run_at = compute_next_run(row.schedule_type, row.schedule_config, now)
        row.updated_at = now


class BaseTask(ABC):
    """
    Abstract base for background tasks. Subclasses implement run();
    base helps with get_next_run and persisting next_run in DB.
    """

    def __init__(self, task_name: str, schedule_type: str, schedule_config: Optional[Dict[str, Any]] = None):
        self.task_name = task_name
        self.schedule_type = schedule_type
        self.schedule_config = schedule_config or {}
        self.logger = logging.getLogger(self.__class__.__name__)

    def get_next_run(self, last_run: Optional[datetime] = None) -> datetime:
        """Compute next run time from schedule_type and schedule_config."""
        return compute_next_run(self.schedule_type, self.schedule_config, last_run)

    def ensure_scheduled(self) -> datetime:
        """Ensure TaskSchedule row exists so next run survives restarts."""
        return upsert_task_schedule(self.task_name, self.schedule_type, self.schedule_config)

    @abstractmethod
    def run(
        self,
        config: Dict[str, Any],
        result_queue: Queue,
        **kwargs: Any,
    ) -> None:
        """
        Execute the task. Subclass should: do work, then call update_after_run(self.task_name),
        then result_queue.put((task_name, result)).
        """
        pass
