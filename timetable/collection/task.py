"""
Background task: collect one source for the current month, persist next_run in DB.

Registered once per entry in the config `schedules` section. The weekly Manchester entry
re-runs the whole collection unconditionally; it does not check whether the month is already stored.
"""
from typing import Any, Dict, Optional, Tuple

from timetable.core.secrets import SecretsProvider
from timetable.core.task import (
    BaseTask,
    TaskType,
    update_after_run,
)
from timetable.collection.orchestrator import STATUS_OK, CollectionResult, collect
from timetable.collection.records import Period
from timetable.collection.sources import get_source

_SCHEDULE_TYPES = {
    TaskType.MONTHLY: ("day", "time"),
    TaskType.WEEKLY: ("weekday", "time"),
}


def source_config(config_data: Optional[Dict[str, Any]], source_name: str) -> Dict[str, Any]:
    """Source section of the app config, with the global HTTP timeout filled in."""
    config_data = config_data or {}
    cfg = dict((config_data.get("sources") or {}).get(source_name) or {})
    timeout = (config_data.get("http") or {}).get("timeout_seconds")
    if timeout and "timeout_seconds" not in cfg:
        cfg["timeout_seconds"] = timeout
    return cfg


class CollectionTask(BaseTask):
    """Collect prayer times for the current month from one source."""

    def __init__(self, task_name: str, config: Dict[str, Any]):
        schedule_type, schedule_config = self._schedule_from_config(config)
        super().__init__(task_name, schedule_type, schedule_config)
        self.source_name = config.get("source", "")
        self.config = config

    def _schedule_from_config(self, config: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        schedule_type = str(config.get("type", TaskType.MONTHLY)).lower()
        keys = _SCHEDULE_TYPES.get(schedule_type)
        if keys is None:
            raise ValueError(f"Unsupported schedule type {schedule_type!r} for source {config.get('source')!r}")
        schedule_config = {k: config[k] for k in keys if k in config}
        if schedule_type == TaskType.MONTHLY:
            schedule_config.setdefault("day", 1)
            schedule_config.setdefault("time", "09:00")
        elif schedule_type == TaskType.WEEKLY:
            schedule_config.setdefault("weekday", 4)
            schedule_config.setdefault("time", "14:00")
        return schedule_type, schedule_config

    def run(
        self,
        config: Dict[str, Any],
        result_queue: Any,
        config_data: Optional[Dict[str, Any]] = None,
        **kwargs: Any,
    ) -> CollectionResult:
        period = Period.current()
        source = get_source(self.source_name, source_config(config_data, self.source_name), SecretsProvider(config_data))
        if source is None:
            result = CollectionResult(status=400, error=f"Unknown source {self.source_name!r}")
        else:
            result = collect(source, period)

        if result.status == STATUS_OK:
            self.logger.info(f"{self.task_name}: stored {len(result.body)} rows for {period}")
            update_after_run(self.task_name)
        else:
            self.logger.warning(f"{self.task_name}: collection for {period} failed ({result.status}): {result.error}")
            update_after_run(self.task_name, last_error=f"{result.status}: {result.error}")

        try:
            result_queue.put((self.task_name, result))
        except Exception as e:
            self.logger.debug(f"Could not report result for {self.task_name}: {e}")
        return result
