"""
Single place for scheduling: in-memory timers driven by DB-backed registered tasks.
"""
import logging
from datetime import datetime, timezone
from queue import Queue
from threading import Timer
from typing import Any, Callable, Dict, List, Optional

from timetable.core.task import get_next_run_from_db


class TaskManager:
    def __init__(self):
        self.tasks: Dict[str, Timer] = {}
        self.result_queue = Queue()
        self.logger = logging.getLogger("TaskManager")
        self._registered_tasks: Dict[str, Callable[..., None]] = {}
        self._registered_config: Dict[str, tuple] = {}  # task_name -> (config, config_data)
        self._stopped = False

    def schedule_task(self, name: str, callback: Callable, delay: float, one_time: bool = True) -> None:
        """Schedule a task to run after delay seconds."""
        try:
            if self._stopped:
                return
            self.logger.info(f"Scheduling task {name} with delay {int(delay)} seconds")
            if name in self.tasks:
                self.logger.debug(f"Cancelling existing task {name}")
                self.tasks[name].cancel()

            scheduled_time = datetime.now(timezone.utc).timestamp() + delay
            timer = Timer(delay, self._run_task, args=(name, callback, delay, one_time))
            timer.daemon = True
            timer.scheduled_time = scheduled_time

            self.tasks[name] = timer
            timer.start()
            self.logger.info(
                f"Timer started for {name}, scheduled for "
                f"{datetime.fromtimestamp(scheduled_time, tz=timezone.utc).isoformat()}"
            )
        except Exception as e:
            self.logger.error(f"Error scheduling task {name}: {e}")

    def _run_task(self, name: str, callback: Callable, delay: float, one_time: bool) -> None:
        """Run the task and reschedule if needed."""
        try:
            callback()
            if not one_time:
                self.schedule_task(name, callback, delay, one_time)
        except Exception as e:
            self.logger.error(f"Error running task {name}: {e}")

    def register_task(self, task_name: str, runnable: Callable[..., None]) -> None:
        """Register a runnable. runnable(config, result_queue, **kwargs) does the work and updates next_run in DB."""
        self._registered_tasks[task_name] = runnable
        self.logger.debug(f"Registered task: {task_name}")

    def unregister_task(self, task_name: str) -> None:
        """Forget a registered task and cancel its timer."""
        self._registered_tasks.pop(task_name, None)
        self._registered_config.pop(task_name, None)
        timer = self.tasks.pop(task_name, None)
        if timer:
            timer.cancel()

    @property
    def registered_task_names(self) -> List[str]:
        return list(self._registered_tasks)

    def schedule_registered_task(
        self,
        task_name: str,
        config: Dict[str, Any],
        config_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Schedule a registered task: run at next_run from DB (or immediately if past due).
        After running, the runnable updates next_run in DB; we reschedule again for the new next_run.
        """
        if task_name not in self._registered_tasks:
            self.logger.warning(f"No task registered with name: {task_name}")
            return
        self._registered_config[task_name] = (config, config_data)
        next_run = get_next_run_from_db(task_name)
        now = datetime.now(timezone.utc).replace(tzinfo=None)
        if next_run is None:
            delay = 0
        else:
            delay = max(0, (next_run - now).total_seconds())
        callback = lambda: self._run_registered_and_reschedule(task_name)
        self.schedule_task(task_name, callback, delay, one_time=True)

    def _run_registered_and_reschedule(self, task_name: str) -> None:
        """Run the registered runnable then reschedule for next_run from DB."""
        runnable = self._registered_tasks.get(task_name)
        if runnable:
            try:
                config, config_data = self._registered_config.get(task_name, (None, None))
                if config is None:
                    return
                if config_data is not None:
                    runnable(config, self.result_queue, config_data=config_data)
                else:
                    runnable(config, self.result_queue)
            except Exception as e:
                self.logger.exception(f"Registered task {task_name} failed: {e}")
        config, config_data = self._registered_config.get(task_name, (None, None))
        if config is not None and task_name in self._registered_tasks:
            self.schedule_registered_task(task_name, config, config_data)

    def get_active_timers(self) -> List[Dict[str, Any]]:
        """Return list of active timer names and their next run time (for API)."""
        result = []
        for name, timer in self.tasks.items():
            if getattr(timer, "scheduled_time", None) is not None:
                next_run = datetime.fromtimestamp(timer.scheduled_time, tz=timezone.utc)
                result.append({"name": name, "next_run_at": next_run})
        return result

    def stop(self) -> None:
        """Stop all scheduled tasks."""
        self._stopped = True
        for task in self.tasks.values():
            task.cancel()
