from typing import Dict, Any, Optional
import logging
import os
import sys
from pathlib import Path
from queue import Empty

from .config import Config
from .task_manager import TaskManager


class TimetableApp:
    def __init__(self, config_path: Optional[str] = None, watch_config: bool = True):
        self.logger = logging.getLogger(self.__class__.__name__)

        self.config = Config(config_path=config_path, watch=watch_config)
        self.config.register_change_callback(self.handle_config_change)

        self._setup_logging()

        # Initialize database (before tasks so tables exist)
        from .db import init_db
        init_db(self.config.data)

        # Location rows come from config; collected records reference them by id
        from timetable.collection.service import sync_locations_from_config
        sync_locations_from_config(self.config.data)

        self.task_manager = TaskManager()
        self.register_tasks()

        self.api_thread = None
        try:
            from timetable.api import run_api_server
            self.api_thread = run_api_server(self)
        except Exception as e:
            self.logger.warning(f"API server not started: {e}")

    def _setup_logging(self):
        """Configure logging to write to both file and stdout"""
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
        log_config = self.config.data.get("logging") or {}
        root_logger.setLevel(getattr(logging, str(log_config.get("level", "INFO")).upper(), logging.INFO))

        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
        )

        log_file = log_config.get("file")
        if log_file:
            Path(log_file).expanduser().parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(os.path.expanduser(log_file))
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        logging.info("Prayer timetable service starting...")

    def register_tasks(self) -> None:
        """Register one CollectionTask per `schedules` entry and schedule it from its DB next_run."""
        from timetable.collection.task import CollectionTask

        schedules = self.config.data.get("schedules") or {}
        for name in list(self.task_manager.registered_task_names):
            if name not in schedules or not (schedules[name] or {}).get("enable", True):
                self.logger.info(f"Removing schedule {name}")
                self.task_manager.unregister_task(name)

        for name, schedule in schedules.items():
            schedule = schedule or {}
            if not schedule.get("enable", True):
                self.logger.info(f"Schedule {name} disabled")
                continue
            try:
                task = CollectionTask(name, schedule)
                next_run = task.ensure_scheduled()
            except Exception as e:
                self.logger.error(f"Invalid schedule {name}: {e}")
                continue
            self.logger.info(f"Schedule {name}: {task.source_name} {task.schedule_type} {task.schedule_config}, next run {next_run}")
            self.task_manager.register_task(name, task.run)
            self.task_manager.schedule_registered_task(name, schedule, self.config.data)

    def handle_config_change(self, new_config: Dict[str, Any]) -> None:
        """Re-register tasks so schedule and source changes apply without a restart."""
        self.logger.info("Handling config change")
        try:
            self.register_tasks()
        except Exception as e:
            self.logger.error(f"Error handling config change: {e}", exc_info=True)

    def _drain_result_queue(self, timeout: float = 1.0) -> None:
        """Log results of background collection runs."""
        try:
            task_name, result = self.task_manager.result_queue.get(timeout=timeout)
        except Empty:
            return
        if result is not None and getattr(result, "error", None):
            self.logger.warning(f"Task {task_name} finished with status {result.status}: {result.error}")
        else:
            self.logger.info(f"Task {task_name} finished with status {getattr(result, 'status', None)}")

    def stop(self) -> None:
        self.task_manager.stop()
        self.config.cleanup()

    def run(self):
        try:
            while True:
                self._drain_result_queue()
        except KeyboardInterrupt:
            self.logger.info("Shutting down")
        finally:
            self.stop()
