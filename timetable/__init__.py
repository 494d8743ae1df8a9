"""Prayer timetable collector."""

__version__ = "0.1.0"
