"""Prayer timetable collection: sources, HTML extraction, normalization, persistence, scheduled tasks."""
