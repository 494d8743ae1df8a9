"""
Error kinds raised by the collection stages. Only the orchestrator translates them into a result.
"""


class TimetableError(Exception):
    """Base for collection errors. status is the HTTP status the orchestrator reports."""
    status = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class SourceUnavailable(TimetableError):
    """Upstream fetch returned a non-success status (or never answered). message is the upstream status text."""
    status = 503


class MarkupShapeError(TimetableError):
    """Table body, rows or cells are missing or malformed. The whole run is aborted."""
    status = 502


class PersistenceError(TimetableError):
    """Bulk insert failed or stored no rows."""
    status = 500


class UnknownError(TimetableError):
    """Any other exception, wrapped with its original for diagnostics."""
    status = 500

    def __init__(self, original: BaseException):
        super().__init__(f"Internal server error: {original!r}")
        self.original = original
