from typing import Any, Dict, Optional

from timetable.core.secrets import SecretsProvider

from .base import TimetableSource
from .birmingham import BirminghamSource
from .london import LondonSource
from .manchester import ManchesterSource

__all__ = ["TimetableSource", "BirminghamSource", "LondonSource", "ManchesterSource", "get_source"]

_SOURCES = {
    "london": LondonSource,
    "birmingham": BirminghamSource,
    "manchester": ManchesterSource,
}


def get_source(
    source_name: str,
    config: Optional[Dict[str, Any]] = None,
    secrets: Optional[SecretsProvider] = None,
) -> Optional[TimetableSource]:
    """Factory: return source instance for given name, or None if unknown."""
    cls = _SOURCES.get((source_name or "").lower())
    if not cls:
        return None
    if cls is LondonSource:
        return cls(config or {}, secrets=secrets)
    return cls(config or {})
