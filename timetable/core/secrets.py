"""
Secret lookup: environment first (including values loaded from .env by Config), then the
`secrets` section of the config file.
"""
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class SecretsProvider:
    def __init__(self, config_data: Optional[Dict[str, Any]] = None):
        self._secrets = dict((config_data or {}).get("secrets") or {})

    def get(self, key: str) -> str:
        """Return the secret value for key. Raises KeyError when it is not configured anywhere."""
        value = os.environ.get(key)
        if value:
            return value.strip()
        value = self._secrets.get(key)
        # An unresolved ${VAR} reference means the variable was never set
        if value and not str(value).startswith("$"):
            return str(value).strip()
        logger.error(f"Secret {key} is not set in the environment or config")
        raise KeyError(key)
