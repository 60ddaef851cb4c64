"""Domain models for switchyard.

All models are **frozen** dataclasses: immutable value objects with no
behaviour beyond data access.  A :class:`Settings` instance is a
configuration *snapshot*; a new configuration means a new instance,
never an in-place edit.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_DATABASE_URL: str = "sqlite:///switchyard.db"
DEFAULT_SERVER_HOST: str = "127.0.0.1"
DEFAULT_LOG_LEVEL: str = "INFO"


# ---------------------------------------------------------------------------
# Resolved configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Settings:
    """Fully resolved configuration for one process run."""

    database_url: str = DEFAULT_DATABASE_URL
    """SQLAlchemy URL of the shared database."""

    server_host: str = DEFAULT_SERVER_HOST
    """Interface the ``server`` command binds when ``--host`` is omitted."""

    log_level: str = DEFAULT_LOG_LEVEL
    """Name of the root log level (``DEBUG``, ``INFO``, ...)."""

    source: Path | None = None
    """File the settings were read from, or ``None`` for built-in defaults."""

    def as_dict(self) -> dict[str, Any]:
        """Return the settings keyed by their dotted configuration names."""
        return {
            "database.url": self.database_url,
            "server.host": self.server_host,
            "logging.level": self.log_level,
        }

    def lookup(self, key: str) -> Any:
        """Return the value stored under dotted *key*.

        Raises
        ------
        KeyError
            If *key* is not a known configuration name.
        """
        return self.as_dict()[key]
