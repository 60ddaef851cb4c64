"""Infrastructure layer: external system integration.

This layer wraps all interaction with the configuration file, the
database driver and the HTTP stack.  Every raw third-party exception
must be caught here and re-raised as a
:class:`~switchyard.exceptions.SwitchyardError` subclass.

Rules
-----
* No imports from ``cli`` or ``commands``.
* No user-facing output (no ``print()``, no Rich rendering).

The HTTP app lives in :mod:`.http_app` and is not re-exported;
importing this package never loads FastAPI.
"""

from switchyard.infra.config_loader import load_settings, resolve_config_path
from switchyard.infra.database import SqlDatabase
from switchyard.infra.migrations import MIGRATIONS, Migration

__all__: list[str] = [
    "MIGRATIONS",
    "Migration",
    "SqlDatabase",
    "load_settings",
    "resolve_config_path",
]
