"""Infrastructure: locate and parse the YAML configuration file.

Resolution order (first match wins):

1. an explicit ``--config PATH`` from the command line;
2. ``$SWITCHYARD_CONFIG_FILE``;
3. ``${XDG_CONFIG_HOME:-~/.config}/switchyard/config.yml``;
4. ``/etc/switchyard/config.yml``.

An explicit path (1 or 2) must exist.  When no implicit file exists the
built-in defaults from :mod:`switchyard.core.models` apply.

Rules
-----
* Only :class:`~switchyard.exceptions.ConfigError` escapes this module.
* No user-facing output.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from switchyard.core.models import (
    DEFAULT_DATABASE_URL,
    DEFAULT_LOG_LEVEL,
    DEFAULT_SERVER_HOST,
    Settings,
)
from switchyard.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_ENV: str = "SWITCHYARD_CONFIG_FILE"
DATABASE_URL_ENV: str = "SWITCHYARD_DATABASE_URL"

_LOG_LEVELS: frozenset[str] = frozenset(
    {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"},
)


# ---------------------------------------------------------------------------
# Path resolution
# ---------------------------------------------------------------------------

def search_paths() -> list[Path]:
    """Return the implicit locations checked when no explicit file is given."""
    xdg_home = os.environ.get("XDG_CONFIG_HOME")
    user_dir = Path(xdg_home) if xdg_home else Path.home() / ".config"
    return [
        user_dir / "switchyard" / "config.yml",
        Path("/etc/switchyard/config.yml"),
    ]


def resolve_config_path(explicit: Path | None = None) -> Path | None:
    """Return the config file to read, or ``None`` to use defaults.

    Raises
    ------
    ConfigError
        If an explicitly requested file does not exist.
    """
    if explicit is None:
        env_file = os.environ.get(CONFIG_FILE_ENV)
        if env_file:
            explicit = Path(env_file)

    if explicit is not None:
        path = explicit.expanduser()
        if not path.is_file():
            raise ConfigError(
                f"Configuration file not found: {path}",
                hint=f"Pass an existing file to --config or unset {CONFIG_FILE_ENV}.",
            )
        return path.resolve()

    for candidate in search_paths():
        if candidate.is_file():
            return candidate.resolve()
    return None


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def load_settings(explicit: Path | None = None) -> Settings:
    """Resolve, read and validate the configuration.

    Raises
    ------
    ConfigError
        If the file is missing (when explicit), unreadable, not valid
        YAML, or contains values of the wrong shape.
    """
    path = resolve_config_path(explicit)
    raw: Mapping[str, Any] = {}
    if path is None:
        logger.debug("no configuration file found; using defaults")
    else:
        raw = _read_yaml(path)
        logger.debug("configuration read from %s", path)

    database = _section(raw, "database", path)
    server = _section(raw, "server", path)
    logging_cfg = _section(raw, "logging", path)

    database_url = os.environ.get(DATABASE_URL_ENV) or _string(
        database, "url", DEFAULT_DATABASE_URL, path, "database",
    )
    log_level = _string(logging_cfg, "level", DEFAULT_LOG_LEVEL, path, "logging").upper()
    if log_level not in _LOG_LEVELS:
        raise ConfigError(
            f"Unknown log level {log_level!r}",
            hint=f"Set logging.level in {path} to one of: {', '.join(sorted(_LOG_LEVELS))}",
        )

    return Settings(
        database_url=database_url,
        server_host=_string(server, "host", DEFAULT_SERVER_HOST, path, "server"),
        log_level=log_level,
        source=path,
    )


def _read_yaml(path: Path) -> Mapping[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration file {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(
            f"Configuration file {path} is not valid YAML",
            hint=str(exc),
        ) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping at top level")
    return data


def _section(
    raw: Mapping[str, Any],
    name: str,
    path: Path | None,
) -> Mapping[str, Any]:
    value = raw.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(
            f"Section {name!r} must be a mapping",
            hint=f"Check {path}",
        )
    return value


def _string(
    section: Mapping[str, Any],
    key: str,
    default: str,
    path: Path | None,
    section_name: str,
) -> str:
    value = section.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(
            f"{section_name}.{key} must be a non-empty string",
            hint=f"Check {path}",
        )
    return value.strip()
