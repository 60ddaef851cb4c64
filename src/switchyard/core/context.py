"""Execution context shared by every handler in one process run.

The context is assembled once, after argument parsing succeeds, and is
passed by reference into each dispatch.  Handlers read from it but never
assign to it; configuration changes arrive only through
:class:`ConfigCell`, which swaps whole snapshots atomically.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field

from switchyard.core.models import Settings
from switchyard.core.protocols import DatabaseClient, Prompter
from switchyard.exceptions import ResourceUnavailableError, StartupError

logger = logging.getLogger(__name__)

SettingsLoader = Callable[[], Settings]
DatabaseFactory = Callable[[str], DatabaseClient]


# ---------------------------------------------------------------------------
# Hot-swappable configuration
# ---------------------------------------------------------------------------

class ConfigCell:
    """Atomically replaceable reference to an immutable :class:`Settings`.

    Readers call :meth:`snapshot` once at the start of their work and use
    that object throughout, so a concurrent :meth:`replace` can never
    give them a mix of old and new values.

    Parameters
    ----------
    initial:
        The snapshot visible until the first swap.
    loader:
        Optional zero-argument callable used by :meth:`reload` to produce
        a fresh snapshot (typically re-reading the config file).
    """

    def __init__(self, initial: Settings, loader: SettingsLoader | None = None) -> None:
        self._current: Settings = initial
        self._loader: SettingsLoader | None = loader
        self._lock = threading.Lock()
        self._generation: int = 0

    def snapshot(self) -> Settings:
        """Return the current settings object."""
        return self._current

    @property
    def can_reload(self) -> bool:
        return self._loader is not None

    @property
    def generation(self) -> int:
        """Number of swaps performed since construction."""
        return self._generation

    def replace(self, settings: Settings) -> Settings:
        """Install *settings* as the current snapshot and return the previous one."""
        with self._lock:
            previous = self._current
            self._current = settings
            self._generation += 1
        logger.debug("configuration swapped (generation %d)", self._generation)
        return previous

    def reload(self) -> Settings:
        """Re-run the loader and swap in its result.

        The previous snapshot stays in place if the loader raises.

        Raises
        ------
        ConfigError
            Propagated from the loader.
        RuntimeError
            If the cell was built without a loader.
        """
        if self._loader is None:
            raise RuntimeError("ConfigCell has no loader; cannot reload")
        fresh = self._loader()
        self.replace(fresh)
        logger.info("configuration reloaded from %s", fresh.source or "defaults")
        return fresh


# ---------------------------------------------------------------------------
# Context
# ---------------------------------------------------------------------------

class _DefaultAnswerPrompter:
    """Prompter for non-interactive runs: always answers the default."""

    def confirm(self, message: str, *, default: bool = False) -> bool:
        logger.debug("non-interactive confirm %r -> %s", message, default)
        return default


@dataclass(frozen=True)
class ExecutionContext:
    """Shared, read-mostly state for one process run."""

    config: ConfigCell
    database: DatabaseClient
    prompter: Prompter = field(default_factory=_DefaultAnswerPrompter)

    def settings(self) -> Settings:
        """Shorthand for ``self.config.snapshot()``."""
        return self.config.snapshot()

    def close(self) -> None:
        """Release shared client handles."""
        self.database.close()

    def __enter__(self) -> ExecutionContext:
        return self

    def __exit__(self, *_args: object) -> None:
        self.close()


def build_context(
    settings: Settings,
    *,
    database_factory: DatabaseFactory,
    loader: SettingsLoader | None = None,
    prompter: Prompter | None = None,
) -> ExecutionContext:
    """Acquire shared resources and assemble the :class:`ExecutionContext`.

    Raises
    ------
    StartupError
        If any resource cannot be acquired.  Failures are never deferred
        to a handler.
    """
    try:
        database = database_factory(settings.database_url)
    except StartupError:
        raise
    except Exception as exc:
        raise ResourceUnavailableError(
            f"Could not open database: {exc}",
            hint="Check database.url in your configuration.",
        ) from exc

    logger.debug("execution context ready (database=%s)", database.describe())
    return ExecutionContext(
        config=ConfigCell(settings, loader=loader),
        database=database,
        prompter=prompter if prompter is not None else _DefaultAnswerPrompter(),
    )
