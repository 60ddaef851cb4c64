"""Success values returned by command handlers.

The dispatcher treats these as opaque and hands them back to its caller
untouched; only the CLI presentation layer looks inside them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from switchyard.core.invocation import DatabaseOp

STATUS_OK: str = "OK"
STATUS_WARN: str = "WARN"
STATUS_FAIL: str = "FAIL"


# ---------------------------------------------------------------------------
# db
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class MigrationReport:
    """Outcome of ``db migrate`` or ``db rollback``."""

    op: DatabaseOp
    applied: tuple[int, ...]
    """Versions applied, in order.  Empty for rollbacks."""

    reverted: tuple[int, ...]
    """Versions reverted, in order.  Empty for migrations."""

    current: int
    """Schema version after the operation (unchanged on a dry run)."""

    latest: int
    dry_run: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.applied or self.reverted)


@dataclass(frozen=True, slots=True)
class DatabaseStatus:
    """Outcome of ``db status``."""

    current: int
    latest: int
    pending: tuple[int, ...]
    url: str


# ---------------------------------------------------------------------------
# server
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ServerReport:
    """Summary produced when the ``server`` command shuts down."""

    host: str
    port: int
    reloads: int = 0
    """Number of configuration reloads applied while serving."""


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ConfigReport:
    """Outcome of ``config show`` / ``config path``."""

    source: Path | None
    values: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# doctor
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CheckResult:
    """One row of the ``doctor`` report."""

    label: str
    value: str
    status: str
    """One of :data:`STATUS_OK`, :data:`STATUS_WARN`, :data:`STATUS_FAIL`."""


@dataclass(frozen=True, slots=True)
class DoctorReport:
    checks: tuple[CheckResult, ...]

    @property
    def ok(self) -> bool:
        """``True`` unless at least one check failed.  Warnings are fine."""
        return all(check.status != STATUS_FAIL for check in self.checks)
