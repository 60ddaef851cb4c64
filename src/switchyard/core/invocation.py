"""Invocation values: the closed set of commands switchyard understands.

Each subcommand is one frozen dataclass carrying its validated
parameters.  :data:`Invocation` is the union of all of them; adding a
command means adding a class here plus a dispatcher branch for its
handler.  Nothing is registered at runtime.

Payloads validate themselves in ``__post_init__`` so an invalid value
can never be constructed, whether it comes from argparse or from code.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union

from switchyard.exceptions import UsageError

MAX_PORT: int = 65535


class DatabaseOp(enum.Enum):
    """Operations accepted by ``switchyard db``."""

    MIGRATE = "migrate"
    STATUS = "status"
    ROLLBACK = "rollback"


class ConfigOp(enum.Enum):
    """Operations accepted by ``switchyard config``."""

    SHOW = "show"
    PATH = "path"


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DatabaseCommand:
    """``switchyard db {migrate,status,rollback}``."""

    op: DatabaseOp
    target: int | None = None
    """Schema version to migrate or roll back to.  ``None`` means latest."""

    dry_run: bool = False
    assume_yes: bool = False
    """Skip the confirmation prompt before destructive operations."""

    def __post_init__(self) -> None:
        if self.target is not None and self.target < 0:
            raise UsageError(
                f"argument --target: must be >= 0, got {self.target}",
            )
        if self.op is DatabaseOp.ROLLBACK and self.target is None:
            raise UsageError(
                "the following arguments are required: --target",
                hint="Rollback needs an explicit version, e.g. --target 0",
            )
        if self.op is DatabaseOp.STATUS and self.target is not None:
            raise UsageError("argument --target: not allowed with 'db status'")


@dataclass(frozen=True, slots=True)
class ServerCommand:
    """``switchyard server --port PORT [--host HOST]``."""

    port: int
    """TCP port; ``0`` asks the OS for an ephemeral port."""

    host: str | None = None
    """Bind address.  ``None`` falls back to ``server.host`` from config."""

    def __post_init__(self) -> None:
        if not 0 <= self.port <= MAX_PORT:
            raise UsageError(
                f"argument --port: must be between 0 and {MAX_PORT}, got {self.port}",
            )
        if self.host is not None and not self.host.strip():
            raise UsageError("argument --host: must not be empty")


@dataclass(frozen=True, slots=True)
class ConfigCommand:
    """``switchyard config {show [KEY],path}``."""

    op: ConfigOp
    key: str | None = None

    def __post_init__(self) -> None:
        if self.op is ConfigOp.PATH and self.key is not None:
            raise UsageError("argument KEY: not allowed with 'config path'")


@dataclass(frozen=True, slots=True)
class DoctorCommand:
    """``switchyard doctor`` takes no parameters."""


Invocation = Union[DatabaseCommand, ServerCommand, ConfigCommand, DoctorCommand]
"""Exactly one of the command variants."""

_VARIANT_NAMES: dict[type, str] = {
    DatabaseCommand: "db",
    ServerCommand: "server",
    ConfigCommand: "config",
    DoctorCommand: "doctor",
}


def variant_name(invocation: Invocation) -> str:
    """Return the subcommand token that produces *invocation*."""
    return _VARIANT_NAMES[type(invocation)]
