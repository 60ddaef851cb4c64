"""Protocols (interfaces) consumed by the core layer.

These define the contracts that command handlers and infrastructure
adapters must satisfy.  Core code depends ONLY on these protocols, never
on concrete implementations, so the core never imports SQLAlchemy,
questionary or uvicorn.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeVar

if TYPE_CHECKING:
    from switchyard.core.context import ExecutionContext

P_contra = TypeVar("P_contra", contravariant=True)


class CommandHandler(Protocol[P_contra]):
    """Contract implemented once per command variant.

    ``execute`` is always a coroutine function.  A handler that performs
    no asynchronous I/O simply never awaits, and so runs to completion in
    a single step; callers drive both kinds identically.

    Handlers must:

    * accept only their own variant's payload;
    * treat *context* as read-only, taking one settings snapshot up front;
    * report failure by raising a
      :class:`~switchyard.exceptions.HandlerError` subclass, never by
      exiting the process.
    """

    async def execute(self, payload: P_contra, context: ExecutionContext) -> object:
        """Carry out the command and return a success value."""
        ...  # pragma: no cover


class DatabaseClient(Protocol):
    """Contract for the shared database handle held by the context.

    Implementations must map all driver exceptions to
    :class:`~switchyard.exceptions.SwitchyardError` subclasses.
    """

    def ping(self) -> None:
        """Round-trip a trivial query.

        Raises
        ------
        ResourceUnavailableError
            When the database cannot be reached.
        """
        ...  # pragma: no cover

    def describe(self) -> str:
        """Return the connection URL with any password masked."""
        ...  # pragma: no cover

    def current_version(self) -> int:
        """Return the highest applied schema version (``0`` when empty)."""
        ...  # pragma: no cover

    def available(self) -> tuple[int, ...]:
        """Return every known schema version in ascending order."""
        ...  # pragma: no cover

    def migrate(self, target: int, *, dry_run: bool = False) -> tuple[int, ...]:
        """Apply pending versions up to *target*; return those applied."""
        ...  # pragma: no cover

    def rollback(self, target: int, *, dry_run: bool = False) -> tuple[int, ...]:
        """Revert applied versions above *target*; return those reverted."""
        ...  # pragma: no cover

    def close(self) -> None:
        """Release pooled connections."""
        ...  # pragma: no cover


class Prompter(Protocol):
    """Contract for interactive yes/no confirmation."""

    def confirm(self, message: str, *, default: bool = False) -> bool:
        """Ask *message* and return the user's answer."""
        ...  # pragma: no cover
