"""Dispatcher: routes one invocation value to its command handler.

The dispatcher is a pure pass-through.  It never catches, wraps, retries
or reinterprets what a handler returns or raises; exit-code mapping and
message rendering belong to the CLI boundary alone.

State machine
-------------
``PARSED`` → ``DISPATCHING`` → ``COMPLETED``

The selection is an explicit ``isinstance`` chain over the closed
:data:`~switchyard.core.invocation.Invocation` union.  Every variant has
exactly one branch; the trailing ``raise`` is unreachable for any value
the parser can build.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass

from switchyard.core.context import ExecutionContext
from switchyard.core.invocation import (
    ConfigCommand,
    DatabaseCommand,
    DoctorCommand,
    Invocation,
    ServerCommand,
)
from switchyard.core.protocols import CommandHandler
from switchyard.exceptions import DispatchInvariantError

logger = logging.getLogger(__name__)


class DispatchState(enum.Enum):
    PARSED = "parsed"
    DISPATCHING = "dispatching"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class HandlerSet:
    """One handler per command variant, fixed at construction time."""

    database: CommandHandler[DatabaseCommand]
    server: CommandHandler[ServerCommand]
    config: CommandHandler[ConfigCommand]
    doctor: CommandHandler[DoctorCommand]


class Dispatcher:
    """Route invocations to handlers while sharing one execution context.

    Parameters
    ----------
    context:
        The process-wide :class:`ExecutionContext`.  Every dispatch made
        through this instance receives this exact object.
    handlers:
        The handler for each variant.
    """

    def __init__(self, context: ExecutionContext, handlers: HandlerSet) -> None:
        self._context = context
        self._handlers = handlers
        self._state = DispatchState.PARSED
        self._last_outcome: object | BaseException | None = None

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def context(self) -> ExecutionContext:
        return self._context

    @property
    def state(self) -> DispatchState:
        return self._state

    @property
    def last_outcome(self) -> object | BaseException | None:
        """Result or exception of the most recent completed dispatch."""
        return self._last_outcome

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def dispatch(self, invocation: Invocation) -> object:
        """Run the handler selected by *invocation*'s variant.

        Returns the handler's success value unchanged.  Any exception the
        handler raises propagates unchanged.

        Raises
        ------
        DispatchInvariantError
            If *invocation* is not one of the known variants.
        """
        self._state = DispatchState.DISPATCHING
        try:
            result = await self._route(invocation)
        except BaseException as exc:
            self._last_outcome = exc
            raise
        finally:
            self._state = DispatchState.COMPLETED
        self._last_outcome = result
        return result

    def run(self, invocation: Invocation) -> object:
        """Synchronous entry point: drive :meth:`dispatch` to completion."""
        return asyncio.run(self.dispatch(invocation))

    async def _route(self, invocation: Invocation) -> object:
        handlers = self._handlers
        context = self._context

        if isinstance(invocation, DatabaseCommand):
            logger.debug("dispatching db %s", invocation.op.value)
            return await handlers.database.execute(invocation, context)
        if isinstance(invocation, ServerCommand):
            logger.debug("dispatching server")
            return await handlers.server.execute(invocation, context)
        if isinstance(invocation, ConfigCommand):
            logger.debug("dispatching config %s", invocation.op.value)
            return await handlers.config.execute(invocation, context)
        if isinstance(invocation, DoctorCommand):
            logger.debug("dispatching doctor")
            return await handlers.doctor.execute(invocation, context)

        raise DispatchInvariantError(
            f"no handler for invocation of type {type(invocation).__name__}",
        )
