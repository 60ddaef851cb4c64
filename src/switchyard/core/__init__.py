"""Core layer: invocation model, execution context, dispatcher.

Rules
-----
* No ``print()`` calls.
* No imports from ``cli``, ``commands`` or ``infra``.
* Third-party drivers are reached only through :mod:`.protocols`.
"""

from switchyard.core.context import ConfigCell, ExecutionContext, build_context
from switchyard.core.dispatcher import Dispatcher, DispatchState, HandlerSet
from switchyard.core.invocation import (
    ConfigCommand,
    ConfigOp,
    DatabaseCommand,
    DatabaseOp,
    DoctorCommand,
    Invocation,
    ServerCommand,
    variant_name,
)
from switchyard.core.models import Settings
from switchyard.core.protocols import CommandHandler, DatabaseClient, Prompter

__all__: list[str] = [
    "CommandHandler",
    "ConfigCell",
    "ConfigCommand",
    "ConfigOp",
    "DatabaseClient",
    "DatabaseCommand",
    "DatabaseOp",
    "DispatchState",
    "Dispatcher",
    "DoctorCommand",
    "ExecutionContext",
    "HandlerSet",
    "Invocation",
    "Prompter",
    "ServerCommand",
    "Settings",
    "build_context",
    "variant_name",
]
