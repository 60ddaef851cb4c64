"""Exit-code constants used by the CLI layer.

Every exit path of the CLI uses one of these values.
"""

from __future__ import annotations

from switchyard.exceptions import (
    DispatchInvariantError,
    HandlerError,
    StartupError,
    SwitchyardError,
    UsageError,
)

SUCCESS: int = 0
"""Clean exit: command completed without error."""

GENERAL_ERROR: int = 1
"""A handler reported a classified error.  User-facing message was displayed."""

UNEXPECTED_ERROR: int = 2
"""An unhandled exception escaped all known error boundaries."""

USAGE_ERROR: int = 64
"""The command line was rejected before dispatch (BSD ``EX_USAGE``)."""

INTERNAL_ERROR: int = 70
"""A dispatcher invariant was violated (BSD ``EX_SOFTWARE``)."""

STARTUP_ERROR: int = 78
"""The execution context could not be assembled (BSD ``EX_CONFIG``)."""

KEYBOARD_INTERRUPT: int = 130
"""User pressed Ctrl+C.  Follows POSIX convention (128 + SIGINT=2)."""


def exit_code_for(exc: BaseException) -> int:
    """Map an exception escaping :func:`switchyard.cli.app.main` to an exit code."""
    if isinstance(exc, KeyboardInterrupt):
        return KEYBOARD_INTERRUPT
    if isinstance(exc, DispatchInvariantError):
        return INTERNAL_ERROR
    if isinstance(exc, UsageError):
        return USAGE_ERROR
    if isinstance(exc, StartupError):
        return STARTUP_ERROR
    if isinstance(exc, (HandlerError, SwitchyardError)):
        return GENERAL_ERROR
    return UNEXPECTED_ERROR
