"""Custom exception hierarchy for switchyard.

Every error condition a user can trigger must map to a subclass of
:class:`SwitchyardError`.  Driver and library exceptions (SQLAlchemy,
PyYAML, sockets) must NEVER escape the layer that calls them.  They are
caught there and re-raised as a typed subclass defined here.

Hierarchy
---------
SwitchyardError
├── UsageError                  (validation, never reaches a handler)
├── StartupError                (context assembly, aborts before dispatch)
│   ├── ConfigError
│   └── ResourceUnavailableError
├── HandlerError                (raised by a command handler)
│   ├── NotFoundError
│   ├── PermissionDeniedError
│   ├── TransientIOError
│   ├── ConflictError
│   └── AbortedError
└── EnvironmentError            (optional UI library missing)

DispatchInvariantError sits outside the hierarchy: it signals a
programming defect, and the CLI boundary renders it as one.
"""

from __future__ import annotations


class SwitchyardError(Exception):
    """Base exception for all switchyard errors.

    The CLI error boundary renders any subclass as a clean one-line
    message plus optional hint, without a stack trace.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Argument validation ---------------------------------------------------

class UsageError(SwitchyardError):
    """Raised when the command line is malformed or fails validation."""


# --- Startup ---------------------------------------------------------------

class StartupError(SwitchyardError):
    """Raised when the execution context cannot be assembled."""


class ConfigError(StartupError):
    """Raised when configuration is missing, unreadable or invalid."""


class ResourceUnavailableError(StartupError):
    """Raised when a shared resource (e.g. the database) cannot be acquired."""


# --- Handler outcomes ------------------------------------------------------

class HandlerError(SwitchyardError):
    """Base class for failures classified by a command handler."""


class NotFoundError(HandlerError):
    """Raised when the requested entity does not exist."""


class PermissionDeniedError(HandlerError):
    """Raised when the operating system refuses the requested operation."""


class TransientIOError(HandlerError):
    """Raised when an I/O operation failed and may succeed on retry."""


class ConflictError(HandlerError):
    """Raised when the request contradicts the current state."""


class AbortedError(HandlerError):
    """Raised when the user declined a confirmation prompt."""


# --- Environment / tooling -------------------------------------------------

class EnvironmentError(SwitchyardError):
    """Raised when a required runtime dependency is not available."""


# --- Framework defects -----------------------------------------------------

class DispatchInvariantError(RuntimeError):
    """Raised when the dispatcher meets a value outside the command union.

    The command set is closed, so this can only happen through a
    programming error.  It does not derive from :class:`SwitchyardError`.
    """
