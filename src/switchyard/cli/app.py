"""CLI application entry point and error boundary for switchyard.

This module is the **sole error boundary** for the entire application.
:func:`main` runs one invocation and lets typed errors propagate;
:func:`cli` catches them, renders user-friendly messages via Rich and
exits with a well-defined code.

Flow
----
raw argv → :func:`~switchyard.cli.parser.parse_invocation` → settings →
execution context (built once) → :class:`~switchyard.core.Dispatcher` →
handler → :func:`~switchyard.cli.render.render_result` → exit code.

Architecture notes
------------------
* No business logic lives here; handlers live in ``switchyard.commands``.
* A usage error stops the run before configuration is read or any
  resource is acquired.
* This module is the only place that translates between the domain
  world and the OS process exit code.
"""

from __future__ import annotations

import functools
import logging
import sys
from collections.abc import Callable, Sequence

from switchyard.cli import exit_codes
from switchyard.cli.console import console, escape
from switchyard.cli.logging_setup import configure_logging, effective_level
from switchyard.cli.parser import parse_invocation
from switchyard.core.context import ExecutionContext, SettingsLoader, build_context
from switchyard.core.dispatcher import Dispatcher, HandlerSet
from switchyard.core.models import Settings
from switchyard.exceptions import (
    DispatchInvariantError,
    StartupError,
    SwitchyardError,
    UsageError,
)

logger = logging.getLogger(__name__)

ContextFactory = Callable[[Settings, SettingsLoader], ExecutionContext]


# ---------------------------------------------------------------------------
# Context assembly
# ---------------------------------------------------------------------------

def default_context_factory(settings: Settings, loader: SettingsLoader) -> ExecutionContext:
    """Build the production context: SQL database and terminal prompter."""
    from switchyard.cli.prompt import QuestionaryPrompter
    from switchyard.infra.database import SqlDatabase

    return build_context(
        settings,
        database_factory=SqlDatabase.connect,
        loader=loader,
        prompter=QuestionaryPrompter(),
    )


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(
    argv: Sequence[str] | None = None,
    *,
    context_factory: ContextFactory | None = None,
    handlers: HandlerSet | None = None,
) -> int:
    """Run one switchyard invocation.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.
    context_factory:
        Builds the execution context.  Called at most once.
    handlers:
        Handler set for the dispatcher.  Defaults to the production set.

    Returns
    -------
    int
        OS process exit code.

    Raises
    ------
    UsageError
        The command line was rejected; nothing else ran.
    StartupError
        Configuration or a shared resource was unavailable; no handler ran.
    HandlerError
        Raised by the handler, unchanged.
    """
    from switchyard.infra.config_loader import load_settings

    parsed = parse_invocation(argv)
    verbosity = parsed.options.verbosity
    configure_logging(effective_level("INFO", verbosity))

    loader: SettingsLoader = functools.partial(load_settings, parsed.options.config_path)
    settings = loader()
    configure_logging(effective_level(settings.log_level, verbosity))

    if handlers is None:
        from switchyard.commands import default_handlers

        handlers = default_handlers()

    factory = context_factory or default_context_factory
    with factory(settings, loader) as context:
        dispatcher = Dispatcher(context, handlers)
        result = dispatcher.run(parsed.invocation)

    from switchyard.cli.render import render_result

    return render_result(result)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli(argv: Sequence[str] | None = None) -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.  Invariant
    violations are the exception: they are logged with their traceback.
    """
    try:
        code = main(argv)
    except UsageError as exc:
        console.print(f"[bold red]Usage error:[/bold red] {escape(str(exc))}")
        if exc.hint:
            console.print(escape(exc.hint))
        sys.exit(exit_codes.USAGE_ERROR)
    except StartupError as exc:
        console.print(f"[bold red]Startup failed:[/bold red] {escape(str(exc))}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {escape(exc.hint)}")
        sys.exit(exit_codes.STARTUP_ERROR)
    except SwitchyardError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {escape(exc.hint)}")
        sys.exit(exit_codes.exit_code_for(exc))
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except DispatchInvariantError as exc:
        logger.critical("dispatcher invariant violated", exc_info=exc)
        console.print(
            "[bold red]Internal error.[/bold red] "
            "Please report this issue.\n"
            f"  {escape(str(exc))}"
        )
        sys.exit(exit_codes.INTERNAL_ERROR)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {escape(str(exc))}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
    sys.exit(code)
