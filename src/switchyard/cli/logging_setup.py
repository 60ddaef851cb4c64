"""Root logger configuration for the CLI process.

Library modules only ever call ``logging.getLogger(__name__)``; this is
the single place that attaches a handler.  Records are rendered by
:class:`rich.logging.RichHandler` on stderr, or by a plain
:class:`logging.StreamHandler` when Rich is unavailable.
"""

from __future__ import annotations

import logging

_HANDLER_NAME: str = "switchyard"


def effective_level(configured: str, verbosity: int) -> int:
    """Combine the configured level name with ``-v`` / ``-q`` flags.

    ``verbosity`` > 0 forces DEBUG; < 0 raises the floor to WARNING.
    """
    if verbosity > 0:
        return logging.DEBUG
    level = logging.getLevelName(configured.upper())
    if not isinstance(level, int):
        level = logging.INFO
    if verbosity < 0:
        return max(level, logging.WARNING)
    return level


def configure_logging(level: int) -> None:
    """Install (or re-level) the switchyard handler on the root logger."""
    root = logging.getLogger()
    root.setLevel(level)

    for existing in root.handlers:
        if existing.get_name() == _HANDLER_NAME:
            existing.setLevel(level)
            return

    handler = _build_handler()
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(level)
    root.addHandler(handler)


def _build_handler() -> logging.Handler:
    try:
        from rich.logging import RichHandler

        from switchyard.cli.console import get_rich_console
    except ModuleNotFoundError:
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)-8s %(name)s: %(message)s"))
        return handler

    return RichHandler(
        console=get_rich_console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
