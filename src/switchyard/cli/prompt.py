"""Interactive confirmation for the CLI layer, backed by questionary.

:class:`QuestionaryPrompter` satisfies
:class:`~switchyard.core.protocols.Prompter` and is placed on the
execution context so handlers can ask before destructive work without
importing any UI library themselves.
"""

from __future__ import annotations

import sys
from typing import Any

from switchyard.exceptions import AbortedError, EnvironmentError


def _import_questionary() -> Any:
    """Import questionary lazily for interactive prompts."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "questionary is not installed. Install with: pip install questionary",
        ) from exc
    return questionary


class QuestionaryPrompter:
    """Ask yes/no questions on the terminal.

    When stdin is not a TTY (pipes, CI) no prompt is shown and *default*
    is returned, so scripted runs never block.
    """

    def confirm(self, message: str, *, default: bool = False) -> bool:
        if not sys.stdin.isatty():
            return default

        questionary = _import_questionary()
        answer = questionary.confirm(message, default=default).ask()
        if answer is None:
            # questionary returns None on Ctrl+C.
            raise AbortedError("Prompt interrupted.")
        return bool(answer)
