"""CLI console helpers with optional Rich support.

This module avoids module-level imports of Rich so bootstrap paths
(``--help``, ``--version``, usage errors) keep working when Rich is not
installed.  Diagnostics go to stderr; command output goes to stdout.
"""

from __future__ import annotations

import sys
from typing import Any

from switchyard.exceptions import EnvironmentError


def _load_rich_console_class() -> type[Any]:
	"""Return ``rich.console.Console`` class or raise ``EnvironmentError``."""
	try:
		from rich.console import Console
	except ModuleNotFoundError as exc:
		raise EnvironmentError(
			"rich is not installed. Install with: pip install rich",
		) from exc
	return Console


def get_rich_console(*, stderr: bool = True) -> Any:
	"""Create a Rich console instance targeting stderr (default) or stdout."""
	console_class = _load_rich_console_class()
	return console_class(stderr=stderr)


def rich_available() -> bool:
	try:
		_load_rich_console_class()
	except EnvironmentError:
		return False
	return True


class _ConsoleProxy:
	"""Minimal ``print``-compatible proxy with plain-text fallback."""

	def __init__(self, *, stderr: bool) -> None:
		self._stderr = stderr

	def print(self, *objects: object, soft_wrap: bool = False) -> None:
		"""Render with Rich when available, else plain ``print``.

		``soft_wrap`` disables Rich line wrapping for values meant for scripts.
		"""
		try:
			rich_console = get_rich_console(stderr=self._stderr)
		except EnvironmentError:
			print(*objects, file=sys.stderr if self._stderr else sys.stdout)
			return
		rich_console.print(*objects, soft_wrap=soft_wrap)


console = _ConsoleProxy(stderr=True)
"""Diagnostics, errors and hints."""

output = _ConsoleProxy(stderr=False)
"""Command results."""


def escape(text: str) -> str:
	"""Escape Rich markup in *text*; identity when Rich is missing."""
	try:
		from rich.markup import escape as rich_escape
	except ModuleNotFoundError:
		return text
	return rich_escape(text)
