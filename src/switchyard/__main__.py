"""Allow ``python -m switchyard`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m switchyard`` behaves identically to the ``switchyard``
console script.
"""

from __future__ import annotations

from switchyard.cli.app import cli

if __name__ == "__main__":
    cli()
