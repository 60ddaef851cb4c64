"""Argument parsing: raw tokens in, one validated invocation value out.

The parser never exits the process on bad input.  Unknown subcommands,
missing required options, wrong-typed values and payload invariant
violations all surface as :class:`~switchyard.exceptions.UsageError`,
raised before any configuration is read or any handler is chosen.
Only ``--help`` and ``--version`` exit (with status 0) through argparse
itself.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

from switchyard.core.invocation import (
    ConfigCommand,
    ConfigOp,
    DatabaseCommand,
    DatabaseOp,
    DoctorCommand,
    Invocation,
    ServerCommand,
)
from switchyard.exceptions import UsageError
from switchyard.version import __version__

PROG: str = "switchyard"


@dataclass(frozen=True, slots=True)
class GlobalOptions:
    """Options that apply to every subcommand."""

    config_path: Path | None = None
    verbosity: int = 0
    """Count of ``-v`` minus count of ``-q``."""


@dataclass(frozen=True, slots=True)
class ParsedArgs:
    options: GlobalOptions
    invocation: Invocation


class _RaisingArgumentParser(argparse.ArgumentParser):
    """``ArgumentParser`` that raises :class:`UsageError` instead of exiting."""

    def error(self, message: str) -> NoReturn:
        raise UsageError(message, hint=self.format_usage().strip())


# ---------------------------------------------------------------------------
# Parser construction
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level parser with one subparser per command."""
    parser = _RaisingArgumentParser(
        prog=PROG,
        description="Run database, server and maintenance commands.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        metavar="PATH",
        default=None,
        help="Configuration file (default: search standard locations).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Enable debug logging.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="count",
        default=0,
        help="Only log warnings and errors.",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        metavar="COMMAND",
        required=True,
        parser_class=_RaisingArgumentParser,
    )
    _add_db_parser(subparsers)
    _add_server_parser(subparsers)
    _add_config_parser(subparsers)
    subparsers.add_parser("doctor", help="Check the runtime environment.")
    return parser


def _add_db_parser(subparsers: argparse._SubParsersAction) -> None:
    db = subparsers.add_parser("db", help="Manage the database schema.")
    ops = db.add_subparsers(
        dest="db_op",
        metavar="OPERATION",
        required=True,
        parser_class=_RaisingArgumentParser,
    )

    migrate = ops.add_parser("migrate", help="Apply pending migrations.")
    migrate.add_argument(
        "--target",
        type=int,
        metavar="VERSION",
        default=None,
        help="Stop at this version (default: latest).",
    )
    migrate.add_argument("--dry-run", action="store_true", help="Only list what would run.")

    ops.add_parser("status", help="Show applied and pending migrations.")

    rollback = ops.add_parser("rollback", help="Revert migrations down to a version.")
    rollback.add_argument(
        "--target",
        type=int,
        metavar="VERSION",
        required=True,
        help="Version to roll back to (0 empties the schema).",
    )
    rollback.add_argument("--dry-run", action="store_true", help="Only list what would run.")
    rollback.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation.")


def _add_server_parser(subparsers: argparse._SubParsersAction) -> None:
    server = subparsers.add_parser("server", help="Serve the status API.")
    server.add_argument(
        "--port",
        type=int,
        required=True,
        help="TCP port to listen on (0 picks a free port).",
    )
    server.add_argument(
        "--host",
        default=None,
        help="Interface to bind (default: server.host from config).",
    )


def _add_config_parser(subparsers: argparse._SubParsersAction) -> None:
    config = subparsers.add_parser("config", help="Inspect the resolved configuration.")
    ops = config.add_subparsers(
        dest="config_op",
        metavar="OPERATION",
        required=True,
        parser_class=_RaisingArgumentParser,
    )
    show = ops.add_parser("show", help="Print all settings or a single key.")
    show.add_argument("key", nargs="?", default=None, metavar="KEY")
    ops.add_parser("path", help="Print the configuration file in use.")


# ---------------------------------------------------------------------------
# Namespace -> invocation value
# ---------------------------------------------------------------------------

def parse_invocation(argv: Sequence[str] | None = None) -> ParsedArgs:
    """Parse *argv* into global options and exactly one invocation value.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None``, ``sys.argv[1:]`` is used.

    Raises
    ------
    UsageError
        For any malformed or invalid command line.
    SystemExit
        Only for ``--help`` and ``--version`` (status 0).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    options = GlobalOptions(
        config_path=args.config,
        verbosity=args.verbose - args.quiet,
    )
    return ParsedArgs(options=options, invocation=_to_invocation(args))


def _to_invocation(args: argparse.Namespace) -> Invocation:
    command: str = args.command

    if command == "db":
        op = DatabaseOp(args.db_op)
        return DatabaseCommand(
            op=op,
            target=getattr(args, "target", None),
            dry_run=getattr(args, "dry_run", False),
            assume_yes=getattr(args, "yes", False),
        )
    if command == "server":
        return ServerCommand(port=args.port, host=args.host)
    if command == "config":
        return ConfigCommand(op=ConfigOp(args.config_op), key=getattr(args, "key", None))
    if command == "doctor":
        return DoctorCommand()

    # argparse already rejects unknown choices.
    raise UsageError(f"invalid choice: {command!r}")
