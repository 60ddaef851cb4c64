"""Presentation of handler results.

:func:`render_result` is the only consumer that looks inside a success
value.  It prints the value (Rich table when Rich is importable, plain
text otherwise) and returns the process exit code for it.
"""

from __future__ import annotations

import json
import sys
from typing import Any

from switchyard.cli import exit_codes
from switchyard.cli.console import console, escape, output
from switchyard.core.invocation import DatabaseOp
from switchyard.core.results import (
    STATUS_FAIL,
    STATUS_OK,
    STATUS_WARN,
    ConfigReport,
    DatabaseStatus,
    DoctorReport,
    MigrationReport,
    ServerReport,
)

_STATUS_MARKUP: dict[str, str] = {
    STATUS_OK: "[green]OK[/green]",
    STATUS_WARN: "[yellow]WARN[/yellow]",
    STATUS_FAIL: "[red]FAIL[/red]",
}


def render_result(result: object) -> int:
    """Print *result* and return the exit code it maps to."""
    if isinstance(result, MigrationReport):
        _render_migration(result)
    elif isinstance(result, DatabaseStatus):
        _render_status(result)
    elif isinstance(result, ServerReport):
        console.print(
            f"Server on {result.host}:{result.port} stopped "
            f"({result.reloads} config reload(s))."
        )
    elif isinstance(result, ConfigReport):
        _render_config(result)
    elif isinstance(result, DoctorReport):
        _render_doctor(result)
        return exit_codes.SUCCESS if result.ok else exit_codes.GENERAL_ERROR
    elif result is not None:
        output.print(str(result))
    return exit_codes.SUCCESS


# ---------------------------------------------------------------------------
# db
# ---------------------------------------------------------------------------

def _render_migration(report: MigrationReport) -> None:
    versions = report.applied if report.op is DatabaseOp.MIGRATE else report.reverted
    if report.op is DatabaseOp.MIGRATE:
        verb, past = "apply", "Applied"
    else:
        verb, past = "revert", "Reverted"

    if not versions:
        output.print(f"Nothing to {verb}; schema is at version {report.current}.")
        return

    listed = ", ".join(str(v) for v in versions)
    if report.dry_run:
        output.print(f"Would {verb} version(s) {listed}.")
        return
    output.print(
        f"{past} version(s) {listed}; "
        f"schema is now at version {report.current} of {report.latest}."
    )


def _render_status(status: DatabaseStatus) -> None:
    pending = ", ".join(str(v) for v in status.pending) or "none"
    _render_table(
        "switchyard db status",
        ("Key", "Value"),
        [
            ("Database", status.url),
            ("Current", str(status.current)),
            ("Latest", str(status.latest)),
            ("Pending", pending),
        ],
    )


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------

def _render_config(report: ConfigReport) -> None:
    if not report.values:
        text = str(report.source) if report.source else "(built-in defaults)"
        output.print(escape(text), soft_wrap=True)
        return
    if len(report.values) == 1:
        (value,) = report.values.values()
        text = value if isinstance(value, str) else json.dumps(value)
        output.print(escape(text), soft_wrap=True)
        return
    source = str(report.source) if report.source else "built-in defaults"
    _render_table(
        f"switchyard config ({source})",
        ("Key", "Value"),
        [(key, str(value)) for key, value in sorted(report.values.items())],
    )


# ---------------------------------------------------------------------------
# doctor
# ---------------------------------------------------------------------------

def _render_doctor(report: DoctorReport) -> None:
    rows = [(c.label, c.value, c.status) for c in report.checks]
    _render_table("switchyard doctor", ("Component", "Value", "Status"), rows, status_column=2)
    if report.ok:
        console.print("[bold green]All checks passed.[/bold green]")
    else:
        console.print("[bold red]Some checks failed.[/bold red]")


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

def _render_table(
    title: str,
    headers: tuple[str, ...],
    rows: list[tuple[str, ...]],
    *,
    status_column: int | None = None,
) -> None:
    try:
        from rich.table import Table
    except ModuleNotFoundError:
        _print_plain_table(title, headers, rows)
        return

    table: Any = Table(
        title=title,
        show_header=True,
        header_style="bold cyan",
        border_style="dim",
    )
    for index, header in enumerate(headers):
        justify = "center" if index == status_column else "left"
        table.add_column(header, justify=justify, style="bold" if index == 0 else None)
    for row in rows:
        cells = list(row)
        if status_column is not None:
            cells[status_column] = _STATUS_MARKUP.get(cells[status_column], cells[status_column])
        table.add_row(*cells)
    output.print(table)


def _print_plain_table(
    title: str,
    headers: tuple[str, ...],
    rows: list[tuple[str, ...]],
) -> None:
    """Render a table without Rich."""
    widths = [
        max(len(headers[i]), *(len(row[i]) for row in rows)) if rows else len(headers[i])
        for i in range(len(headers))
    ]
    line = "  ".join("-" * w for w in widths)
    print(title)
    print("  ".join(h.ljust(w) for h, w in zip(headers, widths)))
    print(line)
    for row in rows:
        print("  ".join(cell.ljust(w) for cell, w in zip(row, widths)))
    sys.stdout.flush()
