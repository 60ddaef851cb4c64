"""``switchyard doctor``: environment diagnostics.

Gathers system information into a :class:`DoctorReport`.  Rendering is
left to the CLI layer; nothing here prints.
"""

from __future__ import annotations

import platform
import sys
from importlib import metadata

from switchyard.core.context import ExecutionContext
from switchyard.core.invocation import DoctorCommand
from switchyard.core.results import (
    STATUS_FAIL,
    STATUS_OK,
    STATUS_WARN,
    CheckResult,
    DoctorReport,
)
from switchyard.exceptions import SwitchyardError
from switchyard.version import __version__

_REQUIRED_DISTRIBUTIONS: tuple[str, ...] = ("SQLAlchemy", "PyYAML", "fastapi", "uvicorn")
_OPTIONAL_DISTRIBUTIONS: tuple[str, ...] = ("rich", "questionary")


class DoctorHandler:
    async def execute(self, payload: DoctorCommand, context: ExecutionContext) -> DoctorReport:
        checks = [
            _switchyard_version_check(),
            _python_version_check(),
            _os_check(),
            _config_check(context),
            *_database_checks(context),
        ]
        checks.extend(_distribution_check(name, required=True) for name in _REQUIRED_DISTRIBUTIONS)
        checks.extend(_distribution_check(name, required=False) for name in _OPTIONAL_DISTRIBUTIONS)
        return DoctorReport(checks=tuple(checks))


# ---------------------------------------------------------------------------
# Diagnostic collectors
# ---------------------------------------------------------------------------

def _switchyard_version_check() -> CheckResult:
    return CheckResult("switchyard", __version__, STATUS_OK)


def _python_version_check() -> CheckResult:
    version = platform.python_version()
    ok = sys.version_info[:2] >= (3, 10)
    return CheckResult("Python", version, STATUS_OK if ok else STATUS_FAIL)


def _os_check() -> CheckResult:
    system_raw = platform.system()
    system_display = {
        "Windows": "Windows",
        "Linux": "Linux",
        "Darwin": "macOS",
    }.get(system_raw, system_raw)
    value = f"{system_display} {platform.release()} ({platform.machine()})"
    return CheckResult("OS", value, STATUS_OK)


def _config_check(context: ExecutionContext) -> CheckResult:
    source = context.settings().source
    if source is None:
        return CheckResult("Config", "built-in defaults", STATUS_WARN)
    return CheckResult("Config", str(source), STATUS_OK)


def _database_checks(context: ExecutionContext) -> list[CheckResult]:
    database = context.database
    url = database.describe()
    try:
        database.ping()
        current = database.current_version()
    except SwitchyardError as exc:
        return [CheckResult("Database", f"{url}: {exc}", STATUS_FAIL)]

    available = database.available()
    latest = available[-1] if available else 0
    schema_status = STATUS_OK if current >= latest else STATUS_WARN
    return [
        CheckResult("Database", url, STATUS_OK),
        CheckResult("Schema", f"version {current} of {latest}", schema_status),
    ]


def _distribution_check(name: str, *, required: bool) -> CheckResult:
    try:
        version = metadata.version(name)
    except metadata.PackageNotFoundError:
        return CheckResult(name, "NOT INSTALLED", STATUS_FAIL if required else STATUS_WARN)
    return CheckResult(name, version, STATUS_OK)
