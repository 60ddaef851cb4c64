"""Shared pytest fixtures and configuration for the switchyard test suite.

Guidelines
----------
* No network access beyond loopback.
* Databases are SQLite files under ``tmp_path``.
* Config discovery is isolated from the real home and ``/etc`` lookups.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from switchyard.core.context import ConfigCell, ExecutionContext
from switchyard.core.models import Settings
from switchyard.exceptions import ResourceUnavailableError
from switchyard.infra.database import SqlDatabase


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------

class FakePrompter:
    """Prompter that records questions and returns a fixed answer."""

    def __init__(self, answer: bool = True) -> None:
        self.answer = answer
        self.questions: list[str] = []

    def confirm(self, message: str, *, default: bool = False) -> bool:
        self.questions.append(message)
        return self.answer


class FakeDatabase:
    """In-memory stand-in for :class:`SqlDatabase`."""

    def __init__(self, *, reachable: bool = True, versions: tuple[int, ...] = (1, 2)) -> None:
        self.reachable = reachable
        self.versions = versions
        self.current = 0
        self.closed = False

    def ping(self) -> None:
        if not self.reachable:
            raise ResourceUnavailableError("fake database is down")

    def describe(self) -> str:
        return "fake://"

    def current_version(self) -> int:
        self.ping()
        return self.current

    def available(self) -> tuple[int, ...]:
        return self.versions

    def migrate(self, target: int, *, dry_run: bool = False) -> tuple[int, ...]:
        pending = tuple(v for v in self.versions if self.current < v <= target)
        if not dry_run and pending:
            self.current = pending[-1]
        return pending

    def rollback(self, target: int, *, dry_run: bool = False) -> tuple[int, ...]:
        reverting = tuple(v for v in reversed(self.versions) if target < v <= self.current)
        if not dry_run:
            self.current = target
        return reverting

    def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("SWITCHYARD_CONFIG_FILE", raising=False)
    monkeypatch.delenv("SWITCHYARD_DATABASE_URL", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setattr(
        "switchyard.infra.config_loader.search_paths",
        lambda: [tmp_path / "xdg" / "switchyard" / "config.yml"],
    )
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def sqlite_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'test.db'}"


@pytest.fixture()
def settings(sqlite_url: str) -> Settings:
    return Settings(database_url=sqlite_url)


@pytest.fixture()
def database(sqlite_url: str) -> Iterator[SqlDatabase]:
    db = SqlDatabase.connect(sqlite_url)
    yield db
    db.close()


@pytest.fixture()
def prompter() -> FakePrompter:
    return FakePrompter()


@pytest.fixture()
def context(
    settings: Settings,
    database: SqlDatabase,
    prompter: FakePrompter,
) -> ExecutionContext:
    return ExecutionContext(
        config=ConfigCell(settings),
        database=database,
        prompter=prompter,
    )


@pytest.fixture()
def fake_context(settings: Settings) -> ExecutionContext:
    return ExecutionContext(config=ConfigCell(settings), database=FakeDatabase())


@pytest.fixture()
def config_file(tmp_path: Path, sqlite_url: str) -> Path:
    path = tmp_path / "switchyard.yml"
    path.write_text(
        "database:\n"
        f"  url: {sqlite_url}\n"
        "server:\n"
        "  host: 127.0.0.1\n"
        "logging:\n"
        "  level: warning\n",
        encoding="utf-8",
    )
    return path
