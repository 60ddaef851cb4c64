"""Infrastructure: SQLAlchemy-backed database client.

Satisfies :class:`~switchyard.core.protocols.DatabaseClient`.  All
statements are plain SQL run through SQLAlchemy Core; every migration
step commits in its own transaction together with its bookkeeping row,
so an interrupted run leaves the schema at a well-defined version.

Rules
-----
* Every ``SQLAlchemyError`` is re-raised as a switchyard error.
* No user-facing output.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import URL, Engine
from sqlalchemy.exc import SQLAlchemyError

from switchyard.exceptions import ResourceUnavailableError, TransientIOError
from switchyard.infra.migrations import MIGRATIONS, Migration

logger = logging.getLogger(__name__)

BOOKKEEPING_TABLE: str = "schema_migrations"


class SqlDatabase:
    """Shared database handle with a versioned migration ledger.

    Parameters
    ----------
    engine:
        A SQLAlchemy engine.  Ownership passes to this object;
        :meth:`close` disposes of it.
    migrations:
        Ordered migration list.  Defaults to the built-in set.
    """

    def __init__(
        self,
        engine: Engine,
        migrations: tuple[Migration, ...] = MIGRATIONS,
    ) -> None:
        self._engine = engine
        self._migrations = {m.version: m for m in migrations}

    @classmethod
    def connect(cls, url: str) -> SqlDatabase:
        """Create an engine for *url* and verify it answers.

        A SQLite file that does not exist yet is not opened: only its
        directory is checked, and the file is created on first use.

        Raises
        ------
        ResourceUnavailableError
            If the URL is invalid or the database cannot be reached.
        """
        try:
            engine = create_engine(url, future=True)
        except SQLAlchemyError as exc:
            raise ResourceUnavailableError(
                f"Invalid database URL {url!r}: {exc}",
                hint="Check database.url in your configuration.",
            ) from exc
        database = cls(engine)
        try:
            if _is_pending_sqlite_file(engine.url):
                database._check_sqlite_directory()
            else:
                database.ping()
        except BaseException:
            database.close()
            raise
        return database

    # ------------------------------------------------------------------
    # Connection
    # ------------------------------------------------------------------

    def ping(self) -> None:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise ResourceUnavailableError(
                f"Database {self.describe()} is unreachable",
                hint=str(exc.orig) if getattr(exc, "orig", None) else str(exc),
            ) from exc

    def _check_sqlite_directory(self) -> None:
        directory = Path(self._engine.url.database or "").parent
        if not directory.is_dir():
            raise ResourceUnavailableError(
                f"Database {self.describe()} is unreachable",
                hint=f"Directory {directory} does not exist.",
            )

    def describe(self) -> str:
        return self._engine.url.render_as_string(hide_password=True)

    def close(self) -> None:
        self._engine.dispose()

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    def available(self) -> tuple[int, ...]:
        return tuple(sorted(self._migrations))

    def current_version(self) -> int:
        with self._guard("read schema version"):
            if not inspect(self._engine).has_table(BOOKKEEPING_TABLE):
                return 0
            with self._engine.connect() as conn:
                value = conn.execute(
                    text(f"SELECT MAX(version) FROM {BOOKKEEPING_TABLE}"),
                ).scalar()
        return int(value) if value is not None else 0

    # ------------------------------------------------------------------
    # Migrate / rollback
    # ------------------------------------------------------------------

    def migrate(self, target: int, *, dry_run: bool = False) -> tuple[int, ...]:
        current = self.current_version()
        pending = tuple(v for v in self.available() if current < v <= target)
        if dry_run or not pending:
            return pending

        self._ensure_bookkeeping()
        for version in pending:
            migration = self._migrations[version]
            with self._guard(f"apply migration {version}"):
                with self._engine.begin() as conn:
                    for statement in migration.up:
                        conn.execute(text(statement))
                    conn.execute(
                        text(
                            f"INSERT INTO {BOOKKEEPING_TABLE} (version, name, applied_at) "
                            "VALUES (:version, :name, :applied_at)"
                        ),
                        {
                            "version": version,
                            "name": migration.name,
                            "applied_at": datetime.now(timezone.utc),
                        },
                    )
            logger.info("applied migration %d (%s)", version, migration.name)
        return pending

    def rollback(self, target: int, *, dry_run: bool = False) -> tuple[int, ...]:
        current = self.current_version()
        reverting = tuple(
            v for v in sorted(self._migrations, reverse=True) if target < v <= current
        )
        if dry_run:
            return reverting

        for version in reverting:
            migration = self._migrations[version]
            with self._guard(f"revert migration {version}"):
                with self._engine.begin() as conn:
                    for statement in migration.down:
                        conn.execute(text(statement))
                    conn.execute(
                        text(f"DELETE FROM {BOOKKEEPING_TABLE} WHERE version = :version"),
                        {"version": version},
                    )
            logger.info("reverted migration %d (%s)", version, migration.name)
        return reverting

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_bookkeeping(self) -> None:
        with self._guard("create migration ledger"):
            with self._engine.begin() as conn:
                conn.execute(
                    text(
                        f"""
                        CREATE TABLE IF NOT EXISTS {BOOKKEEPING_TABLE} (
                            version INTEGER PRIMARY KEY,
                            name TEXT NOT NULL,
                            applied_at TIMESTAMP NOT NULL
                        )
                        """
                    )
                )

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        """Translate driver errors raised inside the block."""
        try:
            yield
        except SQLAlchemyError as exc:
            raise TransientIOError(
                f"Failed to {action} on {self.describe()}",
                hint=str(exc.orig) if getattr(exc, "orig", None) else str(exc),
            ) from exc


def _is_pending_sqlite_file(url: URL) -> bool:
    """True for a file-backed SQLite URL whose file does not exist yet."""
    if url.get_backend_name() != "sqlite":
        return False
    path = url.database
    if not path or path == ":memory:" or path.startswith("file:"):
        return False
    return not Path(path).exists()
