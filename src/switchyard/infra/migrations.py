"""Built-in schema migrations, applied in ascending version order.

Version ``0`` is the empty schema.  Each migration must be reversible:
``down`` undoes exactly what ``up`` created.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Migration:
    version: int
    name: str
    up: tuple[str, ...]
    down: tuple[str, ...]


MIGRATIONS: tuple[Migration, ...] = (
    Migration(
        version=1,
        name="create_jobs",
        up=(
            """
            CREATE TABLE jobs (
                id INTEGER PRIMARY KEY,
                name TEXT NOT NULL UNIQUE,
                created_at TIMESTAMP NOT NULL
            )
            """,
        ),
        down=("DROP TABLE jobs",),
    ),
    Migration(
        version=2,
        name="create_job_runs",
        up=(
            """
            CREATE TABLE job_runs (
                id INTEGER PRIMARY KEY,
                job_id INTEGER NOT NULL REFERENCES jobs (id),
                status TEXT NOT NULL,
                started_at TIMESTAMP NOT NULL,
                finished_at TIMESTAMP NULL
            )
            """,
            "CREATE INDEX ix_job_runs_job_id ON job_runs (job_id)",
        ),
        down=(
            "DROP INDEX ix_job_runs_job_id",
            "DROP TABLE job_runs",
        ),
    ),
    Migration(
        version=3,
        name="add_job_owner",
        up=("ALTER TABLE jobs ADD COLUMN owner TEXT NULL",),
        # DROP COLUMN needs SQLite >= 3.35.
        down=("ALTER TABLE jobs DROP COLUMN owner",),
    ),
)
