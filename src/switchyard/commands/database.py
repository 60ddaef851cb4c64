"""``switchyard db``: schema migration handler.

Effects are idempotent under retry: ``migrate`` only applies versions
above the recorded one and ``rollback`` only reverts versions that are
recorded, so re-running after an interruption resumes where the last
committed step left off.
"""

from __future__ import annotations

import logging

from switchyard.core.context import ExecutionContext
from switchyard.core.invocation import DatabaseCommand, DatabaseOp
from switchyard.core.protocols import DatabaseClient
from switchyard.core.results import DatabaseStatus, MigrationReport
from switchyard.exceptions import AbortedError, ConflictError, NotFoundError

logger = logging.getLogger(__name__)


class DatabaseHandler:
    """Carry out ``db migrate``, ``db status`` and ``db rollback``."""

    async def execute(
        self,
        payload: DatabaseCommand,
        context: ExecutionContext,
    ) -> MigrationReport | DatabaseStatus:
        database = context.database
        if payload.op is DatabaseOp.STATUS:
            return self._status(database)
        if payload.op is DatabaseOp.MIGRATE:
            return self._migrate(payload, database)
        return self._rollback(payload, context)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    @staticmethod
    def _status(database: DatabaseClient) -> DatabaseStatus:
        current = database.current_version()
        available = database.available()
        return DatabaseStatus(
            current=current,
            latest=_latest(available),
            pending=tuple(v for v in available if v > current),
            url=database.describe(),
        )

    @staticmethod
    def _migrate(payload: DatabaseCommand, database: DatabaseClient) -> MigrationReport:
        available = database.available()
        latest = _latest(available)
        target = latest if payload.target is None else payload.target
        _require_known(target, available)

        current = database.current_version()
        if target < current:
            raise ConflictError(
                f"Schema is at version {current}, above target {target}",
                hint=f"Use 'switchyard db rollback --target {target}' to go back.",
            )

        applied = database.migrate(target, dry_run=payload.dry_run)
        if not applied:
            logger.info("schema already at version %d", current)
        return MigrationReport(
            op=DatabaseOp.MIGRATE,
            applied=applied,
            reverted=(),
            current=current if payload.dry_run else database.current_version(),
            latest=latest,
            dry_run=payload.dry_run,
        )

    @staticmethod
    def _rollback(payload: DatabaseCommand, context: ExecutionContext) -> MigrationReport:
        database = context.database
        available = database.available()
        # Parser guarantees a target for rollback.
        target = payload.target if payload.target is not None else 0
        _require_known(target, available)

        current = database.current_version()
        if target > current:
            raise ConflictError(
                f"Schema is at version {current}, below rollback target {target}",
                hint=f"Use 'switchyard db migrate --target {target}' to go forward.",
            )

        plan = database.rollback(target, dry_run=True)
        if plan and not payload.dry_run and not payload.assume_yes:
            question = (
                f"Revert {len(plan)} migration(s) on {database.describe()} "
                f"(version {current} -> {target})?"
            )
            if not context.prompter.confirm(question, default=False):
                raise AbortedError(
                    "Rollback cancelled.",
                    hint="Pass --yes to skip the confirmation prompt.",
                )

        reverted = plan if payload.dry_run else database.rollback(target)
        return MigrationReport(
            op=DatabaseOp.ROLLBACK,
            applied=(),
            reverted=reverted,
            current=current if payload.dry_run else database.current_version(),
            latest=_latest(available),
            dry_run=payload.dry_run,
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _latest(available: tuple[int, ...]) -> int:
    return available[-1] if available else 0


def _require_known(target: int, available: tuple[int, ...]) -> None:
    if target != 0 and target not in available:
        raise NotFoundError(
            f"Unknown schema version {target}",
            hint=f"Known versions: 0 (empty) to {_latest(available)}.",
        )
