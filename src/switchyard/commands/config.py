"""``switchyard config``: inspect the resolved configuration."""

from __future__ import annotations

from switchyard.core.context import ExecutionContext
from switchyard.core.invocation import ConfigCommand, ConfigOp
from switchyard.core.results import ConfigReport
from switchyard.exceptions import NotFoundError


class ConfigHandler:
    async def execute(self, payload: ConfigCommand, context: ExecutionContext) -> ConfigReport:
        settings = context.settings()

        if payload.op is ConfigOp.PATH:
            return ConfigReport(source=settings.source)

        values = settings.as_dict()
        if payload.key is None:
            return ConfigReport(source=settings.source, values=values)

        try:
            value = settings.lookup(payload.key)
        except KeyError:
            raise NotFoundError(
                f"Unknown configuration key {payload.key!r}",
                hint=f"Known keys: {', '.join(sorted(values))}",
            ) from None
        return ConfigReport(source=settings.source, values={payload.key: value})
