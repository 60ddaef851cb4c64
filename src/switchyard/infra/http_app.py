"""Infrastructure: FastAPI status application served by ``switchyard server``.

Each request reads one settings snapshot from the shared context, so a
reload that lands mid-request is only visible to later requests.

:class:`StatusServer` runs the app under uvicorn and turns SIGINT and
SIGTERM into a graceful shutdown that returns normally.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI, HTTPException

from switchyard.core.context import ExecutionContext
from switchyard.exceptions import SwitchyardError
from switchyard.version import __version__

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


def create_app(context: ExecutionContext) -> FastAPI:
    """Build the status app bound to *context*."""
    app = FastAPI(title="switchyard", version=__version__)

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/version")
    def version() -> dict[str, Any]:
        settings = context.settings()
        return {
            "version": __version__,
            "config_generation": context.config.generation,
            "config_source": str(settings.source) if settings.source else None,
        }

    @app.get("/migrations")
    def migrations() -> dict[str, Any]:
        database = context.database
        try:
            current = database.current_version()
        except SwitchyardError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        available = database.available()
        latest = available[-1] if available else 0
        return {
            "current": current,
            "latest": latest,
            "pending": [v for v in available if v > current],
        }

    return app


class StatusServer(uvicorn.Server):
    """uvicorn server whose shutdown signals end :meth:`serve` normally.

    SIGINT and SIGTERM are routed through the running loop and only
    request a graceful exit.  They are never re-raised after shutdown.
    """

    @contextmanager
    def capture_signals(self) -> Iterator[None]:
        loop = asyncio.get_running_loop()
        installed: list[signal.Signals] = []
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.handle_exit, sig, None)
            except (NotImplementedError, RuntimeError, ValueError):
                logger.debug("cannot install %s handler in this event loop", sig.name)
                continue
            installed.append(sig)
        try:
            yield
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)
