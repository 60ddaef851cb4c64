"""``switchyard server``: serve the status API until interrupted.

This is the one handler that genuinely suspends: it awaits uvicorn's
serve loop.  The listening socket is bound here, before uvicorn starts,
so bind failures surface as classified handler errors instead of
uvicorn's own ``sys.exit``.

While serving, ``SIGHUP`` reloads the configuration cell (POSIX only).
Requests already in flight keep the snapshot they started with.
``SIGINT`` and ``SIGTERM`` stop the server gracefully and the handler
still returns its :class:`ServerReport`.
"""

from __future__ import annotations

import asyncio
import errno
import logging
import signal
import socket
from collections.abc import Callable

from switchyard.core.context import ExecutionContext
from switchyard.core.invocation import ServerCommand
from switchyard.core.results import ServerReport
from switchyard.exceptions import ConfigError, PermissionDeniedError, TransientIOError

logger = logging.getLogger(__name__)


class ServerHandler:
    """Bind, serve, and report once the server stops."""

    async def execute(self, payload: ServerCommand, context: ExecutionContext) -> ServerReport:
        import uvicorn

        from switchyard.infra.http_app import StatusServer, create_app

        settings = context.settings()
        host = payload.host or settings.server_host

        reloads = 0

        def _reload() -> None:
            nonlocal reloads
            try:
                context.config.reload()
            except ConfigError as exc:
                logger.warning("configuration reload failed, keeping previous: %s", exc)
                return
            reloads += 1

        sock = bind_socket(host, payload.port)
        bound_port: int = sock.getsockname()[1]
        hup_installed = False
        try:
            server = StatusServer(
                uvicorn.Config(
                    create_app(context),
                    host=host,
                    port=bound_port,
                    log_config=None,
                    lifespan="off",
                ),
            )
            if context.config.can_reload:
                hup_installed = _install_sighup(_reload)
            logger.info("serving on http://%s:%d", host, bound_port)
            await server.serve(sockets=[sock])
        finally:
            if hup_installed:
                asyncio.get_running_loop().remove_signal_handler(signal.SIGHUP)
            sock.close()

        logger.info("server on port %d stopped", bound_port)
        return ServerReport(host=host, port=bound_port, reloads=reloads)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def bind_socket(host: str, port: int) -> socket.socket:
    """Create a TCP socket bound to *host*:*port*.

    Raises
    ------
    PermissionDeniedError
        When the OS refuses the port (e.g. privileged port as non-root).
    TransientIOError
        For any other bind failure, typically the port being in use.
    """
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
    except OSError as exc:
        sock.close()
        if exc.errno in (errno.EACCES, errno.EPERM):
            raise PermissionDeniedError(
                f"Not allowed to bind {host}:{port}",
                hint="Ports below 1024 usually need elevated privileges.",
            ) from exc
        raise TransientIOError(
            f"Could not bind {host}:{port}: {exc.strerror or exc}",
            hint="Is another process already listening on this port?",
        ) from exc
    return sock


def _install_sighup(callback: Callable[[], None]) -> bool:
    if not hasattr(signal, "SIGHUP"):
        return False
    try:
        asyncio.get_running_loop().add_signal_handler(signal.SIGHUP, callback)
    except (NotImplementedError, RuntimeError, ValueError):
        logger.debug("SIGHUP reload unavailable in this event loop")
        return False
    return True
