"""Tests for ``switchyard server`` and its status app.

Most handler tests replace the serve loop with a coroutine that returns
at once.  The serve-loop tests run real uvicorn on a loopback port and
drive it with signals.  HTTP routes are exercised through FastAPI's
``TestClient``.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import os
import signal
import socket
import subprocess
import sys
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest
import uvicorn
from conftest import FakeDatabase
from fastapi.testclient import TestClient

import switchyard
from switchyard.commands.server import ServerHandler, bind_socket
from switchyard.core.context import ConfigCell, ExecutionContext
from switchyard.core.invocation import ServerCommand
from switchyard.core.models import Settings
from switchyard.core.results import ServerReport
from switchyard.exceptions import TransientIOError
from switchyard.infra.config_loader import load_settings
from switchyard.infra.http_app import StatusServer, create_app
from switchyard.version import __version__


@pytest.fixture()
def served(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    async def _serve(self: uvicorn.Server, sockets: Any = None) -> None:
        calls.append({"config": self.config, "sockets": sockets})

    monkeypatch.setattr(uvicorn.Server, "serve", _serve)
    return calls


# ---------------------------------------------------------------------------
# bind_socket
# ---------------------------------------------------------------------------

class TestBindSocket:
    def test_ephemeral_port(self) -> None:
        sock = bind_socket("127.0.0.1", 0)
        try:
            assert sock.getsockname()[1] > 0
        finally:
            sock.close()

    def test_port_in_use(self) -> None:
        holder = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        holder.bind(("127.0.0.1", 0))
        holder.listen(1)
        port = holder.getsockname()[1]
        try:
            with pytest.raises(TransientIOError, match=str(port)):
                bind_socket("127.0.0.1", port)
        finally:
            holder.close()


# ---------------------------------------------------------------------------
# ServerHandler
# ---------------------------------------------------------------------------

class TestServerHandler:
    def test_serves_on_bound_port(
        self, fake_context: ExecutionContext, served: list[dict[str, Any]],
    ) -> None:
        report = asyncio.run(ServerHandler().execute(ServerCommand(port=0), fake_context))

        assert isinstance(report, ServerReport)
        assert report.host == "127.0.0.1"
        assert report.port > 0
        assert report.reloads == 0
        assert len(served) == 1
        assert served[0]["config"].port == report.port

    def test_socket_closed_after_serving(
        self, fake_context: ExecutionContext, served: list[dict[str, Any]],
    ) -> None:
        asyncio.run(ServerHandler().execute(ServerCommand(port=0), fake_context))

        (sock,) = served[0]["sockets"]
        assert sock.fileno() == -1

    def test_host_flag_overrides_settings(
        self, fake_context: ExecutionContext, served: list[dict[str, Any]],
    ) -> None:
        fake_context.config.replace(Settings(server_host="0.0.0.0"))

        report = asyncio.run(
            ServerHandler().execute(ServerCommand(port=0, host="127.0.0.1"), fake_context),
        )

        assert report.host == "127.0.0.1"

    def test_bind_failure_is_classified(
        self, fake_context: ExecutionContext, served: list[dict[str, Any]],
    ) -> None:
        holder = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        holder.bind(("127.0.0.1", 0))
        holder.listen(1)
        try:
            with pytest.raises(TransientIOError):
                asyncio.run(
                    ServerHandler().execute(
                        ServerCommand(port=holder.getsockname()[1]), fake_context,
                    ),
                )
        finally:
            holder.close()
        assert served == []

    def test_serve_error_still_closes_socket(
        self, fake_context: ExecutionContext, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        captured: list[socket.socket] = []

        async def _serve(self: uvicorn.Server, sockets: Any = None) -> None:
            captured.extend(sockets or [])
            raise RuntimeError("boom")

        monkeypatch.setattr(uvicorn.Server, "serve", _serve)

        with pytest.raises(RuntimeError, match="boom"):
            asyncio.run(ServerHandler().execute(ServerCommand(port=0), fake_context))

        assert captured[0].fileno() == -1


# ---------------------------------------------------------------------------
# HTTP app
# ---------------------------------------------------------------------------

class TestHttpApp:
    def test_healthz(self, fake_context: ExecutionContext) -> None:
        client = TestClient(create_app(fake_context))
        response = client.get("/healthz")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_version_tracks_config_generation(self, fake_context: ExecutionContext) -> None:
        client = TestClient(create_app(fake_context))
        assert client.get("/version").json()["config_generation"] == 0

        fake_context.config.replace(Settings(server_host="10.0.0.2"))

        body = client.get("/version").json()
        assert body["version"] == __version__
        assert body["config_generation"] == 1
        assert body["config_source"] is None

    def test_migrations(self, fake_context: ExecutionContext) -> None:
        client = TestClient(create_app(fake_context))
        body = client.get("/migrations").json()
        assert body == {"current": 0, "latest": 2, "pending": [1, 2]}

    def test_migrations_unavailable(self, settings: Settings) -> None:
        context = ExecutionContext(
            config=ConfigCell(settings), database=FakeDatabase(reachable=False),
        )
        client = TestClient(create_app(context))
        response = client.get("/migrations")
        assert response.status_code == 503
        assert "down" in response.json()["detail"]


# ---------------------------------------------------------------------------
# Real serve loop
# ---------------------------------------------------------------------------

posix_signals = pytest.mark.skipif(
    not hasattr(signal, "SIGHUP"), reason="needs POSIX signals",
)


async def _wait_for(condition: Callable[[], bool], timeout: float = 10.0) -> None:
    deadline = time.monotonic() + timeout
    while not condition():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.02)


async def _wait_until_serving(bound: list[socket.socket]) -> None:
    await _wait_for(lambda: bool(bound))
    url = f"http://127.0.0.1:{bound[0].getsockname()[1]}/healthz"
    deadline = time.monotonic() + 10.0
    async with httpx.AsyncClient() as client:
        while True:
            try:
                if (await client.get(url, timeout=0.5)).status_code == 200:
                    return
            except httpx.TransportError:
                pass
            if time.monotonic() > deadline:
                raise AssertionError(f"{url} never answered")
            await asyncio.sleep(0.05)


@posix_signals
class TestStatusServer:
    def test_shutdown_signal_requests_exit_without_reraising(self) -> None:
        server = StatusServer(uvicorn.Config(create_app, factory=True))

        async def _scenario() -> None:
            with server.capture_signals():
                assert signal.getsignal(signal.SIGTERM) is not signal.SIG_DFL
                signal.raise_signal(signal.SIGTERM)
                await _wait_for(lambda: server.should_exit)

        asyncio.run(_scenario())

        assert server.should_exit
        assert signal.getsignal(signal.SIGTERM) is signal.SIG_DFL


@posix_signals
class TestServeLoop:
    def test_sighup_reloads_and_sigint_returns_report(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        caplog.set_level(logging.INFO)
        config = tmp_path / "server.yml"
        config.write_text("server:\n  host: 127.0.0.1\n", encoding="utf-8")
        loader = functools.partial(load_settings, config)
        context = ExecutionContext(
            config=ConfigCell(loader(), loader=loader),
            database=FakeDatabase(),
        )

        bound: list[socket.socket] = []

        def _recording_bind(host: str, port: int) -> socket.socket:
            sock = bind_socket(host, port)
            bound.append(sock)
            return sock

        monkeypatch.setattr("switchyard.commands.server.bind_socket", _recording_bind)

        ports: list[int] = []

        def _reload_failed() -> bool:
            return any("reload failed" in r.getMessage() for r in caplog.records)

        async def _scenario() -> ServerReport:
            task = asyncio.create_task(
                ServerHandler().execute(ServerCommand(port=0), context),
            )
            await _wait_until_serving(bound)
            ports.append(bound[0].getsockname()[1])

            config.write_text("server:\n  host: 10.0.0.9\n", encoding="utf-8")
            os.kill(os.getpid(), signal.SIGHUP)
            await _wait_for(lambda: context.config.generation == 1)

            config.write_text("server: [unclosed\n", encoding="utf-8")
            os.kill(os.getpid(), signal.SIGHUP)
            await _wait_for(_reload_failed)

            os.kill(os.getpid(), signal.SIGINT)
            return await asyncio.wait_for(task, timeout=15)

        report = asyncio.run(_scenario())

        assert isinstance(report, ServerReport)
        assert report.reloads == 1
        assert report.port == ports[0]
        assert context.config.generation == 1
        assert context.settings().server_host == "10.0.0.9"
        assert bound[0].fileno() == -1


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@posix_signals
class TestServerProcess:
    @pytest.mark.parametrize("sig", [signal.SIGINT, signal.SIGTERM], ids=["sigint", "sigterm"])
    def test_signal_stops_server_with_success(
        self, config_file: Path, sig: signal.Signals,
    ) -> None:
        port = _free_port()
        env = dict(os.environ)
        src_dir = str(Path(switchyard.__file__).resolve().parents[1])
        env["PYTHONPATH"] = os.pathsep.join(filter(None, [src_dir, env.get("PYTHONPATH")]))
        proc = subprocess.Popen(
            [
                sys.executable, "-m", "switchyard",
                "--config", str(config_file),
                "server", "--port", str(port),
            ],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            env=env,
        )
        try:
            deadline = time.monotonic() + 20.0
            while True:
                assert proc.poll() is None, proc.communicate()[1]
                try:
                    if httpx.get(f"http://127.0.0.1:{port}/healthz", timeout=0.5).status_code == 200:
                        break
                except httpx.TransportError:
                    pass
                assert time.monotonic() < deadline, "server never answered"
                time.sleep(0.1)

            proc.send_signal(sig)
            _out, err = proc.communicate(timeout=20)
        finally:
            if proc.poll() is None:
                proc.kill()
                proc.communicate()

        assert proc.returncode == 0, err
        assert f"Server on 127.0.0.1:{port} stopped" in err
        assert "Aborted" not in err
