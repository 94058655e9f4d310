"""Process supervisor: startup validation, signal handling, bounded drain.

ProcessSupervisor owns the uvicorn server and a small state machine:

    RUNNING --(signal / uncaught fault)--> DRAINING --(drained or timed out)--> TERMINATED

While DRAINING the server stops accepting connections and in-flight
requests get SHUTDOWN_TIMEOUT_SECONDS to finish; stragglers are then
force-closed. Exit code is 0 for a clean operator shutdown and 1 for a
forced drain, a fault-initiated shutdown, or a failed startup.

Uncaught exceptions in worker threads (threading.excepthook) and exceptions
nobody awaited (event loop exception handler) are fatal and go through the
same drain as SIGINT/SIGTERM. The main thread only runs the event loop, so
its failures reach the loop exception handler or propagate out of run().
"""

from __future__ import annotations

import asyncio
import contextlib
import functools
import signal
import sys
import threading
from enum import Enum
from typing import Any

import structlog
import uvicorn

from src.gateway.api.middleware.logging import configure_structlog
from src.gateway.config import Settings, get_settings
from src.gateway.errors import ConfigurationError

logger = structlog.get_logger(__name__)


class SupervisorState(str, Enum):
    RUNNING = "running"
    DRAINING = "draining"
    TERMINATED = "terminated"


class SupervisedServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to ProcessSupervisor."""

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self):
        yield


class ProcessSupervisor:
    """Run the gateway until a signal or fault, then drain within a deadline.

    Args:
        settings: Startup settings (host, port, drain timeout, credentials).
        app: ASGI app to serve; built with create_app(settings) when omitted.
    """

    HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)
    FORCE_EXIT_GRACE_SECONDS = 1.0

    server_factory: type[uvicorn.Server] = SupervisedServer

    def __init__(self, settings: Settings, app: Any = None) -> None:
        self.settings = settings
        self.app = app
        self.state = SupervisorState.RUNNING
        self.shutdown_reason: str | None = None
        self.exit_code = 0
        self._server: uvicorn.Server | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._drain_requested: asyncio.Event | None = None

    # ── Startup ─────────────────────────────────────────────────────────────

    def validate(self) -> None:
        """Reject startup when the HubSpot token is missing.

        Raises:
            ConfigurationError: HUBSPOT_ACCESS_TOKEN is blank.
        """
        self.settings.require_crm_token()

    def _log_banner(self) -> None:
        base_url = f"http://localhost:{self.settings.PORT}"
        logger.info(
            "supervisor.starting",
            api_url=base_url,
            health_url=f"{base_url}/health",
            static_dir=self.settings.STATIC_DIR,
            shutdown_timeout_seconds=self.settings.SHUTDOWN_TIMEOUT_SECONDS,
        )

    # ── State machine ───────────────────────────────────────────────────────

    def request_shutdown(self, reason: str, fault: bool = False) -> bool:
        """Move RUNNING -> DRAINING. Returns False if already past RUNNING."""
        if fault:
            self.exit_code = 1
        if self.state is not SupervisorState.RUNNING:
            logger.debug("supervisor.shutdown_already_requested", reason=reason, state=self.state.value)
            return False

        self.state = SupervisorState.DRAINING
        self.shutdown_reason = reason
        logger.warning(
            "supervisor.draining",
            reason=reason,
            timeout_seconds=self.settings.SHUTDOWN_TIMEOUT_SECONDS,
        )
        if self._server is not None:
            self._server.should_exit = True
        if self._drain_requested is not None:
            self._drain_requested.set()
        return True

    def _fault(self, reason: str) -> None:
        loop = self._loop
        if loop is not None and loop.is_running() and threading.current_thread() is not threading.main_thread():
            loop.call_soon_threadsafe(functools.partial(self.request_shutdown, reason, fault=True))
        else:
            self.request_shutdown(reason, fault=True)

    # ── Hooks ───────────────────────────────────────────────────────────────

    def _on_signal(self, sig: signal.Signals) -> None:
        self.request_shutdown(sig.name)

    def _on_loop_exception(self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        exc = context.get("exception")
        logger.error(
            "supervisor.unhandled_rejection",
            message=context.get("message"),
            exc_info=exc if exc is not None else False,
        )
        self._fault("UNHANDLED_REJECTION")

    def _on_thread_exception(self, args: threading.ExceptHookArgs) -> None:
        logger.error(
            "supervisor.uncaught_exception",
            thread=getattr(args.thread, "name", None),
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )
        self._fault("UNCAUGHT_EXCEPTION")

    def _install_loop_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        loop.set_exception_handler(self._on_loop_exception)
        for sig in self.HANDLED_SIGNALS:
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except (NotImplementedError, RuntimeError):
                # No loop signal support (Windows, non-main thread)
                signal.signal(sig, lambda signum, frame: self._on_raw_signal(signum))

    def _on_raw_signal(self, signum: int) -> None:
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self._on_signal, signal.Signals(signum))

    def _remove_loop_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in self.HANDLED_SIGNALS:
            with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
                loop.remove_signal_handler(sig)
        loop.set_exception_handler(None)

    # ── Serving ─────────────────────────────────────────────────────────────

    def _build_server(self) -> uvicorn.Server:
        app = self.app
        if app is None:
            from src.gateway.main import create_app

            app = create_app(self.settings)
        config = uvicorn.Config(
            app,
            host=self.settings.HOST,
            port=self.settings.PORT,
            log_config=None,
            lifespan="on",
        )
        return self.server_factory(config)

    async def serve(self) -> int:
        """Serve until shutdown, drain, and return the process exit code."""
        loop = asyncio.get_running_loop()
        self._loop = loop
        self._drain_requested = asyncio.Event()
        self._server = self._build_server()
        self._install_loop_handlers(loop)
        self._log_banner()

        serve_task = asyncio.create_task(self._server.serve(), name="uvicorn_serve")
        drain_task = asyncio.create_task(self._drain_requested.wait(), name="drain_requested")
        try:
            await asyncio.wait({serve_task, drain_task}, return_when=asyncio.FIRST_COMPLETED)

            if not serve_task.done():
                await self._drain(serve_task)
            elif self.state is SupervisorState.RUNNING:
                # Server stopped on its own (failed startup or internal exit)
                self.state = SupervisorState.DRAINING
                self.shutdown_reason = "SERVER_EXITED"
                if not getattr(self._server, "started", False):
                    logger.error("supervisor.startup_failed")
                    self.exit_code = 1

            if serve_task.done() and not serve_task.cancelled() and serve_task.exception() is not None:
                logger.error("supervisor.server_crashed", exc_info=serve_task.exception())
                self.exit_code = 1
        finally:
            drain_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await drain_task
            self._remove_loop_handlers(loop)
            self.state = SupervisorState.TERMINATED

        log = logger.info if self.exit_code == 0 else logger.error
        log("supervisor.terminated", reason=self.shutdown_reason, exit_code=self.exit_code)
        return self.exit_code

    async def _drain(self, serve_task: asyncio.Task) -> None:
        timeout = self.settings.SHUTDOWN_TIMEOUT_SECONDS
        done, _ = await asyncio.wait({serve_task}, timeout=timeout)
        if done:
            logger.info("supervisor.drained", reason=self.shutdown_reason)
            return

        logger.error("supervisor.forced_shutdown", timeout_seconds=timeout)
        self.exit_code = 1
        self._server.force_exit = True
        done, _ = await asyncio.wait({serve_task}, timeout=self.FORCE_EXIT_GRACE_SECONDS)
        if not done:
            serve_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await serve_task

    def run(self) -> int:
        """Blocking entry point: install the thread excepthook and serve."""
        previous_thread_hook = threading.excepthook
        threading.excepthook = self._on_thread_exception
        try:
            return asyncio.run(self.serve())
        finally:
            threading.excepthook = previous_thread_hook


def main() -> None:
    """Validate configuration, serve, and exit with the supervisor's code."""
    settings = get_settings()
    configure_structlog(settings)

    supervisor = ProcessSupervisor(settings)
    try:
        supervisor.validate()
    except ConfigurationError as exc:
        logger.error("supervisor.startup_rejected", error=str(exc))
        sys.exit(1)

    sys.exit(supervisor.run())
