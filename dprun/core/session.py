"""Run dprun and, for the DPRun service provider, its host server."""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from collections.abc import Callable
from typing import Protocol

from dprun.core.config import DPRunSettings, load_settings
from dprun.core.errors import DPRunExitError, LaunchError, SessionStateError
from dprun.core.model import LaunchPlan, SessionSpec
from dprun.core.plan import assemble, host_server_port
from dprun.server.base import ServiceProvider
from dprun.server.host_server import HostServer, RunningServer, StopController

LOGGER = logging.getLogger(__name__)

_TERMINATE_GRACE_S = 5.0
_STARTUP_SETTLE_S = 5.0


class SessionState(enum.Enum):
    NOT_STARTED = "not_started"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    TERMINATED = "terminated"


class CallbackServer(Protocol):
    async def start(self) -> tuple[RunningServer, StopController]: ...


ServerFactory = Callable[..., CallbackServer]


async def _spawn(plan: LaunchPlan) -> asyncio.subprocess.Process:
    LOGGER.info("starting %s", plan.command())
    try:
        return await asyncio.create_subprocess_exec(*plan.argv, cwd=plan.cwd)
    except OSError as exc:
        raise LaunchError(f"Could not start {plan.program}: {exc}") from exc


async def _terminate_process(
    process: asyncio.subprocess.Process,
    grace_s: float = _TERMINATE_GRACE_S,
) -> int:
    if process.returncode is not None:
        return process.returncode
    with contextlib.suppress(ProcessLookupError):
        process.terminate()
    try:
        return await asyncio.wait_for(process.wait(), grace_s)
    except asyncio.TimeoutError:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        return await process.wait()


def _exit_failure(returncode: int) -> DPRunExitError | None:
    LOGGER.info("dprun exited with status %s", returncode)
    if returncode == 0:
        return None
    # Negative return codes mean the process was killed by a signal.
    return DPRunExitError(returncode if returncode > 0 else None)


def _task_result(task: asyncio.Task | None):
    if task is None or not task.done() or task.cancelled() or task.exception() is not None:
        return None
    return task.result()


class DPRun:
    """A single dprun game session. Start it once with :meth:`start`."""

    def __init__(
        self,
        plan: LaunchPlan,
        *,
        handler: ServiceProvider | None = None,
        host_port: int | None = None,
        settings: DPRunSettings | None = None,
        server_factory: ServerFactory = HostServer,
    ) -> None:
        self.plan = plan
        self.handler = handler
        self.settings = settings or DPRunSettings()
        self.host_port = self.settings.host_port if host_port is None else host_port
        self._server_factory = server_factory
        self.state = SessionState.NOT_STARTED
        self.process: asyncio.subprocess.Process | None = None
        self.error: BaseException | None = None
        self.shutdown_error: BaseException | None = None

    def command(self) -> str:
        """The command that will be executed (for debugging)."""
        return self.plan.command()

    @property
    def succeeded(self) -> bool:
        return self.state is SessionState.TERMINATED and self.error is None

    def _set_state(self, state: SessionState) -> None:
        LOGGER.debug("session %s -> %s", self.state.value, state.value)
        self.state = state

    def _terminate(self, error: BaseException | None) -> None:
        self.error = error
        self._set_state(SessionState.TERMINATED)

    async def start(self) -> None:
        """Run dprun to completion.

        Raises :class:`LaunchError` or :class:`CallbackServerError` when startup
        fails and :class:`DPRunExitError` when dprun exits unsuccessfully.
        Cancelling the calling task terminates dprun and stops the host server.
        """
        if self.state is not SessionState.NOT_STARTED:
            raise SessionStateError("A dprun session can only be started once")
        self._set_state(SessionState.STARTING)

        try:
            process, running, controller = await self._start_all()
        except BaseException as exc:
            self._terminate(exc)
            raise

        self._set_state(SessionState.RUNNING)
        failure: BaseException | None = None
        try:
            try:
                returncode = await process.wait()
            except asyncio.CancelledError:
                LOGGER.info("session cancelled, terminating dprun (pid %s)", process.pid)
                failure = _exit_failure(await _terminate_process(process))
                raise
            failure = _exit_failure(returncode)
        finally:
            self._set_state(SessionState.STOPPING)
            await self._stop_server(running, controller)
            self._terminate(failure)

        if failure is not None:
            raise failure

    async def _start_all(
        self,
    ) -> tuple[asyncio.subprocess.Process, RunningServer | None, StopController | None]:
        server_task: asyncio.Task[tuple[RunningServer, StopController]] | None = None
        if self.handler is not None:
            server = self._server_factory(
                self.host_port,
                self.handler,
                host=self.settings.host_address,
            )
            server_task = asyncio.create_task(server.start())
        spawn_task = asyncio.create_task(self._spawn_process())
        tasks = [task for task in (server_task, spawn_task) if task is not None]

        try:
            await asyncio.wait(tasks)
        except asyncio.CancelledError:
            # Let a bind or spawn already in flight finish so it can be released.
            _, pending = await asyncio.wait(tasks, timeout=_STARTUP_SETTLE_S)
            for task in pending:
                task.cancel()
            await self._release_started(server_task, spawn_task)
            raise

        failures = [task.exception() for task in tasks if task.exception() is not None]
        if failures:
            await self._release_started(server_task, spawn_task)
            raise failures[0]

        started = _task_result(server_task)
        running, controller = started if started is not None else (None, None)
        return spawn_task.result(), running, controller

    async def _spawn_process(self) -> asyncio.subprocess.Process:
        self.process = await _spawn(self.plan)
        return self.process

    async def _release_started(
        self,
        server_task: asyncio.Task | None,
        spawn_task: asyncio.Task,
    ) -> None:
        process = _task_result(spawn_task)
        if process is not None:
            LOGGER.info("session startup failed, stopping dprun (pid %s)", process.pid)
            await _terminate_process(process)
        started = _task_result(server_task)
        if started is not None:
            await self._stop_server(*started)

    async def _stop_server(
        self,
        running: RunningServer | None,
        controller: StopController | None,
    ) -> None:
        if running is None or controller is None:
            return
        LOGGER.info("waiting for host server to shut down...")
        controller.stop()
        try:
            await running
        except Exception as exc:
            LOGGER.warning("host server did not shut down cleanly: %s", exc)
            self.shutdown_error = exc


def run(
    spec: SessionSpec,
    *,
    settings: DPRunSettings | None = None,
    platform: str | None = None,
    server_factory: ServerFactory = HostServer,
) -> DPRun:
    """Prepare a dprun session for ``spec``; call ``start()`` on the result."""
    settings = settings or load_settings()
    plan = assemble(spec, settings=settings, platform=platform)
    return DPRun(
        plan,
        handler=spec.service_provider_handler,
        host_port=host_server_port(spec, settings.host_port),
        settings=settings,
        server_factory=server_factory,
    )
