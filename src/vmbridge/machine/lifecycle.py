"""Single-instance machine lifecycle state machine."""

from __future__ import annotations

import asyncio
import inspect
import logging as py_logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from vmbridge.catalog import OsImage, resolve_os_image
from vmbridge.config import BridgeConfig
from vmbridge.escapes import style
from vmbridge.machine.emulator import ByteListener, Emulator, EmulatorFactory, build_boot_config
from vmbridge.machine.models import (
    HostStatus,
    MachineEvent,
    MachineSession,
    MachineState,
    StatusRecord,
    host_status,
    status_for,
)

if TYPE_CHECKING:
    from vmbridge.terminal.router import TerminalRouter

logger = py_logging.getLogger(__name__)

StatusListener = Callable[[StatusRecord], None]

_BANNER_WIDTH = 78


class MachineLifecycle:
    """Owns at most one emulated machine and drives it through its states.

    ``start`` and ``stop`` share one lock, so overlapping calls run one after
    another in arrival order and never leave two live sessions behind.
    """

    def __init__(
        self,
        router: TerminalRouter,
        config: BridgeConfig,
        *,
        emulator_factory: EmulatorFactory | None = None,
        unavailable_reason: str = "",
        render_target: object | None = None,
    ) -> None:
        self.router = router
        self.config = config
        self._factory = emulator_factory
        self._unavailable_reason = unavailable_reason
        self._render_target = render_target
        self._state = MachineState.IDLE
        self._session: MachineSession | None = None
        self._os_image: OsImage | None = None
        self._status = status_for(MachineState.IDLE, None, detail="Ready")
        self._events: list[MachineEvent] = []
        self._status_listeners: list[StatusListener] = []
        self._lock = asyncio.Lock()

    @property
    def state(self) -> MachineState:
        return self._state

    @property
    def session(self) -> MachineSession | None:
        return self._session

    @property
    def status(self) -> StatusRecord:
        return self._status

    @property
    def host_status(self) -> HostStatus:
        return host_status(self._state)

    @property
    def is_running(self) -> bool:
        return self._state == MachineState.RUNNING

    def list_events(self) -> list[MachineEvent]:
        return list(self._events)

    def add_status_listener(self, callback: StatusListener) -> None:
        self._status_listeners.append(callback)

    async def start(self, selector: object = None) -> MachineState:
        default = resolve_os_image(self.config.default_os)
        image = default if selector is None else resolve_os_image(selector, default=default)
        async with self._lock:
            if self._state not in (MachineState.IDLE, MachineState.ERROR):
                self._record("restart", f"Stopping current session before starting {image.value}.")
                await self._stop_locked()
            await self._start_locked(image)
            return self._state

    async def stop(self) -> MachineState:
        async with self._lock:
            await self._stop_locked()
            return self._state

    async def _start_locked(self, image: OsImage) -> None:
        self._transition(MachineState.STARTING, image)
        if self._factory is None:
            reason = self._unavailable_reason or "Emulator unavailable"
            logger.error("Cannot start %s: %s", image.value, reason)
            self._fail(reason)
            return

        boot_config = build_boot_config(self.config, image, render_target=self._render_target)
        emulator: Emulator | None = None
        try:
            created = self._factory(boot_config)
            emulator = await created if inspect.isawaitable(created) else created
            session = MachineSession(os_image=image, emulator=emulator)
            emulator.add_listener(self.config.output_channel, self._output_listener(session))
        except Exception as exc:
            logger.error("VM initialization failed for %s: %s", image.value, exc, exc_info=True)
            if emulator is not None:
                await self._halt(emulator)
            self._fail("Failed to initialize", detail=str(exc))
            return

        self._session = session
        self.router.attach(session)
        self._transition(MachineState.RUNNING, image)
        self._write_start_banner(image)

    async def _stop_locked(self) -> None:
        if self._state == MachineState.IDLE:
            return
        session = self._session
        self._transition(MachineState.STOPPING, self._os_image)
        if session is not None:
            await self._halt(session.emulator)
            self.router.detach(session)
        self._session = None
        self._transition(MachineState.IDLE, None)
        self.router.clear_screen()
        self.router.write_line(style("Virtual Machine Stopped", 1, 31))

    async def _halt(self, emulator: Emulator) -> None:
        try:
            halted = emulator.stop()
            if inspect.isawaitable(halted):
                await halted
        except Exception as exc:
            logger.warning("Error stopping VM: %s", exc)
            self._record("stop-error", str(exc) or type(exc).__name__)

    def _output_listener(self, session: MachineSession) -> ByteListener:
        def listener(byte: int) -> None:
            if self._session is not session:
                return
            self.router.on_machine_output_byte(byte)

        return listener

    def _fail(self, reason: str, *, detail: str = "") -> None:
        self._session = None
        self._transition(MachineState.ERROR, None, detail=reason)
        message = f"[System] Failed to start VM: {reason}"
        if detail:
            message = f"{message} ({detail})"
        self.router.write_line(style(message, 1, 31))

    def _transition(self, state: MachineState, image: OsImage | None, *, detail: str = "") -> None:
        previous = self._state
        self._state = state
        self._os_image = image
        if self._session is not None:
            self._session.state = state
        self._status = status_for(state, image, detail=detail)
        self._record(state.value, f"{previous.value} -> {state.value}: {self._status.status_text}")
        for callback in list(self._status_listeners):
            try:
                callback(self._status)
            except Exception:
                logger.exception("Status listener failed")

    def _record(self, step: str, message: str) -> None:
        self._events.append(MachineEvent(step=step, message=message))
        logger.info("machine-event step=%s message=%s", step, message)

    def _write_start_banner(self, image: OsImage) -> None:
        title = "VIRTUAL MACHINE TERMINAL".center(_BANNER_WIDTH)
        self.router.clear_screen()
        self.router.write_line(style("╔" + "═" * _BANNER_WIDTH + "╗", 1, 32))
        self.router.write_line(style("║" + title + "║", 1, 32))
        self.router.write_line(style("╚" + "═" * _BANNER_WIDTH + "╝", 1, 32))
        self.router.write_line("")
        self.router.write_line(style(f"OS: {image.value.upper()}", 1, 36))
        self.router.write_line(style("VM is booting up... This may take a moment.", 33))
        self.router.write_line(style("Type commands here once the system is ready.", 97))
        self.router.write_line("")
        self.router.write(style("$ ", 1, 32))
