"""Host-script surface over the machine and terminal bridge."""

from __future__ import annotations

import logging as py_logging
import math
from collections.abc import Callable
from enum import Enum
from typing import TypeVar

from vmbridge.config import BridgeConfig
from vmbridge.errors import VMBridgeError
from vmbridge.escapes import ClearTarget, ColorLayer, colored, cursor_position, parse_rgb_color
from vmbridge.machine.emulator import EmulatorFactory, load_emulator_factory
from vmbridge.machine.lifecycle import MachineLifecycle
from vmbridge.machine.models import StatusRecord
from vmbridge.machine.snapshot import SnapshotManager, SnapshotResult
from vmbridge.terminal.input_queue import InputCaptureQueue
from vmbridge.terminal.models import MetricPayload, TerminalMetric, TerminalSize
from vmbridge.terminal.router import TerminalRouter
from vmbridge.terminal.widget import TerminalWidget
from vmbridge.window import VisibilityAction, WindowController, WindowFrame

logger = py_logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

_NEWLINE_CHOICES = {"newline": True, "no newline": False}


class VMBridge:
    """One emulated machine bound to one terminal, driven by a host script.

    Every operation accepts loosely typed host values. Bad input and unmet
    preconditions are logged and ignored; nothing here raises to the caller.
    """

    def __init__(
        self,
        terminal: TerminalWidget,
        config: BridgeConfig | None = None,
        *,
        emulator_factory: EmulatorFactory | None = None,
        unavailable_reason: str = "",
        render_target: object | None = None,
    ) -> None:
        self.config = config or BridgeConfig()
        self.terminal = terminal
        self.input_queue = InputCaptureQueue(buffering_enabled=self.config.input_buffering)
        self.router = TerminalRouter(terminal, self.input_queue)
        self.lifecycle = MachineLifecycle(
            self.router,
            self.config,
            emulator_factory=emulator_factory,
            unavailable_reason=unavailable_reason,
            render_target=render_target,
        )
        self.snapshots = SnapshotManager(self.lifecycle)
        self.window = WindowController(terminal.fit, fit_delay_seconds=self.config.fit_delay_seconds)

    @classmethod
    def from_config(
        cls,
        terminal: TerminalWidget,
        config: BridgeConfig,
        *,
        render_target: object | None = None,
    ) -> VMBridge:
        factory: EmulatorFactory | None = None
        reason = ""
        if not config.emulator_factory:
            reason = "No emulator configured"
            logger.warning("No emulator factory configured; machine start will fail")
        else:
            try:
                factory = load_emulator_factory(config.emulator_factory)
            except VMBridgeError as exc:
                reason = exc.message
                logger.error("Emulator loading failed: %s", exc)
        return cls(
            terminal,
            config,
            emulator_factory=factory,
            unavailable_reason=reason,
            render_target=render_target,
        )

    async def start_machine(self, os_selector: object = None) -> None:
        await self.lifecycle.start(os_selector)

    async def stop_machine(self) -> None:
        await self.lifecycle.stop()

    def show_window(self, x: object, y: object, width: object, height: object) -> WindowFrame:
        return self.window.show(
            _to_number(x, 0.0),
            _to_number(y, 0.0),
            _to_number(width, 0.0),
            _to_number(height, 0.0),
        )

    def hide_window(self) -> WindowFrame:
        return self.window.hide()

    def change_visibility(self, status: object) -> WindowFrame:
        action = _choice(VisibilityAction, status)
        if action is None:
            logger.debug("Ignoring unknown visibility option %r", status)
            return self.window.frame
        return self.window.change_visibility(action)

    def minimize_window(self) -> WindowFrame:
        return self.window.minimize()

    def maximize_window(self) -> WindowFrame:
        return self.window.maximize()

    def print_text(self, text: object, newline: object = True) -> None:
        if isinstance(newline, bool):
            with_newline = newline
        else:
            with_newline = _NEWLINE_CHOICES.get(_to_text(newline).strip().lower(), False)
        self.router.write_line(_to_text(text), with_newline)

    def send_command(self, command: object) -> None:
        self.router.write_line(_to_text(command))

    def send_keys(self, keys: object) -> bool:
        return self.router.send_keys(_to_text(keys))

    def clear(self, target: object = ClearTarget.SCREEN) -> bool:
        resolved = _choice(ClearTarget, target)
        if resolved is None:
            logger.debug("Ignoring unknown clear target %r", target)
            return False
        self.router.erase(resolved)
        return True

    def move_cursor_to(self, x: object, y: object) -> bool:
        column = _to_cell(x)
        row = _to_cell(y)
        if column is None or row is None:
            logger.debug("Ignoring cursor move to (%r, %r)", x, y)
            return False
        self.router.write(cursor_position(column, row))
        return True

    def is_running(self) -> bool:
        return self.lifecycle.is_running

    def get_status(self) -> str:
        return self.lifecycle.host_status.value

    def status_record(self) -> StatusRecord:
        return self.lifecycle.status

    async def request_input(self) -> str:
        return await self.input_queue.request_next()

    def set_input_buffering(self, enabled: object) -> None:
        self.input_queue.set_buffering_enabled(bool(enabled))

    def get_terminal_metrics(self, option: object) -> MetricPayload | dict[str, int]:
        metric = _choice(TerminalMetric, option)
        if metric == TerminalMetric.SIZE:
            return self.router.size().to_payload()
        if metric == TerminalMetric.CURSOR:
            return self.router.cursor().to_payload()
        logger.debug("Ignoring unknown terminal metric %r", option)
        return {}

    async def save_state(self) -> SnapshotResult:
        return await self.snapshots.capture()

    async def load_state(self) -> SnapshotResult:
        return await self.snapshots.restore()

    def colored_text(self, text: object, color: object, layer: object = ColorLayer.FOREGROUND) -> str:
        resolved = _choice(ColorLayer, layer) or ColorLayer.FOREGROUND
        return colored(_to_text(text), parse_rgb_color(color), resolved)

    def on_terminal_resized(self, callback: Callable[[TerminalSize], None]) -> None:
        self.router.add_resize_listener(callback)


def _to_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _to_number(value: object, default: float) -> float:
    parsed = _parse_number(value)
    return default if parsed is None else parsed


def _parse_number(value: object) -> float | None:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _to_cell(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    number = _parse_number(value)
    if number is None or number < 0 or not number.is_integer():
        return None
    return int(number)


def _choice(enum_type: type[E], value: object) -> E | None:
    if isinstance(value, enum_type):
        return value
    normalized = _to_text(value).strip().lower()
    for item in enum_type:
        if item.value == normalized:
            return item
    return None
