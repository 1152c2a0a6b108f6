"""Byte routing between the terminal widget and the emulated machine."""

from __future__ import annotations

import logging as py_logging

from vmbridge.escapes import ClearTarget, erase
from vmbridge.machine.models import MachineSession
from vmbridge.terminal.input_queue import InputCaptureQueue
from vmbridge.terminal.models import CursorPosition, TerminalSize
from vmbridge.terminal.widget import ResizeCallback, TerminalWidget

logger = py_logging.getLogger(__name__)


class TerminalRouter:
    def __init__(self, terminal: TerminalWidget, input_queue: InputCaptureQueue) -> None:
        self.terminal = terminal
        self.input_queue = input_queue
        self._session: MachineSession | None = None
        self._resize_listeners: list[ResizeCallback] = []
        terminal.on_data(self.on_terminal_input)
        terminal.on_resize(self._on_terminal_resize)

    @property
    def session(self) -> MachineSession | None:
        return self._session

    def attach(self, session: MachineSession) -> None:
        self._session = session
        logger.debug("Router attached to %s session", session.os_image.value)

    def detach(self, session: MachineSession | None = None) -> None:
        if session is not None and session is not self._session:
            return
        self._session = None

    def on_terminal_input(self, data: str) -> None:
        self.input_queue.on_input_arrived(data)
        if self._session is not None:
            self._send_codes(self._session, data)

    def on_machine_output_byte(self, byte: int) -> None:
        self.terminal.write(chr(byte))

    def send_keys(self, text: str) -> bool:
        if self._session is None:
            logger.debug("send_keys ignored: no active machine session")
            return False
        self._send_codes(self._session, text)
        return True

    def write(self, text: str) -> None:
        self.terminal.write(text)

    def write_line(self, text: str, newline: bool = True) -> None:
        if newline:
            self.terminal.writeln(text)
        else:
            self.terminal.write(text)

    def clear_screen(self) -> None:
        self.terminal.clear()

    def erase(self, target: ClearTarget) -> None:
        self.terminal.write(erase(target))

    def size(self) -> TerminalSize:
        return TerminalSize(cols=self.terminal.cols, rows=self.terminal.rows)

    def cursor(self) -> CursorPosition:
        return self.terminal.cursor_position()

    def add_resize_listener(self, callback: ResizeCallback) -> None:
        self._resize_listeners.append(callback)

    def _on_terminal_resize(self, size: TerminalSize) -> None:
        for callback in list(self._resize_listeners):
            try:
                callback(size)
            except Exception:
                logger.exception("Terminal resize listener failed")

    @staticmethod
    def _send_codes(session: MachineSession, text: str) -> None:
        emulator = session.emulator
        for char in text:
            emulator.send_keyboard_code(ord(char))
