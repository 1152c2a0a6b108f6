"""Terminal widget contract and a text-stream backed widget."""

from __future__ import annotations

import logging as py_logging
import re
import shutil
from collections.abc import Callable
from typing import Protocol, TextIO

from vmbridge.escapes import ClearTarget, erase
from vmbridge.terminal.models import CursorPosition, TerminalSize

logger = py_logging.getLogger(__name__)

DataCallback = Callable[[str], None]
ResizeCallback = Callable[[TerminalSize], None]
SizeProvider = Callable[[], TerminalSize]

_CSI_PATTERN = re.compile(r"\x1b\[([0-9;]*)([A-Za-z])")


class TerminalWidget(Protocol):
    @property
    def cols(self) -> int: ...

    @property
    def rows(self) -> int: ...

    def write(self, data: str) -> None: ...

    def writeln(self, data: str) -> None: ...

    def clear(self) -> None: ...

    def fit(self) -> None: ...

    def cursor_position(self) -> CursorPosition: ...

    def on_data(self, callback: DataCallback) -> None: ...

    def on_resize(self, callback: ResizeCallback) -> None: ...


def host_console_size() -> TerminalSize:
    size = shutil.get_terminal_size(fallback=(80, 24))
    return TerminalSize(cols=size.columns, rows=size.lines)


class StreamTerminal:
    """Terminal widget writing to a text stream.

    Input arrives through :meth:`feed`. The cursor is tracked from printable
    text, CR/LF and cursor-position sequences only; other escape sequences are
    passed through untouched and do not move it.
    """

    def __init__(self, stream: TextIO, *, size_provider: SizeProvider | None = None) -> None:
        self._stream = stream
        self._size_provider = size_provider or host_console_size
        self._size = self._size_provider()
        self._cursor_x = 0
        self._cursor_y = 0
        self._data_callbacks: list[DataCallback] = []
        self._resize_callbacks: list[ResizeCallback] = []

    @property
    def cols(self) -> int:
        return self._size.cols

    @property
    def rows(self) -> int:
        return self._size.rows

    def write(self, data: str) -> None:
        self._stream.write(data)
        self._stream.flush()
        self._track(data)

    def writeln(self, data: str) -> None:
        self.write(f"{data}\r\n")

    def clear(self) -> None:
        self.write(erase(ClearTarget.SCREEN) + "\x1b[H")

    def fit(self) -> None:
        size = self._size_provider()
        if size == self._size:
            return
        self._size = size
        logger.debug("Terminal resized cols=%s rows=%s", size.cols, size.rows)
        for callback in list(self._resize_callbacks):
            callback(size)

    def cursor_position(self) -> CursorPosition:
        return CursorPosition(x=self._cursor_x, y=self._cursor_y)

    def on_data(self, callback: DataCallback) -> None:
        self._data_callbacks.append(callback)

    def on_resize(self, callback: ResizeCallback) -> None:
        self._resize_callbacks.append(callback)

    def feed(self, data: str) -> None:
        if not data:
            return
        for callback in list(self._data_callbacks):
            callback(data)

    def _track(self, data: str) -> None:
        position = 0
        for match in _CSI_PATTERN.finditer(data):
            self._advance(data[position : match.start()])
            if match.group(2) == "H":
                self._move_to(match.group(1))
            position = match.end()
        self._advance(data[position:])

    def _move_to(self, params: str) -> None:
        parts = params.split(";")
        row = int(parts[0]) if parts and parts[0].isdigit() else 1
        col = int(parts[1]) if len(parts) > 1 and parts[1].isdigit() else 1
        self._cursor_y = min(max(row - 1, 0), self.rows - 1)
        self._cursor_x = min(max(col - 1, 0), self.cols - 1)

    def _advance(self, text: str) -> None:
        for char in text:
            if char == "\r":
                self._cursor_x = 0
            elif char == "\n":
                self._cursor_y = min(self._cursor_y + 1, self.rows - 1)
            elif char == "\b":
                self._cursor_x = max(self._cursor_x - 1, 0)
            elif char.isprintable():
                self._cursor_x += 1
                if self._cursor_x >= self.cols:
                    self._cursor_x = 0
                    self._cursor_y = min(self._cursor_y + 1, self.rows - 1)
