"""FIFO/buffer hybrid distributing terminal input to consumers."""

from __future__ import annotations

import asyncio
import logging as py_logging
from collections import deque

logger = py_logging.getLogger(__name__)


class InputCaptureQueue:
    """Hands terminal input to waiting readers, or buffers it for the next one.

    Pending requests and buffered text never coexist: text is only buffered
    when nobody is waiting, and a new request drains the buffer immediately.
    With buffering disabled, input that no request is waiting for is dropped.
    """

    def __init__(self, *, buffering_enabled: bool = False) -> None:
        self._buffering_enabled = buffering_enabled
        self._buffer: list[str] = []
        self._pending: deque[asyncio.Future[str]] = deque()

    @property
    def buffering_enabled(self) -> bool:
        return self._buffering_enabled

    @property
    def buffered(self) -> str:
        return "".join(self._buffer)

    @property
    def pending_count(self) -> int:
        return sum(1 for future in self._pending if not future.done())

    def set_buffering_enabled(self, enabled: bool) -> None:
        self._buffering_enabled = bool(enabled)
        logger.debug("Input buffering enabled=%s", self._buffering_enabled)

    def request_next(self) -> asyncio.Future[str]:
        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        if self._buffer:
            future.set_result(self._take_buffer())
            return future
        self._pending.append(future)
        return future

    def on_input_arrived(self, data: str) -> None:
        while self._pending:
            future = self._pending.popleft()
            if future.done():
                # Reader gave up (cancelled); hand the data to the next one.
                continue
            future.set_result(self._take_buffer() + data)
            return

        if self._buffering_enabled:
            self._buffer.append(data)
            return
        logger.debug("Dropped %s chars of unrequested terminal input", len(data))

    def _take_buffer(self) -> str:
        text = "".join(self._buffer)
        self._buffer.clear()
        return text
