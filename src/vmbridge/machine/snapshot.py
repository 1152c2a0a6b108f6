"""Single-slot machine state capture and restore."""

from __future__ import annotations

import asyncio
import inspect
import logging as py_logging
from enum import Enum

from vmbridge.errors import ExitCode, VMBridgeError
from vmbridge.escapes import style
from vmbridge.machine.lifecycle import MachineLifecycle
from vmbridge.machine.models import MachineSession, MachineState

logger = py_logging.getLogger(__name__)


class SnapshotResult(str, Enum):
    SAVED = "saved"
    RESTORED = "restored"
    NO_ACTIVE_MACHINE = "no-active-machine"
    NO_SAVED_STATE = "no-saved-state"
    FAILED = "failed"


class SnapshotManager:
    def __init__(self, lifecycle: MachineLifecycle) -> None:
        self._lifecycle = lifecycle
        self._slot: bytes | None = None
        self._last_error: VMBridgeError | None = None

    @property
    def saved_state(self) -> bytes | None:
        return self._slot

    @property
    def has_snapshot(self) -> bool:
        return self._slot is not None

    @property
    def last_error(self) -> VMBridgeError | None:
        """Failure behind the most recent ``FAILED`` result, if any."""
        return self._last_error

    async def capture(self) -> SnapshotResult:
        session = self._active_session()
        if session is None:
            logger.warning("No VM running to save state")
            self._report("[System] No running VM to save", ok=False)
            return SnapshotResult.NO_ACTIVE_MACHINE

        try:
            blob = await self._save(session)
        except VMBridgeError as exc:
            return self._failed(exc, "[System] Failed to save VM state")

        if self._active_session() is not session:
            logger.warning("VM stopped before its state was saved; discarding snapshot")
            self._report("[System] No running VM to save", ok=False)
            return SnapshotResult.NO_ACTIVE_MACHINE

        self._slot = blob
        self._last_error = None
        logger.info("VM state saved bytes=%s", len(blob))
        self._report("[System] VM state saved", ok=True)
        return SnapshotResult.SAVED

    async def restore(self) -> SnapshotResult:
        session = self._active_session()
        if session is None:
            logger.warning("No VM running to load state")
            self._report("[System] No running VM to restore", ok=False)
            return SnapshotResult.NO_ACTIVE_MACHINE
        if self._slot is None:
            logger.warning("No saved state found")
            self._report("[System] No saved state found", ok=False)
            return SnapshotResult.NO_SAVED_STATE

        try:
            await self._apply(session, self._slot)
        except VMBridgeError as exc:
            return self._failed(exc, "[System] Failed to restore VM state")

        self._last_error = None
        logger.info("VM state restored")
        self._report("[System] VM state restored", ok=True)
        return SnapshotResult.RESTORED

    def _active_session(self) -> MachineSession | None:
        if self._lifecycle.state != MachineState.RUNNING:
            return None
        return self._lifecycle.session

    def _failed(self, error: VMBridgeError, message: str) -> SnapshotResult:
        self._last_error = error
        logger.error("Snapshot failure (code=%s): %s", int(error.code), error)
        self._report(message, ok=False)
        return SnapshotResult.FAILED

    @staticmethod
    async def _save(session: MachineSession) -> bytes:
        loop = asyncio.get_running_loop()
        future: asyncio.Future[bytes] = loop.create_future()

        def resolve(error: BaseException | None, blob: bytes | None) -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(_snapshot_error("Failed to save VM state", error))
            elif blob is None:
                future.set_exception(
                    VMBridgeError("Emulator returned no state", code=ExitCode.SNAPSHOT_ERROR)
                )
            else:
                future.set_result(blob)

        def on_saved(error: BaseException | None, blob: bytes | None) -> None:
            loop.call_soon_threadsafe(resolve, error, blob)

        try:
            session.emulator.save_state(on_saved)
        except Exception as exc:
            raise _snapshot_error("Failed to save VM state", exc) from exc
        return await future

    @staticmethod
    async def _apply(session: MachineSession, blob: bytes) -> None:
        try:
            applied = session.emulator.restore_state(blob)
            if inspect.isawaitable(applied):
                await applied
        except Exception as exc:
            raise _snapshot_error("Failed to restore VM state", exc) from exc

    def _report(self, message: str, *, ok: bool) -> None:
        self._lifecycle.router.write_line(style(message, 1, 33 if ok else 31))


def _snapshot_error(message: str, cause: BaseException) -> VMBridgeError:
    return VMBridgeError(message, code=ExitCode.SNAPSHOT_ERROR, hint=str(cause) or type(cause).__name__)
