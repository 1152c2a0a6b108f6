"""Emulator collaborator contract and loading."""

from __future__ import annotations

import importlib
import logging as py_logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from vmbridge.catalog import OsImage, image_url
from vmbridge.config import BridgeConfig
from vmbridge.errors import ExitCode, VMBridgeError
from vmbridge.machine.models import BootConfig

logger = py_logging.getLogger(__name__)

ByteListener = Callable[[int], None]
SaveCallback = Callable[[BaseException | None, bytes | None], None]

_MEBIBYTE = 1024 * 1024


class Emulator(Protocol):
    def add_listener(self, event: str, callback: ByteListener) -> None: ...

    def send_keyboard_code(self, code: int) -> None: ...

    def save_state(self, callback: SaveCallback) -> None: ...

    def restore_state(self, blob: bytes) -> object: ...

    def stop(self) -> None: ...


EmulatorFactory = Callable[[BootConfig], Emulator | Awaitable[Emulator]]


def load_emulator_factory(path: str) -> EmulatorFactory:
    """Resolve a ``package.module:attribute`` path to an emulator factory."""
    module_name, _, attribute = path.strip().partition(":")
    if not module_name or not attribute:
        raise VMBridgeError(
            f"Invalid emulator factory path: {path!r}",
            code=ExitCode.CONFIG_ERROR,
            hint="Use the form package.module:factory.",
        )
    try:
        module = importlib.import_module(module_name)
    except Exception as exc:
        raise VMBridgeError(
            f"Emulator module could not be loaded: {module_name}",
            code=ExitCode.EMULATOR_UNAVAILABLE,
            hint=str(exc) or "Install the emulator package.",
        ) from exc

    factory = getattr(module, attribute, None)
    if not callable(factory):
        raise VMBridgeError(
            f"Emulator factory not found: {path}",
            code=ExitCode.EMULATOR_UNAVAILABLE,
            hint=f"Module {module_name} has no callable named {attribute}.",
        )
    logger.info("Emulator factory loaded from %s", path)
    return factory


def build_boot_config(
    config: BridgeConfig,
    image: OsImage,
    *,
    render_target: object | None = None,
) -> BootConfig:
    return BootConfig(
        boot_image_url=image_url(image, config.image_overrides),
        memory_size_bytes=config.memory_size_mb * _MEBIBYTE,
        video_memory_size_bytes=config.vga_memory_size_mb * _MEBIBYTE,
        bios_url=config.bios_url,
        vga_bios_url=config.vga_bios_url,
        wasm_path=config.wasm_path,
        boot_order=config.boot_order,
        autostart=config.autostart,
        acpi=config.acpi,
        render_target=render_target,
    )
