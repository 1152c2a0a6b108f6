"""Machine lifecycle domain models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from vmbridge.catalog import OsImage

if TYPE_CHECKING:
    from vmbridge.machine.emulator import Emulator


class MachineState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    ERROR = "error"


class HostStatus(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"


NO_OS_LABEL = "No OS loaded"


@dataclass(frozen=True)
class StatusRecord:
    status_text: str
    is_healthy: bool
    os_label: str


@dataclass(frozen=True)
class MachineEvent:
    step: str
    message: str


class BootConfig(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    boot_image_url: str
    memory_size_bytes: int = Field(gt=0)
    video_memory_size_bytes: int = Field(gt=0)
    bios_url: str
    vga_bios_url: str
    wasm_path: str = ""
    boot_order: int = 0x123
    autostart: bool = True
    acpi: bool = True
    render_target: object | None = None


@dataclass
class MachineSession:
    os_image: OsImage
    emulator: Emulator
    state: MachineState = MachineState.STARTING


def host_status(state: MachineState) -> HostStatus:
    if state == MachineState.STARTING:
        return HostStatus.STARTING
    if state == MachineState.RUNNING:
        return HostStatus.RUNNING
    return HostStatus.STOPPED


def status_for(state: MachineState, os_image: OsImage | None, *, detail: str = "") -> StatusRecord:
    name = os_image.value if os_image is not None else ""
    if state == MachineState.STARTING:
        return StatusRecord(f"Starting {name}...", False, name.upper() or NO_OS_LABEL)
    if state == MachineState.RUNNING:
        return StatusRecord(f"Running {name}", True, name.upper())
    if state == MachineState.STOPPING:
        return StatusRecord("Stopping...", False, name.upper() or NO_OS_LABEL)
    if state == MachineState.ERROR:
        return StatusRecord(f"Error: {detail or 'Failed to start VM'}", False, NO_OS_LABEL)
    return StatusRecord(detail or "Stopped", False, NO_OS_LABEL)
