"""Emulated machine lifecycle and snapshot management."""

from .emulator import Emulator, EmulatorFactory, build_boot_config, load_emulator_factory
from .lifecycle import MachineLifecycle
from .models import BootConfig, HostStatus, MachineEvent, MachineSession, MachineState, StatusRecord
from .snapshot import SnapshotManager, SnapshotResult

__all__ = [
    "BootConfig",
    "build_boot_config",
    "Emulator",
    "EmulatorFactory",
    "HostStatus",
    "load_emulator_factory",
    "MachineEvent",
    "MachineLifecycle",
    "MachineSession",
    "MachineState",
    "SnapshotManager",
    "SnapshotResult",
    "StatusRecord",
]
