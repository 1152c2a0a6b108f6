"""XDG config loading/saving."""

from __future__ import annotations

import os
import sys
from contextlib import suppress
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

from vmbridge.catalog import DEFAULT_OS_IMAGE, os_image_choices

DEFAULT_CONFIG_PATH = Path("~/.config/vmbridge/config.toml").expanduser()
DEFAULT_MEMORY_SIZE_MB = 2048
DEFAULT_VGA_MEMORY_SIZE_MB = 256
DEFAULT_BIOS_URL = "https://raw.githubusercontent.com/copy/v86/refs/heads/master/bios/seabios.bin"
DEFAULT_VGA_BIOS_URL = "https://raw.githubusercontent.com/copy/v86/refs/heads/master/bios/vgabios.bin"
DEFAULT_WASM_PATH = "https://cdn.jsdelivr.net/npm/v86@0.5.66/build/v86.wasm"
DEFAULT_BOOT_ORDER = 0x123
DEFAULT_OUTPUT_CHANNEL = "serial0-output-byte"
DEFAULT_FIT_DELAY_SECONDS = 0.1
EMULATOR_FACTORY_ENV = "VMBRIDGE_EMULATOR"

_MEMORY_RANGE = (16, 4096)
_VGA_MEMORY_RANGE = (1, 512)
_VALID_OS = set(os_image_choices())


class BridgeConfig(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    default_os: str = DEFAULT_OS_IMAGE.value
    memory_size_mb: int = Field(default=DEFAULT_MEMORY_SIZE_MB, ge=_MEMORY_RANGE[0], le=_MEMORY_RANGE[1])
    vga_memory_size_mb: int = Field(
        default=DEFAULT_VGA_MEMORY_SIZE_MB,
        ge=_VGA_MEMORY_RANGE[0],
        le=_VGA_MEMORY_RANGE[1],
    )
    bios_url: str = DEFAULT_BIOS_URL
    vga_bios_url: str = DEFAULT_VGA_BIOS_URL
    wasm_path: str = DEFAULT_WASM_PATH
    boot_order: int = Field(default=DEFAULT_BOOT_ORDER, ge=0)
    autostart: bool = True
    acpi: bool = True
    image_overrides: dict[str, str] = Field(default_factory=dict)
    output_channel: str = DEFAULT_OUTPUT_CHANNEL
    input_buffering: bool = False
    emulator_factory: str = ""
    fit_delay_seconds: float = Field(default=DEFAULT_FIT_DELAY_SECONDS, ge=0.0, le=5.0)

    @field_validator("default_os")
    @classmethod
    def _validate_default_os(cls, value: str) -> str:
        if value not in _VALID_OS:
            raise ValueError(f"Invalid OS image: {value}")
        return value

    @field_validator("image_overrides")
    @classmethod
    def _validate_overrides(cls, value: dict[str, str]) -> dict[str, str]:
        unknown = sorted(set(value) - _VALID_OS)
        if unknown:
            raise ValueError(f"Unknown OS images in overrides: {', '.join(unknown)}")
        return value


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _toml_scalar(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return f'"{_escape(value)}"'
    raise TypeError(f"Unsupported TOML scalar type: {type(value)!r}")


def _in_range(value: object, bounds: tuple[int, int]) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and bounds[0] <= value <= bounds[1]


def _normalize_image_overrides(value: object) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    normalized: dict[str, str] = {}
    for name, url in value.items():
        if not isinstance(name, str) or not isinstance(url, str):
            continue
        key = name.strip().lower()
        if key not in _VALID_OS or not url.strip():
            continue
        normalized[key] = url.strip()
    return normalized


def _sanitize(raw: dict[str, object]) -> BridgeConfig:
    cfg = BridgeConfig()

    default_os = raw.get("default_os", cfg.default_os)
    if isinstance(default_os, str) and default_os.strip().lower() in _VALID_OS:
        cfg.default_os = default_os.strip().lower()

    memory_size_mb = raw.get("memory_size_mb", cfg.memory_size_mb)
    if _in_range(memory_size_mb, _MEMORY_RANGE):
        cfg.memory_size_mb = int(memory_size_mb)  # type: ignore[arg-type]

    vga_memory_size_mb = raw.get("vga_memory_size_mb", cfg.vga_memory_size_mb)
    if _in_range(vga_memory_size_mb, _VGA_MEMORY_RANGE):
        cfg.vga_memory_size_mb = int(vga_memory_size_mb)  # type: ignore[arg-type]

    for name in ("bios_url", "vga_bios_url", "wasm_path", "output_channel"):
        candidate = raw.get(name)
        if isinstance(candidate, str) and candidate.strip():
            setattr(cfg, name, candidate.strip())

    boot_order = raw.get("boot_order", cfg.boot_order)
    if isinstance(boot_order, int) and not isinstance(boot_order, bool) and boot_order >= 0:
        cfg.boot_order = boot_order

    for name in ("autostart", "acpi", "input_buffering"):
        candidate = raw.get(name)
        if isinstance(candidate, bool):
            setattr(cfg, name, candidate)

    cfg.image_overrides = _normalize_image_overrides(raw.get("image_overrides", {}))

    emulator_factory = raw.get("emulator_factory", cfg.emulator_factory)
    if isinstance(emulator_factory, str):
        cfg.emulator_factory = emulator_factory.strip()
    env_factory = os.getenv(EMULATOR_FACTORY_ENV, "").strip()
    if env_factory:
        cfg.emulator_factory = env_factory

    fit_delay = raw.get("fit_delay_seconds", cfg.fit_delay_seconds)
    if isinstance(fit_delay, (int, float)) and not isinstance(fit_delay, bool) and 0.0 <= fit_delay <= 5.0:
        cfg.fit_delay_seconds = float(fit_delay)

    return cfg


def load_config(path: str | Path | None = None) -> BridgeConfig:
    resolved = get_config_path(path)
    if not resolved.exists():
        return _sanitize({})
    try:
        with resolved.open("rb") as handle:
            raw = tomllib.load(handle)
    except (tomllib.TOMLDecodeError, OSError):
        return _sanitize({})
    if not isinstance(raw, dict):
        return _sanitize({})
    return _sanitize(raw)


def save_config(config: BridgeConfig, path: str | Path | None = None) -> Path:
    resolved = get_config_path(path)
    resolved.parent.mkdir(parents=True, exist_ok=True)

    lines = [
        f"default_os = {_toml_scalar(config.default_os)}",
        f"memory_size_mb = {_toml_scalar(config.memory_size_mb)}",
        f"vga_memory_size_mb = {_toml_scalar(config.vga_memory_size_mb)}",
        f"bios_url = {_toml_scalar(config.bios_url)}",
        f"vga_bios_url = {_toml_scalar(config.vga_bios_url)}",
        f"wasm_path = {_toml_scalar(config.wasm_path)}",
        f"boot_order = {_toml_scalar(config.boot_order)}",
        f"autostart = {_toml_scalar(config.autostart)}",
        f"acpi = {_toml_scalar(config.acpi)}",
        f"output_channel = {_toml_scalar(config.output_channel)}",
        f"input_buffering = {_toml_scalar(config.input_buffering)}",
        f"emulator_factory = {_toml_scalar(config.emulator_factory)}",
        f"fit_delay_seconds = {_toml_scalar(float(config.fit_delay_seconds))}",
    ]

    overrides = _normalize_image_overrides(config.image_overrides)
    if overrides:
        lines.append("")
        lines.append("[image_overrides]")
        for name, url in sorted(overrides.items()):
            lines.append(f"{name} = {_toml_scalar(url)}")

    resolved.write_text("\n".join(lines) + "\n", encoding="utf-8")
    with suppress(OSError):
        resolved.chmod(0o600)
    return resolved
