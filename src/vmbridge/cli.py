"""Public CLI contract and entrypoint."""

from __future__ import annotations

import argparse
import asyncio
import logging as py_logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from .bridge import VMBridge
from .catalog import OS_IMAGE_CATALOG, os_image_choices
from .config import BridgeConfig, load_config
from .errors import ExitCode, VMBridgeError, user_facing_error
from .logging import configure_logging, default_log_path, emulator_logger_name
from .machine.emulator import load_emulator_factory
from .terminal.widget import StreamTerminal

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")

logger = py_logging.getLogger(__name__)


def _log_level_type(value: str) -> str:
    normalized = value.upper()
    if normalized == "WARNING":
        normalized = "WARN"
    if normalized not in _VALID_LOG_LEVELS:
        accepted = ", ".join(_VALID_LOG_LEVELS)
        raise argparse.ArgumentTypeError(f"--log-level must be one of: {accepted}")
    return normalized


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vmbridge")
    parser.add_argument("--config", type=Path, default=None)
    parser.add_argument("--os", dest="os_image", choices=os_image_choices(), default=None)
    parser.add_argument(
        "--emulator",
        default=None,
        help="Emulator factory as package.module:attribute",
    )
    parser.add_argument(
        "--buffer-input",
        action="store_true",
        help="Keep typed input that no reader is waiting for",
    )
    parser.add_argument("--list-images", action="store_true", help="Print the OS image catalog and exit")
    parser.add_argument(
        "--log-level",
        type=_log_level_type,
        default=None,
        help="Defaults to VMBRIDGE_LOG_LEVEL, then INFO",
    )
    parser.add_argument("--log-file", type=Path, default=None)
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


def resolve_config(namespace: argparse.Namespace) -> BridgeConfig:
    config = load_config(namespace.config)
    if namespace.emulator:
        config.emulator_factory = namespace.emulator.strip()
    if namespace.buffer_input:
        config.input_buffering = True
    if not config.emulator_factory:
        raise VMBridgeError(
            "No emulator configured",
            code=ExitCode.EMULATOR_UNAVAILABLE,
            hint="Set emulator_factory in config.toml or pass --emulator.",
        )
    return config


def format_catalog() -> str:
    width = max(len(item.value) for item in OS_IMAGE_CATALOG)
    return "\n".join(
        f"{image.value.ljust(width)}  {entry.label}  {entry.url}"
        for image, entry in OS_IMAGE_CATALOG.items()
    )


async def run_console(
    bridge: VMBridge,
    terminal: StreamTerminal,
    stdin: TextIO,
    *,
    os_image: str | None = None,
) -> int:
    await bridge.start_machine(os_image)
    if not bridge.is_running():
        raise VMBridgeError(
            "Virtual machine failed to start",
            code=ExitCode.RUNTIME_ERROR,
            hint=bridge.status_record().status_text,
        )
    try:
        while True:
            line = await asyncio.to_thread(stdin.readline)
            if not line:
                break
            terminal.feed(line.replace("\r\n", "\r").replace("\n", "\r"))
    finally:
        await bridge.stop_machine()
    return int(ExitCode.SUCCESS)


def run_cli_flow(
    namespace: argparse.Namespace,
    *,
    stdin: TextIO,
    stdout: TextIO,
) -> int:
    if namespace.list_images:
        print(format_catalog(), file=stdout)
        return int(ExitCode.SUCCESS)

    config = resolve_config(namespace)
    configure_logging(
        level=namespace.log_level,
        log_file=namespace.log_file,
        emulator_loggers=[emulator_logger_name(config.emulator_factory)],
    )
    factory = load_emulator_factory(config.emulator_factory)
    terminal = StreamTerminal(stdout)
    bridge = VMBridge(terminal, config, emulator_factory=factory)
    return asyncio.run(run_console(bridge, terminal, stdin, os_image=namespace.os_image))


def main(
    argv: Sequence[str] | None = None,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> int:
    log_path = default_log_path()
    logger = configure_logging(log_file=log_path)
    parser = build_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code not in (None, 0):
            logger.warning("Argument parsing failed with exit code %s", exc.code)
            return int(ExitCode.INVALID_ARGS)
        return int(ExitCode.SUCCESS)

    if namespace.log_file is not None:
        log_path = namespace.log_file.expanduser()
    namespace.log_file = log_path
    logger = configure_logging(level=namespace.log_level, log_file=log_path)

    try:
        logger.debug("Starting CLI flow")
        return run_cli_flow(namespace, stdin=stdin or sys.stdin, stdout=stdout or sys.stdout)
    except VMBridgeError as exc:
        logger.error(
            "Handled VMBridgeError (code=%s): %s",
            int(exc.code),
            exc.message,
            exc_info=logger.isEnabledFor(py_logging.DEBUG),
        )
        print(user_facing_error(exc.message, hint=exc.hint), file=sys.stderr)
        return int(exc.code)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return int(ExitCode.SUCCESS)
    except Exception:
        logger.exception("Unhandled exception in CLI entrypoint")
        try:
            hint = f"Inspect logs: {log_path}"
            print(user_facing_error("Unexpected runtime failure", hint=hint), file=sys.stderr)
        except Exception:
            pass
        return int(ExitCode.RUNTIME_ERROR)


def run(argv: Sequence[str] | None = None) -> int:
    return main(argv)
