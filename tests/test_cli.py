from __future__ import annotations

import argparse
import io
import logging as py_logging
from pathlib import Path

import pytest

from vmbridge import cli
from vmbridge.errors import ExitCode, VMBridgeError


def _run(argv: list[str], tmp_path: Path, stdin: str = "") -> tuple[int, str]:
    stdout = io.StringIO()
    code = cli.main(
        [*argv, "--log-file", str(tmp_path / "vmbridge.log"), "--config", str(tmp_path / "config.toml")],
        stdin=io.StringIO(stdin),
        stdout=stdout,
    )
    return code, stdout.getvalue()


def test_parse_args_defaults() -> None:
    namespace = cli.parse_args([])

    assert namespace.os_image is None
    assert namespace.emulator is None
    assert namespace.buffer_input is False
    assert namespace.list_images is False
    assert namespace.log_level is None


def test_log_level_accepts_warning_alias() -> None:
    assert cli.parse_args(["--log-level", "warning"]).log_level == "WARN"


def test_invalid_os_is_an_argument_error(tmp_path: Path) -> None:
    code, _ = _run(["--os", "beos"], tmp_path)

    assert code == int(ExitCode.INVALID_ARGS)


def test_list_images_prints_catalog(tmp_path: Path) -> None:
    code, output = _run(["--list-images"], tmp_path)

    assert code == int(ExitCode.SUCCESS)
    lines = output.splitlines()
    assert len(lines) == 6
    assert lines[0].startswith("linux")
    assert "Damn Small Linux" in output


def test_missing_emulator_exits_with_unavailable_code(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    code, _ = _run([], tmp_path)

    assert code == int(ExitCode.EMULATOR_UNAVAILABLE)
    assert "Error: No emulator configured." in capsys.readouterr().err


def test_unloadable_emulator_exits_with_unavailable_code(tmp_path: Path) -> None:
    code, _ = _run(["--emulator", "vmbridge_no_such_emulator:create"], tmp_path)

    assert code == int(ExitCode.EMULATOR_UNAVAILABLE)


def test_resolve_config_applies_flag_overrides(tmp_path: Path) -> None:
    namespace = argparse.Namespace(
        config=tmp_path / "config.toml",
        emulator=" fakes:FakeEmulator ",
        buffer_input=True,
    )

    config = cli.resolve_config(namespace)

    assert config.emulator_factory == "fakes:FakeEmulator"
    assert config.input_buffering is True


def test_resolve_config_requires_emulator(tmp_path: Path) -> None:
    namespace = argparse.Namespace(config=tmp_path / "config.toml", emulator=None, buffer_input=False)

    with pytest.raises(VMBridgeError):
        cli.resolve_config(namespace)


def test_console_session_feeds_stdin_to_machine(tmp_path: Path) -> None:
    code, output = _run(["--emulator", "fakes:FakeEmulator", "--os", "freedos"], tmp_path, stdin="dir\n")

    assert code == int(ExitCode.SUCCESS)
    assert "OS: FREEDOS" in output
    assert "dir\r" in output
    assert "Virtual Machine Stopped" in output
    assert py_logging.getLogger("fakes").handlers == py_logging.getLogger("vmbridge").handlers


def test_factory_failure_is_reported_as_runtime_error(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    code, output = _run(["--emulator", "fakes:broken_emulator"], tmp_path)

    assert code == int(ExitCode.RUNTIME_ERROR)
    assert "Failed to start VM" in output
    assert "Virtual machine failed to start" in capsys.readouterr().err
