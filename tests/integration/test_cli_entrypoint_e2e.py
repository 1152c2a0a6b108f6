from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path


def _env_with_pythonpath() -> dict[str, str]:
    env = dict(os.environ)
    env.pop("VMBRIDGE_EMULATOR", None)
    existing = env.get("PYTHONPATH", "")
    src_path = str(Path("src").resolve())
    env["PYTHONPATH"] = f"{src_path}{os.pathsep}{existing}" if existing else src_path
    return env


def test_cli_module_reports_invalid_args_via_exit_code(tmp_path: Path) -> None:
    completed = subprocess.run(
        [sys.executable, "-m", "vmbridge", "--log-level", "chatty", "--log-file", str(tmp_path / "vmb.log")],
        capture_output=True,
        text=True,
        check=False,
        env=_env_with_pythonpath(),
    )

    assert completed.returncode == 2
    assert "--log-level must be one of" in completed.stderr


def test_cli_module_lists_images(tmp_path: Path) -> None:
    completed = subprocess.run(
        [sys.executable, "-m", "vmbridge", "--list-images", "--log-file", str(tmp_path / "vmb.log")],
        capture_output=True,
        text=True,
        check=False,
        env=_env_with_pythonpath(),
    )

    assert completed.returncode == 0
    assert "windows7" in completed.stdout


def test_cli_module_without_emulator_fails_cleanly(tmp_path: Path) -> None:
    completed = subprocess.run(
        [
            sys.executable,
            "-m",
            "vmbridge",
            "--config",
            str(tmp_path / "config.toml"),
            "--log-file",
            str(tmp_path / "vmb.log"),
        ],
        input="",
        capture_output=True,
        text=True,
        check=False,
        env=_env_with_pythonpath(),
    )

    assert completed.returncode == 5
    assert "No emulator configured" in completed.stderr
