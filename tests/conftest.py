from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _no_factory_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("VMBRIDGE_EMULATOR", raising=False)
    monkeypatch.delenv("VMBRIDGE_LOG_LEVEL", raising=False)


@pytest.hookimpl(trylast=True)
def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    del config
    for item in items:
        path = Path(str(getattr(item, "path", item.fspath)))
        if "integration" in path.parts:
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)
