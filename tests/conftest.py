from __future__ import annotations

import sys
from pathlib import Path

import pytest

from app.config import reset_app_config_cache
from shared import logging_config


def _ensure_project_root_on_path() -> None:
    """Guarantee the repository root is discoverable for absolute imports."""

    root = Path(__file__).resolve().parent.parent
    root_str = str(root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)


_ensure_project_root_on_path()


@pytest.fixture(autouse=True)
def _launcher_env(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory):
    """Keep the managed directory, logs and config away from real user data."""

    sandbox = tmp_path_factory.mktemp("launcher")
    monkeypatch.setenv("FRIDA_LAUNCHER_HOME", str(sandbox / "frida"))
    monkeypatch.setenv("FRIDA_LAUNCHER_LOG_DIR", str(sandbox / "logs"))
    monkeypatch.delenv("FRIDA_LAUNCHER_LOG_FILE", raising=False)
    monkeypatch.delenv("FRIDA_LAUNCHER_CONFIG", raising=False)
    monkeypatch.delenv("FRIDA_LAUNCHER_LOCAL_DIR", raising=False)
    reset_app_config_cache()

    yield

    reset_app_config_cache()
    logging_config._reset_for_tests()
