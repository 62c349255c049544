from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from tests.e2e.harness import LauncherHarness, create_launcher_harness


@pytest.fixture
def launcher(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[LauncherHarness]:
    harness = create_launcher_harness(monkeypatch, tmp_path)
    yield harness
    harness.destroy()
