"""Shared pytest fixtures for cosmos_infomaniak tests."""

from __future__ import annotations

import sys
from pathlib import Path

# Add src to sys.path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path.resolve()) not in sys.path:
    sys.path.insert(0, str(src_path.resolve()))

import pytest

from cosmos_infomaniak import console
from cosmos_infomaniak.config import Settings
from tests.mocks import CREDENTIAL_ENV, FakeRunner


@pytest.fixture(autouse=True)
def _plain_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep console lines unwrapped so assertions can match whole messages."""
    monkeypatch.setattr(console.CONSOLE, "soft_wrap", True)
    monkeypatch.setattr(console.CONSOLE, "_color_system", None)
    console.set_debug(False)


@pytest.fixture
def fake_runner() -> FakeRunner:
    """Recording runner standing in for every subprocess call."""
    return FakeRunner()


@pytest.fixture
def settings() -> Settings:
    return Settings.from_environ(CREDENTIAL_ENV)


@pytest.fixture
def image_file(tmp_path: Path) -> Path:
    """A 2 MiB sparse file named like a qcow2 image, above the size warning."""
    path = tmp_path / "myvm.qcow2"
    with path.open("wb") as f:
        f.truncate(2 * 1048576)
    return path
