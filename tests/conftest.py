from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

import pytest

from python_preferences import DiskPreferenceStore
from python_preferences._settings import CONDA_ROOT_ENV, PREFERENCES_FILE_ENV, TIMEOUT_ENV

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def _isolate_settings(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> None:
    root = tmp_path_factory.mktemp("python-preferences")
    monkeypatch.setenv(PREFERENCES_FILE_ENV, str(root / "preferences.json"))
    monkeypatch.setenv(CONDA_ROOT_ENV, str(root / "conda"))
    monkeypatch.delenv(TIMEOUT_ENV, raising=False)


@pytest.fixture
def store(tmp_path: Path) -> DiskPreferenceStore:
    return DiskPreferenceStore(tmp_path / "prefs" / "preferences.json")


@pytest.fixture
def make_exe(tmp_path: Path):  # noqa: ANN201
    def _make(path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("#!/bin/sh\n", encoding="utf-8")
        path.chmod(0o755)
        return path

    return _make


@pytest.fixture
def empty_path_env(tmp_path: Path) -> dict[str, str]:
    empty = tmp_path / "empty-bin"
    empty.mkdir()
    env = {"PATH": str(empty)}
    if sys.platform == "win32":  # pragma: win32 cover
        env["PATHEXT"] = os.environ.get("PATHEXT", ".EXE")
    return env
