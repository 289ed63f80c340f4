from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Callable, List, Optional

import pytest


# Ensure the repository root is importable during pytest collection.
REPO_ROOT = Path(__file__).resolve().parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


class FakeSleep:
    """
    Stand-in for time.sleep that records intervals and runs scripted actions.

    actions[i] runs on the (i+1)-th call; calls past the script only record.
    """

    def __init__(self, actions: Optional[List[Callable[[], None]]] = None):
        self.actions = list(actions or [])
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        idx = len(self.calls) - 1
        if idx < len(self.actions):
            self.actions[idx]()


@pytest.fixture(autouse=True)
def isolated_home(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """
    Point HOME at a temp dir and drop FILEWATCHER_* variables so tests never
    touch the real ~/filewatcher or a real config file.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for key in list(os.environ):
        if key.startswith("FILEWATCHER_"):
            monkeypatch.delenv(key, raising=False)
    return home


@pytest.fixture
def lock_dir(tmp_path: Path) -> Path:
    return tmp_path / "locks"


@pytest.fixture
def watch_dir(tmp_path: Path) -> Path:
    d = tmp_path / "x"
    d.mkdir()
    return d


@pytest.fixture
def fake_sleep_factory() -> Callable[..., FakeSleep]:
    def _make(*actions: Callable[[], None]) -> FakeSleep:
        return FakeSleep(list(actions))
    return _make
