from __future__ import annotations

import logging
import os
import random
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

# Ensure src/ is importable when the package is not installed
ROOT = TESTS_DIR.parent
for extra in (ROOT, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import WorkspaceBuilder  # noqa: E402

from study_companion.core.store import DocumentStore  # noqa: E402


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceBuilder:
    """Provide a helper bound to pytest's per-test tmp directory."""

    return WorkspaceBuilder(tmp_path / "files")


@pytest.fixture
def data_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the workspace at a tmp dir and isolate STUDY_COMPANION_* env."""

    home = tmp_path / "data-home"
    for key in list(os.environ):
        if key.startswith("STUDY_COMPANION_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("STUDY_COMPANION_DATA_HOME", str(home))
    # Keep .env discovery inside the test sandbox.
    monkeypatch.chdir(tmp_path)
    return home


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source for selection tests."""

    return random.Random(1234)


@pytest.fixture
def store(tmp_path: Path) -> DocumentStore:
    return DocumentStore(tmp_path / "store")


@pytest.fixture(autouse=True)
def _close_study_loggers() -> Iterator[None]:
    yield
    manager = logging.Logger.manager
    for name, logger in list(manager.loggerDict.items()):
        if not name.startswith("study_companion"):
            continue
        if not isinstance(logger, logging.Logger):
            continue
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
