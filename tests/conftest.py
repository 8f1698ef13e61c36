from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

# Ensure src/ is importable when the package is not installed.
ROOT = TESTS_DIR.parent
SRC = str(ROOT / "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from fixtures import RecordingLibrary  # noqa: E402

_ENV_KEYS = (
    "MDRENDER_CONFIG",
    "MDRENDER_OPTIONS",
    "MDRENDER_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolated_workspace(tmp_path: Path, monkeypatch) -> Iterator[Path]:
    """Point the workspace at a per-test directory and clear overrides."""

    home = tmp_path / "mdrender-home"
    monkeypatch.setenv("MDRENDER_HOME", str(home))
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    yield home

    logger = logging.getLogger("mdrender")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


@pytest.fixture
def library() -> RecordingLibrary:
    """A fresh recording stand-in for the document library."""

    return RecordingLibrary()
