# tests/conftest.py

"""Shared pytest fixtures for all storefront tests."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest

from storefront.config.settings import Settings


@pytest.fixture(autouse=True)
def instant_retries() -> Generator[None, None, None]:
    """Zero the gateway backoff so retry loops run instantly."""
    with patch.object(Settings, "RETRY_DELAY", 0.0):
        yield


@pytest.fixture(autouse=True)
def isolated_logs_dir(tmp_path: Path) -> Generator[None, None, None]:
    """Write per-run log files under a throwaway ``logs/`` directory."""
    with patch.object(Settings, "LOGS_DIR", tmp_path / "logs"):
        yield
