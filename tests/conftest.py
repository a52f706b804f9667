import os
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.rules.loader import load_rules
from src.rules.models import Rules

PROJECT_ROOT = Path(__file__).parent.parent

# Monday, mid-day UTC
FIXED_NOW = datetime(2025, 3, 10, 12, 0, tzinfo=UTC)


class FakeTimePort:
    """Deterministic clock for date-boundary tests."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self._now = now

    def now_utc(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now

    def advance(self, delta: timedelta) -> None:
        self._now = self._now + delta


@pytest.fixture
def clock() -> FakeTimePort:
    return FakeTimePort()


@pytest.fixture
def test_data_dir(tmp_path):
    return str(tmp_path)


@pytest.fixture
def db_path(test_data_dir) -> str:
    """
    Temporary SQLite database with every migration applied.
    """
    path = os.path.join(test_data_dir, "analytics.db")
    SQLiteMigrator(path, str(PROJECT_ROOT / "migrations")).run_migrations()
    return path


@pytest.fixture
def rules() -> Rules:
    # Load REAL rules from project root
    return load_rules(PROJECT_ROOT / "rules.yaml")
