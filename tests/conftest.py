"""
Pytest configuration and fixtures for Recruitcord tests.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from recruitcord.storage.id_generator import IdGenerator  # noqa: E402
from recruitcord.storage.json_store import JsonRecordStore  # noqa: E402
from recruitcord.storage.sqlite_store import SqliteRecordStore  # noqa: E402


class StepClock:
    """Clock that moves one second forward on every call."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(seconds=1)
        return current


def make_store(backend: str, tmp_path: Path):
    if backend == "json":
        return JsonRecordStore(tmp_path / "data", ids=IdGenerator())
    return SqliteRecordStore(tmp_path / "recruitcord.db", ids=IdGenerator())


@pytest_asyncio.fixture(params=["json", "sqlite"])
async def store(request, tmp_path):
    """An initialised record store, once per backend."""
    record_store = make_store(request.param, tmp_path)
    await record_store.initialize()
    yield record_store
    await record_store.close()


@pytest_asyncio.fixture
async def json_store(tmp_path):
    record_store = make_store("json", tmp_path)
    await record_store.initialize()
    yield record_store
    await record_store.close()


@pytest_asyncio.fixture
async def sqlite_store(tmp_path):
    record_store = make_store("sqlite", tmp_path)
    await record_store.initialize()
    yield record_store
    await record_store.close()


@pytest.fixture
def clock():
    return StepClock()
