"""Pytest configuration and shared fixtures for quickdoc tests."""

import tempfile
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Generator

import pytest
import pytest_asyncio

from quickdoc.backends.sqlite import SQLiteDocumentBackend
from quickdoc.config.settings import Settings
from quickdoc.database.core import Database
from tests.utils import FakeClock


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def test_settings(temp_dir: Path) -> Settings:
    """Create test settings pointing at a temporary SQLite file."""
    return Settings(
        DEBUG=True,
        LOG_LEVEL="DEBUG",
        DATABASE_URL=f"sqlite:///{temp_dir / 'test_quickdoc.db'}",
        COLLECTION_NAME="JSON",
        CHILD_COLLECTION_SUFFIX="_child",
        SHARE_CONNECTION_FROM_PARENT=True,
        REDIS_KEY_PREFIX="quickdoc_test",
    )


@pytest.fixture
def clock() -> FakeClock:
    """A controllable clock starting at a fixed instant."""
    return FakeClock()


@pytest_asyncio.fixture
async def sqlite_backend(test_settings: Settings) -> AsyncGenerator[SQLiteDocumentBackend, None]:
    """Create and connect a SQLite backend."""
    backend = SQLiteDocumentBackend(test_settings.DATABASE_URL, test_settings)
    await backend.connect()
    yield backend
    await backend.close()


@pytest_asyncio.fixture
async def database(test_settings: Settings, clock: FakeClock) -> AsyncGenerator[Database, None]:
    """Create and connect a database on the default collection."""
    db = Database(settings=test_settings, clock=clock)
    await db.connect()
    yield db
    await db.close()


@pytest.fixture
def sample_profile() -> Dict[str, Any]:
    """Sample nested payload for testing."""
    return {
        "name": "Ada",
        "preferences": {
            "theme": "dark",
            "language": "en",
            "notifications": True
        },
        "tags": ["admin", "beta"],
        "visits": 3,
    }
