"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from fakes import FakeSource, FakeTarget
from fastapi.testclient import TestClient

from elastic_sync.app import create_app
from elastic_sync.config import Settings, SyncOptions
from elastic_sync.sync import SyncOrchestrator


@pytest.fixture
def settings() -> Settings:
    """Create test settings."""
    return Settings(
        mongodb_url="mongodb://localhost:27017/app?replicaSet=rs0",
        elastic_url="http://localhost:9200",
        index_prefix="sync",
        debug=True,
    )


@pytest.fixture
def options() -> SyncOptions:
    """Create quiet-policy sync options with the test prefix."""
    return SyncOptions(prefix="sync", chunk_size=2)


@pytest.fixture
def target() -> FakeTarget:
    """Create an empty in-memory index store."""
    return FakeTarget()


@pytest.fixture
def source() -> FakeSource:
    """Create a source holding the orders collection."""
    return FakeSource(
        collections={
            "orders": [
                {"_id": "o1", "status": "new", "total": 10},
                {"_id": "o2", "status": "new", "total": 20},
                {"_id": "o3", "status": "paid", "total": 30},
            ],
        }
    )


@pytest.fixture
def orchestrator(options: SyncOptions, source: FakeSource, target: FakeTarget) -> SyncOrchestrator:
    """Create an orchestrator over connected in-memory stores."""
    return SyncOrchestrator(options, source=source, target=target)


@pytest.fixture
def client(settings: Settings, orchestrator: SyncOrchestrator) -> TestClient:
    """Create test client with configured app."""
    app = create_app(settings, orchestrator=orchestrator)
    return TestClient(app)
