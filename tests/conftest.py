"""
Global pytest fixtures for the SURL Platform test suite.

Responsibilities:
    - Provide isolated in-memory and CSV record storages
    - Provide an IndexStore and a UrlShortener wired to the in-memory storage
    - Provide a fresh FastAPI TestClient via the app factory for integration tests

Why an app factory?
    Using `create_app(storage=...)` ensures each test gets its own counter and
    medium, eliminating cross-test flakiness.
"""

import pytest
from fastapi.testclient import TestClient

from main import create_app
from surl_platform.manager.index_store import IndexStore
from surl_platform.manager.shortener import UrlShortener
from surl_platform.storage.file_storage import CsvRecordStorage
from surl_platform.storage.storage import MemoryRecordStorage


@pytest.fixture
def storage() -> MemoryRecordStorage:
    """Fresh, empty in-memory record storage."""
    return MemoryRecordStorage()


@pytest.fixture
def csv_path(tmp_path):
    """Path of a not-yet-created CSV data file inside the test's temp dir."""
    return tmp_path / "savedURLs.csv"


@pytest.fixture
def csv_storage(csv_path) -> CsvRecordStorage:
    """Fresh CSV record storage backed by an empty temp file."""
    return CsvRecordStorage(csv_path)


@pytest.fixture
def store(storage: MemoryRecordStorage) -> IndexStore:
    """IndexStore over the in-memory storage fixture."""
    return IndexStore(storage)


@pytest.fixture
def shortener(store: IndexStore) -> UrlShortener:
    """UrlShortener with the default codec and URL validation off."""
    return UrlShortener(store, validate_urls=False)


@pytest.fixture
def client(storage: MemoryRecordStorage) -> TestClient:
    """
    Provide a fresh TestClient with a new app instance.

    Redirects are not followed so tests can assert on the 302 itself.
    """
    app = create_app(storage=storage)
    return TestClient(app, follow_redirects=False)
