"""
Unit tests for the staging store.
"""
import asyncio

import pytest

from core.exceptions import DataNotFoundError, StorageError
from services.staging import StagingStore


@pytest.fixture
def store(tmp_path):
    return StagingStore(base_path=str(tmp_path), retention_seconds=0)


def test_stage_writes_unique_files(store, tmp_path):
    """Test each staged file gets its own name."""
    first = store.stage(b"one")
    second = store.stage(b"two")
    assert first != second
    assert first.parent == tmp_path
    assert first.read_bytes() == b"one"
    assert first.suffix == ".xlsx"


def test_stage_failure(tmp_path):
    """Test unwritable storage raises StorageError."""
    store = StagingStore(base_path=str(tmp_path / "missing"))
    store.base_path = tmp_path / "blocker"
    store.base_path.write_text("file, not directory")
    with pytest.raises(StorageError):
        store.stage(b"data")


def test_resolve(store):
    """Test staged files resolve by name."""
    path = store.stage(b"data")
    assert store.resolve(path.name) == path.resolve()


@pytest.mark.parametrize("filename", [
    "../secret.xlsx",
    "..secret.xlsx",
    "nested/file.xlsx",
    "nested\\file.xlsx",
    "report.csv",
    "",
])
def test_resolve_rejects_invalid_names(store, filename):
    """Test traversal and non-workbook names are rejected."""
    with pytest.raises(ValueError):
        store.resolve(filename)


def test_resolve_missing(store):
    """Test unknown names raise DataNotFoundError."""
    with pytest.raises(DataNotFoundError):
        store.resolve("cash_flow_missing.xlsx")


def test_delete_later_removes_file(store):
    """Test delayed deletion removes the file."""
    path = store.stage(b"data")
    asyncio.run(store.delete_later(path, delay=0))
    assert not path.exists()


def test_delete_later_ignores_missing_file(store, tmp_path):
    """Test deleting an already removed file does not raise."""
    asyncio.run(store.delete_later(tmp_path / "gone.xlsx", delay=0))


def test_schedule_cleanup_runs_detached(store):
    """Test scheduled cleanup runs without the caller awaiting it."""
    path = store.stage(b"data")

    async def scenario():
        store.schedule_cleanup(path)
        assert path.exists()
        # Let the detached task run
        for _ in range(5):
            await asyncio.sleep(0)
        return path.exists()

    assert asyncio.run(scenario()) is False
