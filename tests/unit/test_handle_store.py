"""Tests for the knowledge base handle record and its cache."""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from ragchat.knowledge.handle_store import CachedHandle, HandleStore
from ragchat.models.knowledge import KnowledgeBaseHandle


class CountingHandleStore(HandleStore):
    """HandleStore that counts reads."""

    def __init__(self, path: Path) -> None:
        super().__init__(path)
        self.loads = 0

    def load(self) -> KnowledgeBaseHandle | None:
        self.loads += 1
        return super().load()


def _handle(store_id: str = "vs_abc") -> KnowledgeBaseHandle:
    now = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    return KnowledgeBaseHandle(
        vector_store_id=store_id, name="Manual", created_at=now, last_updated=now
    )


def test_missing_file_means_no_handle(tmp_path: Path) -> None:
    """No record on disk is not an error."""
    assert HandleStore(tmp_path / "vectorstore.config.json").load() is None


def test_save_writes_camel_case_record(tmp_path: Path) -> None:
    """The record uses the camelCase keys and loads back."""
    path = tmp_path / "vectorstore.config.json"
    store = HandleStore(path)

    store.save(_handle())

    raw = json.loads(path.read_text())
    assert set(raw) == {"vectorStoreId", "name", "createdAt", "lastUpdated"}
    assert raw["vectorStoreId"] == "vs_abc"
    assert store.load() == _handle()
    assert list(tmp_path.iterdir()) == [path]


def test_reads_record_written_by_other_tools(tmp_path: Path) -> None:
    """A hand-written record with camelCase keys is accepted."""
    path = tmp_path / "vectorstore.config.json"
    path.write_text(
        json.dumps(
            {
                "vectorStoreId": "vs_external",
                "name": "Knowledge Base",
                "createdAt": "2025-01-01T00:00:00Z",
                "lastUpdated": "2025-01-02T00:00:00Z",
            }
        )
    )

    handle = HandleStore(path).load()

    assert handle is not None
    assert handle.vector_store_id == "vs_external"


def test_unreadable_record_treated_as_absent(tmp_path: Path) -> None:
    """Corrupt JSON is logged and treated as no handle."""
    path = tmp_path / "vectorstore.config.json"
    path.write_text("{not json")

    assert HandleStore(path).load() is None


def test_remove(tmp_path: Path) -> None:
    """remove() reports whether a record existed."""
    store = HandleStore(tmp_path / "vectorstore.config.json")
    store.save(_handle())

    assert store.remove() is True
    assert store.remove() is False
    assert store.load() is None


@pytest.mark.asyncio
async def test_checked_flag_is_sticky_when_nothing_found(tmp_path: Path) -> None:
    """A miss is cached too: storage is read once until refresh()."""
    store = CountingHandleStore(tmp_path / "vectorstore.config.json")
    cache = CachedHandle(store)

    assert await cache.get() is None
    store.save(_handle())
    assert await cache.get() is None
    assert store.loads == 1
    assert cache.checked is True

    assert await cache.refresh() == _handle()
    assert await cache.get() == _handle()
    assert store.loads == 2


@pytest.mark.asyncio
async def test_set_and_clear_update_cache_and_disk(tmp_path: Path) -> None:
    """set() and clear() keep memory and disk in step without re-reading."""
    store = CountingHandleStore(tmp_path / "vectorstore.config.json")
    cache = CachedHandle(store)

    await cache.set(_handle("vs_new"))
    assert (await cache.get()).vector_store_id == "vs_new"
    assert store.load() == _handle("vs_new")

    await cache.clear()
    assert await cache.get() is None
    assert not store.path.exists()
