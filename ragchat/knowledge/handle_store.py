"""Durable knowledge base handle record and its in-memory cache."""

import asyncio
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from ragchat.models.knowledge import KnowledgeBaseHandle

logger = logging.getLogger(__name__)


class HandleStore:
    """Reads and writes the handle JSON record at a well-known path."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> KnowledgeBaseHandle | None:
        """Read the record.

        Returns:
            The handle, or None when the file is missing or unreadable
        """
        if not self.path.exists():
            return None

        try:
            raw = self.path.read_text(encoding="utf-8")
            return KnowledgeBaseHandle.model_validate_json(raw)
        except (OSError, ValidationError) as e:
            logger.error(f"Could not read knowledge base record {self.path}: {e}")
            return None

    def save(self, handle: KnowledgeBaseHandle) -> None:
        """Write the record atomically (temp file + rename)."""
        payload = handle.model_dump_json(by_alias=True, indent=2)
        directory = self.path.parent if str(self.path.parent) else Path(".")
        directory.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def remove(self) -> bool:
        """Delete the record. Returns False if it did not exist."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        return True


class CachedHandle:
    """Cached handle value with explicit invalidation.

    The first get() reads the record and marks the cache as checked, even when
    no handle was found; later calls return the cached value until refresh().
    """

    def __init__(self, store: HandleStore) -> None:
        self._store = store
        self._handle: KnowledgeBaseHandle | None = None
        self._checked = False

    @property
    def checked(self) -> bool:
        return self._checked

    async def get(self) -> KnowledgeBaseHandle | None:
        if not self._checked:
            await self.refresh()
        return self._handle

    async def refresh(self) -> KnowledgeBaseHandle | None:
        """Force a re-read of the durable record."""
        self._handle = await asyncio.to_thread(self._store.load)
        self._checked = True
        if self._handle is not None:
            logger.info(f"Knowledge base handle loaded: {self._handle.vector_store_id}")
        else:
            logger.info("No knowledge base handle configured")
        return self._handle

    async def set(self, handle: KnowledgeBaseHandle) -> None:
        await asyncio.to_thread(self._store.save, handle)
        self._handle = handle
        self._checked = True

    async def clear(self) -> None:
        await asyncio.to_thread(self._store.remove)
        self._handle = None
        self._checked = True
