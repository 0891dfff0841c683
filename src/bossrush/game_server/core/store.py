"""Key-value document store with atomic primitives.

Boss HP and player records live here. Correctness under concurrency comes
from the primitives themselves (conditional decrement, compare-and-set),
never from a caller reading then writing.
"""

from __future__ import annotations

import asyncio
import copy
import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from .errors import PersistenceError

logger = logging.getLogger("bossrush.store")


class DocumentStore(Protocol):
    """Persistence collaborator consumed by the combat engine."""

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return a copy of the document or None."""
        ...

    async def upsert_if_absent(self, key: str, seed: Dict[str, Any]) -> Dict[str, Any]:
        """Insert ``seed`` unless ``key`` exists; return the stored document."""
        ...

    async def atomic_decrement_if_positive(
        self, key: str, field: str, amount: int
    ) -> Optional[int]:
        """Decrement ``field`` by ``amount`` only if it is currently positive.

        Returns the new value (which may be zero or negative), or None when
        the document is missing or the field was not positive.
        """
        ...

    async def compare_and_set(
        self, key: str, expected: Dict[str, Any], update: Dict[str, Any]
    ) -> bool:
        """Replace the document with ``update`` only if it equals ``expected``."""
        ...


class MemoryDocumentStore:
    """In-process store. Every primitive runs under one asyncio lock."""

    def __init__(self) -> None:
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        async with self._lock:
            doc = self._docs.get(key)
            return copy.deepcopy(doc) if doc is not None else None

    async def upsert_if_absent(self, key: str, seed: Dict[str, Any]) -> Dict[str, Any]:
        async with self._lock:
            doc = self._docs.get(key)
            if doc is None:
                doc = copy.deepcopy(seed)
                self._persist(key, doc)
                self._docs[key] = doc
            return copy.deepcopy(doc)

    async def atomic_decrement_if_positive(
        self, key: str, field: str, amount: int
    ) -> Optional[int]:
        async with self._lock:
            doc = self._docs.get(key)
            if doc is None:
                return None
            current = doc.get(field)
            if not isinstance(current, int) or current <= 0:
                return None
            new_value = current - amount
            updated = dict(doc)
            updated[field] = new_value
            self._persist(key, updated)
            self._docs[key] = updated
            return new_value

    async def compare_and_set(
        self, key: str, expected: Dict[str, Any], update: Dict[str, Any]
    ) -> bool:
        async with self._lock:
            doc = self._docs.get(key)
            if doc != expected:
                return False
            updated = copy.deepcopy(update)
            self._persist(key, updated)
            self._docs[key] = updated
            return True

    def keys(self) -> list[str]:
        return list(self._docs)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _persist(self, key: str, doc: Dict[str, Any]) -> None:
        """Hook for durable subclasses; called before the in-memory swap."""


class JsonFileDocumentStore(MemoryDocumentStore):
    """File-backed store: one JSON document per key under ``data_dir``.

    Writes go to a temp file that replaces the target, so a crash never
    leaves a half-written document. A failed write raises PersistenceError
    and leaves the in-memory copy untouched.
    """

    def __init__(self, data_dir: Path) -> None:
        super().__init__()
        self._dir = data_dir
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PersistenceError(f"Cannot create store directory {data_dir}: {exc}") from exc
        self._load()

    def get_file_path(self, key: str) -> Path:
        # Readable prefix plus a digest of the exact key, so keys that
        # sanitize alike still map to distinct files
        safe_key = "".join(c if c.isalnum() or c in "_-" else "_" for c in key)[:64]
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._dir / f"{safe_key}-{digest}.json"

    def _load(self) -> None:
        for path in sorted(self._dir.glob("*.json")):
            try:
                with path.open("r", encoding="utf-8") as f:
                    record = json.load(f)
            except (OSError, json.JSONDecodeError) as exc:
                logger.warning("Skipping unreadable document %s: %s", path, exc)
                continue
            key = record.get("key") if isinstance(record, dict) else None
            doc = record.get("doc") if isinstance(record, dict) else None
            if not isinstance(key, str) or not isinstance(doc, dict):
                logger.warning("Skipping malformed document %s", path)
                continue
            self._docs[key] = doc
        logger.info("Loaded %d documents from %s", len(self._docs), self._dir)

    def _persist(self, key: str, doc: Dict[str, Any]) -> None:
        path = self.get_file_path(key)
        tmp = path.with_suffix(".tmp")
        try:
            tmp.write_text(json.dumps({"key": key, "doc": doc}, separators=(",", ":")), encoding="utf-8")
            tmp.replace(path)
        except (OSError, TypeError) as exc:
            raise PersistenceError(f"Failed to write document '{key}': {exc}") from exc


__all__ = ["DocumentStore", "MemoryDocumentStore", "JsonFileDocumentStore"]
