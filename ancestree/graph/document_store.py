"""Schemaless document store keyed by (collection, id).

Two backends share the same contract:
- MemoryDocumentStore: dict-backed, used in tests and for local runs
- SQLiteDocumentStore: JSON text per row, one table for all collections

Writes are last-write-wins. `merge=True` merges nested dicts recursively and
replaces every other value (lists included). None values are stripped before
writing because the store never holds "undefined" fields.
"""

import copy
import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Optional, Protocol

from ancestree.config import settings
from ancestree.errors import StoreError

logger = logging.getLogger(__name__)


def sanitize(value: Any) -> Any:
    """Recursively drop None-valued keys from dicts (lists are walked too)."""
    if isinstance(value, list):
        return [sanitize(v) for v in value]
    if isinstance(value, dict):
        return {k: sanitize(v) for k, v in value.items() if v is not None}
    return value


def merge_documents(base: dict, update: dict) -> dict:
    """Merge `update` into a copy of `base`."""
    merged = copy.deepcopy(base)
    for key, value in update.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_documents(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class DocumentStore(Protocol):
    """Contract every backend implements."""

    def get(self, collection: str, doc_id: str) -> Optional[dict]: ...

    def set(self, collection: str, doc_id: str, document: dict, merge: bool = False) -> None: ...

    def list_documents(self, collection: str) -> list[tuple[str, dict]]: ...

    def delete(self, collection: str, doc_id: str) -> bool: ...


class MemoryDocumentStore:
    """In-process store."""

    def __init__(self):
        self._data: dict[str, dict[str, dict]] = {}

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        doc = self._data.get(collection, {}).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def set(self, collection: str, doc_id: str, document: dict, merge: bool = False) -> None:
        clean = sanitize(document)
        docs = self._data.setdefault(collection, {})
        if merge and doc_id in docs:
            docs[doc_id] = merge_documents(docs[doc_id], clean)
        else:
            docs[doc_id] = copy.deepcopy(clean)

    def list_documents(self, collection: str) -> list[tuple[str, dict]]:
        return [(k, copy.deepcopy(v)) for k, v in self._data.get(collection, {}).items()]

    def delete(self, collection: str, doc_id: str) -> bool:
        return self._data.get(collection, {}).pop(doc_id, None) is not None


class SQLiteDocumentStore:
    """Store documents as JSON text in SQLite."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = db_path or settings.store.sqlite_path
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        """Initialize database schema."""
        with sqlite3.connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    collection TEXT NOT NULL,
                    doc_id TEXT NOT NULL,
                    body TEXT NOT NULL,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    PRIMARY KEY (collection, doc_id)
                )
            """)

    def _connect(self) -> sqlite3.Connection:
        try:
            return sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open document store: {e}") from e

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT body FROM documents WHERE collection = ? AND doc_id = ?",
                    (collection, doc_id)
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Read failed for {collection}/{doc_id}: {e}") from e
        return json.loads(row[0]) if row else None

    def set(self, collection: str, doc_id: str, document: dict, merge: bool = False) -> None:
        clean = sanitize(document)
        try:
            with self._connect() as conn:
                if merge:
                    row = conn.execute(
                        "SELECT body FROM documents WHERE collection = ? AND doc_id = ?",
                        (collection, doc_id)
                    ).fetchone()
                    if row:
                        clean = merge_documents(json.loads(row[0]), clean)
                conn.execute("""
                    INSERT INTO documents (collection, doc_id, body, updated_at)
                    VALUES (?, ?, ?, CURRENT_TIMESTAMP)
                    ON CONFLICT(collection, doc_id)
                    DO UPDATE SET body = excluded.body, updated_at = excluded.updated_at
                """, (collection, doc_id, json.dumps(clean)))
        except sqlite3.Error as e:
            raise StoreError(f"Write failed for {collection}/{doc_id}: {e}") from e
        logger.debug("Wrote %s/%s (merge=%s)", collection, doc_id, merge)

    def list_documents(self, collection: str) -> list[tuple[str, dict]]:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT doc_id, body FROM documents WHERE collection = ? ORDER BY doc_id",
                    (collection,)
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"List failed for {collection}: {e}") from e
        return [(row[0], json.loads(row[1])) for row in rows]

    def delete(self, collection: str, doc_id: str) -> bool:
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
                    (collection, doc_id)
                )
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise StoreError(f"Delete failed for {collection}/{doc_id}: {e}") from e


def create_store(backend: Optional[str] = None, sqlite_path: Optional[str] = None) -> DocumentStore:
    """Build the store configured in settings."""
    backend = backend or settings.store.backend
    if backend == "memory":
        return MemoryDocumentStore()
    if backend == "sqlite":
        return SQLiteDocumentStore(sqlite_path)
    raise ValueError(f"Unknown store backend: {backend}")
