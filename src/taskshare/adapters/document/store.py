"""JSON document store.

Collections of JSON documents keyed by id, held in memory and optionally
flushed to a single file after every write. Tasks embed their share list,
the way a document database would store them.
"""

from __future__ import annotations

import asyncio
import json
import os
from copy import deepcopy
from json import JSONDecodeError
from pathlib import Path
from typing import Any

from taskshare.exceptions import StorageError
from taskshare.utils.logger import get_logger

logger = get_logger().getChild("document")

Document = dict[str, Any]


class DocumentStore:
    """In-memory document collections with optional file persistence.

    Reads return deep copies so callers never mutate stored documents.
    ``lock`` serialises read-modify-write sequences across coroutines.
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path else None
        self.lock = asyncio.Lock()
        self._collections: dict[str, dict[str, Document]] | None = None

    @property
    def collections(self) -> dict[str, dict[str, Document]]:
        if self._collections is None:
            self._collections = self._load()
        return self._collections

    def collection(self, name: str) -> dict[str, Document]:
        return self.collections.setdefault(name, {})

    def get(self, collection: str, doc_id: str) -> Document | None:
        doc = self.collection(collection).get(doc_id)
        return deepcopy(doc) if doc is not None else None

    def find(self, collection: str, predicate) -> list[Document]:
        return [deepcopy(doc) for doc in self.collection(collection).values() if predicate(doc)]

    def put(self, collection: str, doc_id: str, doc: Document) -> None:
        """Store a document; on a failed flush the previous state is restored."""
        docs = self.collection(collection)
        previous = docs.get(doc_id)
        docs[doc_id] = deepcopy(doc)
        try:
            self.flush()
        except StorageError:
            if previous is None:
                docs.pop(doc_id, None)
            else:
                docs[doc_id] = previous
            raise

    def _load(self) -> dict[str, dict[str, Document]]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, JSONDecodeError) as e:
            raise StorageError(f"Failed to load document store {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Document store {self.path} is not a JSON object")
        return data

    def flush(self) -> None:
        """Write all collections to disk (no-op for in-memory stores)."""
        if self.path is None:
            return
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self.collections, f, indent=2)
            os.replace(tmp_path, self.path)
            self.path.chmod(0o600)
        except OSError as e:
            raise StorageError(f"Failed to write document store {self.path}: {e}") from e
        logger.debug("flushed document store to %s", self.path)
