"""Document storage backend on JSONL files.

Each collection is one ``<collection>.jsonl`` file holding one JSON document
per line. Collections are loaded into memory on first use and reloaded when
the file changes on disk. Every write rewrites the file atomically (write to
a temp file, then rename).
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import tempfile
from pathlib import Path

import aiofiles

from roster.storage.base import (
    FindOptions,
    Predicate,
    Record,
    matches,
    sort_and_page,
)

logger = logging.getLogger(__name__)


class _Collection:
    """In-memory cache of one collection file."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.documents: dict[str, Record] | None = None
        self.mtime: float | None = None
        self.lock = asyncio.Lock()

    def current_mtime(self) -> float | None:
        if not self.path.exists():
            return None
        return self.path.stat().st_mtime

    async def load(self) -> dict[str, Record]:
        """Load documents from disk if the cache is stale.

        Malformed lines are skipped with a warning.
        """
        mtime = self.current_mtime()
        if self.documents is not None and mtime == self.mtime:
            return self.documents

        documents: dict[str, Record] = {}
        error_count = 0
        if mtime is not None:
            async with aiofiles.open(self.path, encoding="utf-8") as f:
                async for line in f:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        data = json.loads(line)
                        documents[data["id"]] = data
                    except (json.JSONDecodeError, KeyError, TypeError) as e:
                        error_count += 1
                        logger.warning(
                            "malformed_document_line",
                            extra={"error.message": str(e)},
                        )

        if error_count > 0:
            logger.warning(
                "document_collection_corrupted",
                extra={"file.name": self.path.name, "error_count": error_count},
            )

        self.documents = documents
        self.mtime = mtime
        return documents

    async def rewrite(self, documents: dict[str, Record]) -> None:
        """Atomically rewrite the collection file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.stem}_",
            suffix=".tmp",
        )
        try:
            async with aiofiles.open(temp_fd, "w", encoding="utf-8") as f:
                for document in documents.values():
                    line = json.dumps(
                        document, ensure_ascii=False, separators=(",", ":")
                    )
                    await f.write(line + "\n")
            Path(temp_path).replace(self.path)
        except Exception:
            Path(temp_path).unlink(missing_ok=True)
            raise

        self.documents = documents
        self.mtime = self.current_mtime()


class DocumentStorage:
    """Storage port backed by JSONL document collections."""

    def __init__(self, root: Path) -> None:
        self._root = root
        self._collections: dict[str, _Collection] = {}

    @property
    def root(self) -> Path:
        return self._root

    def _collection(self, name: str) -> _Collection:
        if not name or "/" in name or name.startswith("."):
            raise ValueError(f"Invalid collection name '{name}'")
        if name not in self._collections:
            self._collections[name] = _Collection(self._root / f"{name}.jsonl")
        return self._collections[name]

    async def initialize(self) -> None:
        self._root.mkdir(parents=True, exist_ok=True)

    async def get(self, collection: str, record_id: str) -> Record | None:
        documents = await self._collection(collection).load()
        document = documents.get(record_id)
        return copy.deepcopy(document) if document is not None else None

    async def put(self, collection: str, record_id: str, record: Record) -> None:
        coll = self._collection(collection)
        async with coll.lock:
            documents = dict(await coll.load())
            documents[record_id] = copy.deepcopy({**record, "id": record_id})
            await coll.rewrite(documents)

    async def delete(self, collection: str, record_id: str) -> bool:
        coll = self._collection(collection)
        async with coll.lock:
            documents = dict(await coll.load())
            if documents.pop(record_id, None) is None:
                return False
            await coll.rewrite(documents)
        return True

    async def find(
        self,
        collection: str,
        predicate: Predicate,
        options: FindOptions | None = None,
    ) -> list[Record]:
        options = options or FindOptions()
        documents = await self._collection(collection).load()
        matched = [d for d in documents.values() if matches(d, predicate)]
        if options.sort is None:
            matched.sort(key=lambda d: d["id"])
        return [copy.deepcopy(d) for d in sort_and_page(matched, options)]

    async def find_one(self, collection: str, predicate: Predicate) -> Record | None:
        documents = await self._collection(collection).load()
        for record_id in sorted(documents):
            if matches(documents[record_id], predicate):
                return copy.deepcopy(documents[record_id])
        return None

    async def close(self) -> None:
        self._collections.clear()
