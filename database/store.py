"""Keyed document store interface and its in-memory implementation.

The rest of the application only talks to the store through the narrow
set of operations defined on ``DocumentStore``:

- exact-key and key-set finds
- filtered, sorted scans
- insert (failing on a duplicate key)
- atomic single-key upsert, increment and array append

Documents are plain JSON-compatible dicts addressed by a logical collection
name and a string key. Every call is bounded by the store timeout.
"""

import asyncio
import copy
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from .exceptions import DuplicateKeyError, StoreError

logger = logging.getLogger(__name__)

# Logical collection names
TRUSTED_SOURCES = 'trustedSources'
BLACKLIST = 'blacklist'
CONTENT = 'content'
RECENT_DATA = 'recentData'
EXTENDED_HISTORY = 'extendedHistory'
EXTRA_DATA = 'extraData'

COLLECTIONS = (
    TRUSTED_SOURCES,
    BLACKLIST,
    CONTENT,
    RECENT_DATA,
    EXTENDED_HISTORY,
    EXTRA_DATA,
)

DEFAULT_TIMEOUT = 10.0


class DocumentStore:
    """Base class for keyed document stores."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        self.timeout = timeout

    async def start(self) -> None:
        """Prepare the store for use."""

    async def close(self) -> None:
        """Release any resources held by the store."""

    async def _call(self, operation: Callable[..., Awaitable], collection: str, *args) -> Any:
        """Run a store operation, failing with StoreError on timeout."""
        if collection not in COLLECTIONS:
            raise StoreError("Unknown collection", collection)
        try:
            return await asyncio.wait_for(operation(collection, *args), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(f"Store call on {collection} timed out after {self.timeout}s")
            raise StoreError(f"Timed out after {self.timeout}s", collection)

    async def find_one(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        return await self._call(self._find_one, collection, key)

    async def find_many(self, collection: str, keys: Iterable[str]) -> List[Dict[str, Any]]:
        return await self._call(self._find_many, collection, list(keys))

    async def find(
        self,
        collection: str,
        where: Optional[Dict[str, Any]] = None,
        sort: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Find documents containing every field/value pair in ``where``.

        Args:
            collection: Logical collection name
            where: Top-level fields the documents must match
            sort: Optional document field to order by
            descending: Sort direction
            limit: Optional maximum number of documents

        Returns:
            List of matching documents
        """
        return await self._call(self._find, collection, where or {}, sort, descending, limit)

    async def insert(self, collection: str, key: str, document: Dict[str, Any]) -> None:
        """Insert a new document.

        Raises:
            DuplicateKeyError: If a document already exists under ``key``
        """
        await self._call(self._insert, collection, key, document)

    async def upsert(
        self,
        collection: str,
        key: str,
        fields: Dict[str, Any],
        on_insert: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Atomically merge ``fields`` into a document, creating it if needed.

        Fields in ``on_insert`` are only written when the document is created.
        Returns the document as stored after the write.
        """
        return await self._call(self._upsert, collection, key, fields, on_insert or {})

    async def increment(
        self,
        collection: str,
        key: str,
        field: str,
        amount: int = 1,
        on_insert: Optional[Dict[str, Any]] = None
    ) -> int:
        """Atomically add ``amount`` to a counter field and return the new value."""
        return await self._call(
            self._increment, collection, key, field, amount, on_insert or {}
        )

    async def append(
        self,
        collection: str,
        key: str,
        field: str,
        items: List[Any],
        fields: Optional[Dict[str, Any]] = None,
        on_insert: Optional[Dict[str, Any]] = None
    ) -> None:
        """Atomically append ``items`` to an array field and merge ``fields``."""
        await self._call(
            self._append, collection, key, field, items, fields or {}, on_insert or {}
        )

    async def _find_one(self, collection, key):
        raise NotImplementedError

    async def _find_many(self, collection, keys):
        raise NotImplementedError

    async def _find(self, collection, where, sort, descending, limit):
        raise NotImplementedError

    async def _insert(self, collection, key, document):
        raise NotImplementedError

    async def _upsert(self, collection, key, fields, on_insert):
        raise NotImplementedError

    async def _increment(self, collection, key, field, amount, on_insert):
        raise NotImplementedError

    async def _append(self, collection, key, field, items, fields, on_insert):
        raise NotImplementedError


class MemoryDocumentStore(DocumentStore):
    """Process-local document store.

    Writes are serialized on a single asyncio lock so every operation is
    atomic per key. Documents are deep-copied on the way in and out.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT):
        super().__init__(timeout)
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {
            name: {} for name in COLLECTIONS
        }
        self._lock = asyncio.Lock()

    async def _find_one(self, collection, key):
        document = self._collections[collection].get(key)
        return copy.deepcopy(document) if document is not None else None

    async def _find_many(self, collection, keys):
        documents = self._collections[collection]
        return [copy.deepcopy(documents[key]) for key in keys if key in documents]

    async def _find(self, collection, where, sort, descending, limit):
        matches = [
            document for document in self._collections[collection].values()
            if all(document.get(field) == value for field, value in where.items())
        ]
        if sort:
            present = [d for d in matches if d.get(sort) is not None]
            missing = [d for d in matches if d.get(sort) is None]
            present.sort(key=lambda d: d[sort], reverse=descending)
            matches = present + missing
        if limit is not None:
            matches = matches[:limit]
        return copy.deepcopy(matches)

    async def _insert(self, collection, key, document):
        async with self._lock:
            documents = self._collections[collection]
            if key in documents:
                raise DuplicateKeyError(f"Duplicate key {key}", collection)
            documents[key] = copy.deepcopy(document)

    async def _upsert(self, collection, key, fields, on_insert):
        async with self._lock:
            documents = self._collections[collection]
            if key not in documents:
                documents[key] = copy.deepcopy(on_insert)
            documents[key].update(copy.deepcopy(fields))
            return copy.deepcopy(documents[key])

    async def _increment(self, collection, key, field, amount, on_insert):
        async with self._lock:
            documents = self._collections[collection]
            if key not in documents:
                documents[key] = copy.deepcopy(on_insert)
            document = documents[key]
            document[field] = (document.get(field) or 0) + amount
            return document[field]

    async def _append(self, collection, key, field, items, fields, on_insert):
        async with self._lock:
            documents = self._collections[collection]
            if key not in documents:
                documents[key] = copy.deepcopy(on_insert)
            document = documents[key]
            document.update(copy.deepcopy(fields))
            document[field] = list(document.get(field) or []) + copy.deepcopy(items)
