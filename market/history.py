"""Append-only sale history per (item, world).

Entries are appended in upload order and never rewritten. The same sale
reported by two uploaders is stored twice; no deduplication happens at
write time.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from database import DocumentStore, EXTENDED_HISTORY
from worlds import WorldTable

from .records import now_ms, record_key

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 500


def _strip(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [{k: v for k, v in entry.items() if k != 'uploaderID'} for entry in entries]


class HistoryStore:
    """Stores the extended sale history of each (item, world) pair."""

    def __init__(
        self,
        store: DocumentStore,
        worlds: WorldTable,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Optional[Callable[[], int]] = None
    ):
        self.store = store
        self.worlds = worlds
        self.max_entries = max_entries
        self.clock = clock or now_ms

    def _limit(self, entries: List[Dict[str, Any]], requested: Optional[int]) -> List[Dict[str, Any]]:
        count = requested if requested and requested > 0 else len(entries)
        return _strip(entries[:min(count, self.max_entries)])

    async def append(
        self,
        uploader_id: str,
        item_id: int,
        world_id: int,
        entries: List[Dict[str, Any]]
    ) -> None:
        """Append sale entries to the log of an item on a world.

        Args:
            uploader_id: Hashed id of the contributing uploader, stored on each entry
            item_id: Item id
            world_id: World id
            entries: Normalized history entries in upload order
        """
        await self.store.append(
            EXTENDED_HISTORY,
            record_key(item_id, world_id),
            'entries',
            [dict(entry, uploaderID=uploader_id) for entry in entries],
            fields={
                'itemID': item_id,
                'worldID': world_id,
                'dcName': self.worlds.datacenter_of(world_id),
                'lastUploadTime': self.clock(),
            }
        )
        logger.debug(f"Appended {len(entries)} sales for item {item_id} on world {world_id}")

    async def get(
        self,
        item_id: int,
        world_id: int,
        entries_limit: Optional[int] = None
    ) -> Optional[Dict[str, Any]]:
        """Read a history log, returning at most ``max_entries`` entries from its start."""
        document = await self.store.find_one(EXTENDED_HISTORY, record_key(item_id, world_id))
        if document is None:
            return None
        document['entries'] = self._limit(document.get('entries', []), entries_limit)
        return document

    async def get_many(
        self,
        item_ids: List[int],
        world_id: int,
        entries_limit: Optional[int] = None
    ) -> Dict[int, Dict[str, Any]]:
        documents = await self.store.find_many(
            EXTENDED_HISTORY, [record_key(item_id, world_id) for item_id in item_ids]
        )
        for document in documents:
            document['entries'] = self._limit(document.get('entries', []), entries_limit)
        return {document['itemID']: document for document in documents}

    async def get_for_datacenter(
        self,
        item_id: int,
        dc_name: str,
        entries_limit: Optional[int] = None
    ) -> Optional[Dict[str, Any]]:
        """Combine the logs of every world in a datacenter, ordered by sale time."""
        documents = await self.store.find(
            EXTENDED_HISTORY, where={'itemID': item_id, 'dcName': dc_name}
        )
        if not documents:
            return None

        entries = []
        for document in documents:
            world_id = document.get('worldID')
            entries.extend(dict(entry, worldID=world_id) for entry in document.get('entries', []))
        entries.sort(key=lambda entry: entry.get('timestamp') or 0)

        return {
            'itemID': item_id,
            'dcName': dc_name,
            'lastUploadTime': max(d.get('lastUploadTime') or 0 for d in documents),
            'entries': self._limit(entries, entries_limit),
        }
