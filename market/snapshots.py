"""Current listings per (item, world)."""

import logging
from typing import Any, Callable, Dict, List, Optional

from database import DocumentStore, RECENT_DATA
from worlds import WorldTable

from .records import now_ms, record_key

logger = logging.getLogger(__name__)

DEFAULT_RECENT_HISTORY_SIZE = 20

# Fields that are stored but never returned to readers
INTERNAL_FIELDS = ('uploaderID',)


def _public(document: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in document.items() if k not in INTERNAL_FIELDS}


class SnapshotStore:
    """Stores the latest uploaded listing set for each (item, world) pair."""

    def __init__(
        self,
        store: DocumentStore,
        worlds: WorldTable,
        recent_history_size: int = DEFAULT_RECENT_HISTORY_SIZE,
        clock: Optional[Callable[[], int]] = None
    ):
        self.store = store
        self.worlds = worlds
        self.recent_history_size = recent_history_size
        self.clock = clock or now_ms

    async def replace(
        self,
        uploader_id: str,
        item_id: int,
        world_id: int,
        listings: List[Dict[str, Any]]
    ) -> None:
        """Replace the full listing set for an item on a world.

        Args:
            uploader_id: Hashed id of the contributing uploader, kept internally
            item_id: Item id
            world_id: World id
            listings: Normalized listings; any previous set is discarded
        """
        await self.store.upsert(
            RECENT_DATA,
            record_key(item_id, world_id),
            {
                'itemID': item_id,
                'worldID': world_id,
                'dcName': self.worlds.datacenter_of(world_id),
                'lastUploadTime': self.clock(),
                'listings': listings,
                'uploaderID': uploader_id,
            },
            on_insert={'recentHistory': []}
        )
        logger.debug(f"Replaced {len(listings)} listings for item {item_id} on world {world_id}")

    async def set_recent_history(
        self,
        item_id: int,
        world_id: int,
        entries: List[Dict[str, Any]]
    ) -> None:
        """Store the newest sales of an upload alongside the listings."""
        newest = sorted(entries, key=lambda e: e.get('timestamp') or 0, reverse=True)
        await self.store.upsert(
            RECENT_DATA,
            record_key(item_id, world_id),
            {
                'itemID': item_id,
                'worldID': world_id,
                'dcName': self.worlds.datacenter_of(world_id),
                'recentHistory': newest[:self.recent_history_size],
            },
            on_insert={'listings': [], 'lastUploadTime': self.clock()}
        )

    async def get(self, item_id: int, world_id: int) -> Optional[Dict[str, Any]]:
        document = await self.store.find_one(RECENT_DATA, record_key(item_id, world_id))
        return _public(document) if document else None

    async def get_many(self, item_ids: List[int], world_id: int) -> Dict[int, Dict[str, Any]]:
        """Snapshots for several items on one world, keyed by item id."""
        documents = await self.store.find_many(
            RECENT_DATA, [record_key(item_id, world_id) for item_id in item_ids]
        )
        return {document['itemID']: _public(document) for document in documents}

    async def get_for_datacenter(self, item_id: int, dc_name: str) -> Optional[Dict[str, Any]]:
        """Merge the snapshots of every world in a datacenter.

        Listings from all worlds are combined, tagged with their world id and
        ordered by unit price. Returns None if no world has data.
        """
        documents = await self.store.find(
            RECENT_DATA, where={'itemID': item_id, 'dcName': dc_name}
        )
        if not documents:
            return None

        listings = []
        recent_history = []
        for document in documents:
            world_id = document.get('worldID')
            listings.extend(dict(listing, worldID=world_id) for listing in document.get('listings', []))
            recent_history.extend(dict(entry, worldID=world_id) for entry in document.get('recentHistory', []))

        listings.sort(key=lambda listing: listing.get('pricePerUnit', 0))
        recent_history.sort(key=lambda entry: entry.get('timestamp') or 0, reverse=True)

        return {
            'itemID': item_id,
            'dcName': dc_name,
            'lastUploadTime': max(d.get('lastUploadTime') or 0 for d in documents),
            'listings': listings,
            'recentHistory': recent_history[:self.recent_history_size],
        }
