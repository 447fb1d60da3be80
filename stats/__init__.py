"""Upload activity bookkeeping.

This module tracks:
- Daily upload counters, one bucket per UTC calendar date
- The time each (world, item) pair was last updated, readable most-recent
  first or least-recent first so an external refresh scheduler can decide
  what to fetch next

Both live in the ``extraData`` collection, distinguished by ``setName``.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from database import DocumentStore, EXTRA_DATA

logger = logging.getLogger(__name__)

DAILY_UPLOADS_SET = 'uploadCountHistory'
ITEM_UPDATES_SET = 'recentlyUpdated'

DEFAULT_RECENCY_LIMIT = 50
MAX_RECENCY_LIMIT = 200


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ActivityStatsRegistry:
    """Daily upload counts and per-item recency indexes."""

    def __init__(
        self,
        store: DocumentStore,
        default_limit: int = DEFAULT_RECENCY_LIMIT,
        max_limit: int = MAX_RECENCY_LIMIT,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.store = store
        self.default_limit = default_limit
        self.max_limit = max_limit
        self.clock = clock or _utcnow

    def _clamp(self, limit: Optional[int]) -> int:
        if limit is None or limit <= 0:
            return self.default_limit
        return min(limit, self.max_limit)

    async def increment_daily_uploads(self) -> int:
        """Count one upload in today's bucket.

        Returns:
            The bucket's count after the increment
        """
        date = self.clock().date().isoformat()
        return await self.store.increment(
            EXTRA_DATA, f"{DAILY_UPLOADS_SET}:{date}", 'count',
            on_insert={'setName': DAILY_UPLOADS_SET, 'date': date}
        )

    async def get_daily_uploads(self, days: Optional[int] = None) -> List[Dict[str, Any]]:
        """Upload counts for the most recent ``days`` buckets, newest first."""
        documents = await self.store.find(
            EXTRA_DATA,
            where={'setName': DAILY_UPLOADS_SET},
            sort='date',
            descending=True,
            limit=days if days and days > 0 else None
        )
        return [{'date': d['date'], 'count': d.get('count', 0)} for d in documents]

    async def mark_item_updated(self, world_id: int, item_id: int) -> None:
        """Record that an item on a world has just received new data."""
        await self.store.upsert(
            EXTRA_DATA,
            f"{ITEM_UPDATES_SET}:{world_id}:{item_id}",
            {
                'setName': ITEM_UPDATES_SET,
                'worldID': world_id,
                'itemID': item_id,
                'lastUploadTime': int(self.clock().timestamp() * 1000),
            }
        )

    async def _item_updates(self, limit: Optional[int], descending: bool) -> List[Dict[str, Any]]:
        documents = await self.store.find(
            EXTRA_DATA,
            where={'setName': ITEM_UPDATES_SET},
            sort='lastUploadTime',
            descending=descending,
            limit=self._clamp(limit)
        )
        return [
            {
                'worldID': d['worldID'],
                'itemID': d['itemID'],
                'lastUploadTime': d['lastUploadTime'],
            }
            for d in documents
        ]

    async def get_recently_updated(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Most recently updated (world, item) pairs first."""
        return await self._item_updates(limit, descending=True)

    async def get_least_recently_updated(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Least recently updated (world, item) pairs first."""
        return await self._item_updates(limit, descending=False)


__all__ = ['ActivityStatsRegistry', 'DEFAULT_RECENCY_LIMIT', 'MAX_RECENCY_LIMIT']
