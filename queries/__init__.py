"""Read-path query resolution.

This module turns public query parameters into store lookups:
- A world token is a numeric world id, a world name or a datacenter name
- Item ids arrive as a comma-separated list
- Items without data get an empty placeholder so every requested id has
  exactly one record in the response
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from content import ContentIdentityRegistry
from market import HistoryStore, SnapshotStore, now_ms
from market.statistics import (
    listing_statistics, history_statistics,
    empty_listing_statistics, empty_history_statistics
)
from worlds import WorldTable

logger = logging.getLogger(__name__)

DEFAULT_MAX_QUERY_ITEMS = 100


class QueryError(Exception):
    """Raised when query parameters cannot be interpreted."""
    pass


class WorldScope:
    """A resolved world token: either one world or a whole datacenter."""

    def __init__(self, world_id: Optional[int] = None, dc_name: Optional[str] = None):
        self.world_id = world_id
        self.dc_name = dc_name

    @property
    def is_world(self) -> bool:
        return self.world_id is not None

    def tag(self) -> Dict[str, Any]:
        """The identifying field copied onto every record of the response."""
        if self.is_world:
            return {'worldID': self.world_id}
        return {'dcName': self.dc_name}

    def __eq__(self, other) -> bool:
        return isinstance(other, WorldScope) and self.tag() == other.tag()

    def __repr__(self) -> str:
        return f"WorldScope({self.tag()!r})"


def parse_item_ids(item_ids: str, max_items: int = DEFAULT_MAX_QUERY_ITEMS) -> List[int]:
    """Parse a comma-separated list of item ids.

    Raises:
        QueryError: If any id is not an integer or too many ids are given
    """
    tokens = [token.strip() for token in str(item_ids).split(',')]
    try:
        ids = [int(token) for token in tokens]
    except ValueError:
        raise QueryError(f"Invalid item id list: {item_ids}")
    if len(ids) > max_items:
        raise QueryError(f"At most {max_items} item ids may be requested at once")
    return ids


class QueryResolver:
    """Answers snapshot, history and content queries."""

    def __init__(
        self,
        worlds: WorldTable,
        snapshots: SnapshotStore,
        history: HistoryStore,
        content: ContentIdentityRegistry,
        max_items: int = DEFAULT_MAX_QUERY_ITEMS,
        clock: Optional[Callable[[], int]] = None
    ):
        self.worlds = worlds
        self.snapshots = snapshots
        self.history = history
        self.content = content
        self.max_items = max_items
        self.clock = clock or now_ms

    def resolve_world(self, token: str) -> WorldScope:
        """Canonicalize a world token.

        Integers are world ids, known world names (case-insensitive on the
        first letter, as ``str.capitalize``) translate to their id, and
        anything else is taken as a datacenter name.
        """
        token = str(token).strip()
        try:
            return WorldScope(world_id=int(token))
        except ValueError:
            pass

        world_id = self.worlds.world_id(token.capitalize())
        if world_id is not None:
            return WorldScope(world_id=world_id)

        return WorldScope(dc_name=token)

    def _shape(
        self,
        scope: WorldScope,
        item_ids: List[int],
        records: Dict[int, Dict[str, Any]],
        placeholder: Callable[[int], Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Gap-fill missing items and collapse single-item responses."""
        items = []
        unresolved = []
        for item_id in item_ids:
            record = records.get(item_id)
            if record is None:
                unresolved.append(item_id)
                record = placeholder(item_id)
            items.append(record)

        if len(item_ids) == 1:
            return items[0]

        response = {'itemIDs': item_ids, 'items': items, 'unresolvedItems': unresolved}
        response.update(scope.tag())
        return response

    async def _fetch(
        self,
        scope: WorldScope,
        item_ids: List[int],
        by_world: Callable,
        by_datacenter: Callable
    ) -> Dict[int, Dict[str, Any]]:
        if scope.is_world:
            return await by_world(item_ids, scope.world_id)
        records = {}
        for item_id in dict.fromkeys(item_ids):
            record = await by_datacenter(item_id, scope.dc_name)
            if record is not None:
                records[item_id] = record
        return records

    async def get_snapshot(self, world_token: str, item_ids: str) -> Dict[str, Any]:
        """Current listings for one or more items on a world or datacenter."""
        scope = self.resolve_world(world_token)
        ids = parse_item_ids(item_ids, self.max_items)

        records = await self._fetch(
            scope, ids, self.snapshots.get_many, self.snapshots.get_for_datacenter
        )
        for record in records.values():
            record.update(listing_statistics(record.get('listings', [])))
            record.update(scope.tag())

        def placeholder(item_id: int) -> Dict[str, Any]:
            record = {
                'itemID': item_id,
                'lastUploadTime': 0,
                'listings': [],
                'recentHistory': [],
            }
            record.update(scope.tag())
            record.update(empty_listing_statistics())
            return record

        return self._shape(scope, ids, records, placeholder)

    async def get_history(
        self,
        world_token: str,
        item_ids: str,
        entries_limit: Optional[int] = None
    ) -> Dict[str, Any]:
        """Extended sale history for one or more items on a world or datacenter."""
        scope = self.resolve_world(world_token)
        ids = parse_item_ids(item_ids, self.max_items)

        async def by_world(item_ids: List[int], world_id: int):
            return await self.history.get_many(item_ids, world_id, entries_limit)

        async def by_datacenter(item_id: int, dc_name: str):
            return await self.history.get_for_datacenter(item_id, dc_name, entries_limit)

        records = await self._fetch(scope, ids, by_world, by_datacenter)
        now = self.clock()
        for record in records.values():
            record.update(history_statistics(record.get('entries', []), now))
            record.update(scope.tag())

        def placeholder(item_id: int) -> Dict[str, Any]:
            record = {
                'itemID': item_id,
                'lastUploadTime': 0,
                'entries': [],
            }
            record.update(scope.tag())
            record.update(empty_history_statistics())
            return record

        return self._shape(scope, ids, records, placeholder)

    async def get_content_identity(self, content_id: str) -> Dict[str, Any]:
        """Name record of a hashed character id, or an empty dict."""
        identity = await self.content.get(content_id)
        if identity is None:
            return {}
        return identity.model_dump(mode='json')


__all__ = ['QueryResolver', 'QueryError', 'WorldScope', 'parse_item_ids', 'DEFAULT_MAX_QUERY_ITEMS']
