"""Application context.

Builds every component from settings and owns their lifecycle. Nothing in
the application reaches for a module-level connection or table: the context
is created at startup, passed to whatever needs it, and shut down on exit.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from blacklist import BlacklistRegistry
from config import DEFAULTS, validate_settings
from content import ContentIdentityRegistry
from database import DocumentStore, open_store
from market import HistoryStore, SnapshotStore
from queries import QueryResolver
from sources import TrustedSourceRegistry
from stats import ActivityStatsRegistry
from uploads import IngestionCoordinator, UploadValidator
from worlds import WorldTable, DEFAULT_WORLDS_FILE

logger = logging.getLogger(__name__)


class AppContext:
    """Holds the store, reference data and every service built on them."""

    def __init__(
        self,
        settings: Dict[str, Any],
        store: DocumentStore,
        worlds: WorldTable
    ):
        self.settings = settings
        self.store = store
        self.worlds = worlds

        self.sources = TrustedSourceRegistry(store)
        self.blacklist = BlacklistRegistry(store)
        self.content = ContentIdentityRegistry(store)
        self.snapshots = SnapshotStore(
            store, worlds,
            recent_history_size=settings['recent_history_size']
        )
        self.history = HistoryStore(
            store, worlds,
            max_entries=settings['history_max_entries']
        )
        self.stats = ActivityStatsRegistry(
            store,
            default_limit=settings['recency_default_limit'],
            max_limit=settings['recency_max_limit']
        )
        self.validator = UploadValidator(
            self.blacklist,
            world_id_floor=settings['world_id_floor'],
            world_id_ceiling=settings['world_id_ceiling']
        )
        self.uploads = IngestionCoordinator(
            self.sources, self.blacklist, self.content,
            self.snapshots, self.history, self.stats,
            validator=self.validator
        )
        self.queries = QueryResolver(
            worlds, self.snapshots, self.history, self.content,
            max_items=settings['max_query_items']
        )

    @classmethod
    async def startup(cls, settings: Optional[Dict[str, Any]] = None) -> 'AppContext':
        """Open the store, load the world table and build the services.

        Args:
            settings: Validated settings; built-in defaults if omitted
        """
        settings = settings or validate_settings(DEFAULTS)

        if settings.get('worlds_url'):
            worlds = await asyncio.to_thread(WorldTable.fetch, settings['worlds_url'])
        else:
            worlds = WorldTable.load(Path(settings.get('worlds_file') or DEFAULT_WORLDS_FILE))

        store = await open_store(
            backend=settings['store_backend'],
            db_url=settings['db_url'],
            timeout=settings['store_timeout']
        )

        logger.info("Application context started")
        return cls(settings, store, worlds)

    async def shutdown(self) -> None:
        """Release the store."""
        await self.store.close()
        logger.info("Application context stopped")


__all__ = ['AppContext']
