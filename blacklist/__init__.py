"""Registry of banned uploaders.

Uploaders are identified by their hashed uploader id. Data from a banned
uploader is rejected before anything is written.
"""

import logging

from database import DocumentStore, DuplicateKeyError, BLACKLIST

logger = logging.getLogger(__name__)


class BlacklistRegistry:
    """Manages the set of banned uploader ids."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def ban(self, uploader_id: str) -> None:
        """Add an uploader to the blacklist, preventing their data from being processed.

        Banning an uploader that is already banned is a no-op.
        """
        try:
            await self.store.insert(BLACKLIST, uploader_id, {'uploaderID': uploader_id})
            logger.info(f"Banned uploader {uploader_id}")
        except DuplicateKeyError:
            logger.debug(f"Uploader {uploader_id} is already banned")

    async def is_banned(self, uploader_id: str) -> bool:
        """Check if the blacklist has an uploader."""
        return await self.store.find_one(BLACKLIST, uploader_id) is not None


__all__ = ['BlacklistRegistry']
