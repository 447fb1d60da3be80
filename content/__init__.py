"""Content identity registry.

Maps anonymized player and retainer ids to their last known display name.
Entries are written opportunistically whenever an upload carries a name next
to an id, and read back by the hashed id.

The kind of an identity (player or retainer) is fixed by the first write;
display names are last-write-wins.
"""

import logging
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from database import DocumentStore, CONTENT

logger = logging.getLogger(__name__)


class ContentKind(str, Enum):
    PLAYER = 'player'
    RETAINER = 'retainer'


class ContentIdentity(BaseModel):
    """Last known name of an anonymized character."""
    contentID: str
    contentType: ContentKind
    characterName: str


class ContentIdentityRegistry:
    """Stores display names keyed by hashed character id."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get(self, content_id: str) -> Optional[ContentIdentity]:
        """Look up an identity by its hashed id."""
        document = await self.store.find_one(CONTENT, content_id)
        if document is None:
            return None
        return ContentIdentity(**document)

    async def set(self, content_id: str, kind: ContentKind, display_name: str) -> None:
        """Record the display name for a hashed id.

        Args:
            content_id: Hashed character or retainer id
            kind: Kind of identity; only stored when the id is first seen
            display_name: Name revealed by the upload
        """
        kind = ContentKind(kind)
        document = await self.store.upsert(
            CONTENT, content_id,
            {'characterName': display_name},
            on_insert={'contentID': content_id, 'contentType': kind.value}
        )
        if document.get('contentType') != kind.value:
            logger.warning(
                f"Ignoring kind {kind.value} for {content_id}, "
                f"already registered as {document.get('contentType')}"
            )


__all__ = ['ContentIdentityRegistry', 'ContentIdentity', 'ContentKind']
