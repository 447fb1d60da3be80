"""Trusted source registry.

Upload agents are provisioned with an API key. Only the SHA-512 digest of
the key is stored, together with the source's display name and a counter of
uploads received from it.
"""

import logging
import secrets
from typing import Optional

from pydantic import BaseModel

from database import DocumentStore, DuplicateKeyError, TRUSTED_SOURCES
from identity import hash_api_key

logger = logging.getLogger(__name__)


class SourceError(Exception):
    """Base exception for trusted source operations."""
    pass


class SourceExistsError(SourceError):
    """Raised when provisioning a key that is already registered."""
    pass


class TrustedSource(BaseModel):
    """A provisioned upload agent."""
    apiKey: str
    sourceName: str
    uploadCount: int = 0


class TrustedSourceRegistry:
    """Authenticates upload agents and counts their uploads."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def authenticate(self, api_key: str) -> Optional[TrustedSource]:
        """Look up the source owning an API key.

        Args:
            api_key: Plaintext API key from the request

        Returns:
            The matching TrustedSource, or None if the key is unknown or
            only has a usage counter without a provisioned source
        """
        document = await self.store.find_one(TRUSTED_SOURCES, hash_api_key(api_key))
        if document is None or not document.get('sourceName'):
            return None
        return TrustedSource(**document)

    async def record_usage(self, api_key: str) -> int:
        """Atomically count one upload for the key's source.

        Returns:
            The source's upload count after the increment
        """
        key = hash_api_key(api_key)
        return await self.store.increment(
            TRUSTED_SOURCES, key, 'uploadCount',
            on_insert={'apiKey': key}
        )

    async def add(self, source_name: str, api_key: Optional[str] = None) -> str:
        """Provision a new trusted source.

        Args:
            source_name: Human-readable name of the upload agent
            api_key: Optional key to register; a random one is generated if omitted

        Returns:
            The plaintext API key, which is not stored anywhere

        Raises:
            SourceExistsError: If the key is already registered
        """
        api_key = api_key or secrets.token_urlsafe(32)
        key = hash_api_key(api_key)
        try:
            await self.store.insert(TRUSTED_SOURCES, key, {
                'apiKey': key,
                'sourceName': source_name,
                'uploadCount': 0
            })
        except DuplicateKeyError:
            raise SourceExistsError("API key is already registered")

        logger.info(f"Registered trusted source {source_name}")
        return api_key


__all__ = ['TrustedSourceRegistry', 'TrustedSource', 'SourceError', 'SourceExistsError']
