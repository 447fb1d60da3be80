"""Upload ingestion.

This module drives one upload end to end:
- Validating the request and authenticating the trusted source
- Counting the upload for the source and for the day
- Anonymizing the uploader and every identifier in the payload
- Writing each payload section to its store concurrently

Writes for one upload are dispatched together and joined once. There is no
cross-store transaction: if one write fails the others that already landed
stay in place, and the caller only learns that the upload failed.
"""

import asyncio
import logging
from typing import Any, Awaitable, Dict, List, Optional, Union

from blacklist import BlacklistRegistry
from content import ContentIdentityRegistry, ContentKind
from identity import hash_value
from market import HistoryStore, SnapshotStore
from sources import TrustedSourceRegistry
from stats import ActivityStatsRegistry
from .models import NormalizedUpload, UploadData, UploadResult
from .normalize import normalize_upload
from .validation import (
    UploadValidator, UploadError, AuthenticationError, UnsupportedMediaError,
    ValidationError, BlacklistedUploaderError, EmptyUploadError, UploadFailedError
)

logger = logging.getLogger(__name__)


class IngestionCoordinator:
    """Orchestrates validation, anonymization and storage of uploads."""

    def __init__(
        self,
        sources: TrustedSourceRegistry,
        blacklist: BlacklistRegistry,
        content: ContentIdentityRegistry,
        snapshots: SnapshotStore,
        history: HistoryStore,
        stats: ActivityStatsRegistry,
        validator: Optional[UploadValidator] = None
    ):
        self.sources = sources
        self.blacklist = blacklist
        self.content = content
        self.snapshots = snapshots
        self.history = history
        self.stats = stats
        self.validator = validator or UploadValidator(blacklist)

    async def _join(self, writes: List[Awaitable], description: str) -> None:
        """Run writes concurrently and fail if any of them failed."""
        results = await asyncio.gather(*writes, return_exceptions=True)
        failures = [result for result in results if isinstance(result, BaseException)]
        if not failures:
            return
        for failure in failures:
            logger.error(f"Write failed during {description}: {failure!r}")
        raise UploadFailedError(
            f"{len(failures)} of {len(results)} writes failed during {description}"
        ) from failures[0]

    def _dispatch(self, upload: NormalizedUpload) -> List[Awaitable]:
        """Build one write per section present in the upload."""
        writes: List[Awaitable] = [
            self.content.set(content_id, kind, name)
            for content_id, kind, name in upload.identities
        ]

        if upload.listings is not None:
            writes.append(self.snapshots.replace(
                upload.uploaderID, upload.itemID, upload.worldID, upload.listings
            ))

        if upload.entries is not None:
            writes.append(self.history.append(
                upload.uploaderID, upload.itemID, upload.worldID, upload.entries
            ))
            writes.append(self.snapshots.set_recent_history(
                upload.itemID, upload.worldID, upload.entries
            ))

        if upload.character is not None:
            writes.append(self.content.set(
                upload.character.contentID, ContentKind.PLAYER, upload.character.characterName
            ))

        if upload.listings is not None or upload.entries is not None:
            writes.append(self.stats.mark_item_updated(upload.worldID, upload.itemID))

        return writes

    async def submit_upload(
        self,
        api_key: Optional[str],
        body: Union[bytes, str, Dict[str, Any], None],
        content_type: Optional[str] = None
    ) -> UploadResult:
        """Process one upload.

        Args:
            api_key: Plaintext API key of the submitting agent
            body: Raw JSON body or an already decoded JSON object
            content_type: Request content type, if known

        Returns:
            Summary of what was stored

        Raises:
            AuthenticationError: If the key is missing or unknown
            UnsupportedMediaError: If the body is not a JSON object
            ValidationError: If the upload content is rejected
            UploadFailedError: If any store write failed
        """
        payload = self.validator.pre_cast(api_key, body, content_type)

        source = await self.sources.authenticate(api_key)
        if source is None:
            raise AuthenticationError("Unknown API key")

        await self._join(
            [self.sources.record_usage(api_key), self.stats.increment_daily_uploads()],
            f"usage accounting for {source.sourceName}"
        )

        uploader_id = hash_value(payload.get('uploaderID'))

        try:
            upload: UploadData = await self.validator.post_cast(payload, uploader_id)
        except ValidationError as e:
            logger.warning(f"Rejected upload from {source.sourceName}: {e}")
            raise

        normalized = normalize_upload(upload, uploader_id)

        await self._join(
            self._dispatch(normalized),
            f"upload of item {normalized.itemID} on world {normalized.worldID}"
        )

        result = UploadResult(
            sourceName=source.sourceName,
            uploaderID=uploader_id,
            itemID=normalized.itemID,
            worldID=normalized.worldID,
            listings=len(normalized.listings or []),
            entries=len(normalized.entries or []),
            character=normalized.character is not None,
        )
        logger.info(
            f"Received upload from {source.sourceName}: item {result.itemID} on world "
            f"{result.worldID}, {result.listings} listings, {result.entries} sales"
        )
        return result


__all__ = [
    'IngestionCoordinator', 'UploadValidator', 'UploadResult', 'UploadData',
    'UploadError', 'AuthenticationError', 'UnsupportedMediaError', 'ValidationError',
    'BlacklistedUploaderError', 'EmptyUploadError', 'UploadFailedError',
]
