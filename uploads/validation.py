"""Upload validation.

Validation runs in two phases:

1. Pre-cast: the request must carry an API key and a JSON object body.
2. Post-cast: the body is cast into ``UploadData`` and checked for a valid
   item and world, a non-banned uploader and at least one section to process.

Every check runs before any market, history or content write.
"""

import json
import logging
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from blacklist import BlacklistRegistry
from .models import UploadData

logger = logging.getLogger(__name__)

# Worlds at or below the floor and at or above the ceiling cannot be
# scraped by upload agents, so data for them is rejected.
DEFAULT_WORLD_ID_FLOOR = 16
DEFAULT_WORLD_ID_CEILING = 100


class UploadError(Exception):
    """Base exception for upload processing."""
    pass


class AuthenticationError(UploadError):
    """Raised when the API key is missing or unknown."""
    pass


class UnsupportedMediaError(UploadError):
    """Raised when the body is missing, not JSON or not a JSON object."""
    pass


class ValidationError(UploadError):
    """Raised when the upload content is invalid."""
    pass


class BlacklistedUploaderError(ValidationError):
    """Raised when the uploader has been banned."""
    pass


class EmptyUploadError(ValidationError):
    """Raised when the upload carries nothing to process."""
    pass


class UploadFailedError(UploadError):
    """Raised when one or more store writes of an accepted upload failed."""
    pass


def _is_json(content_type: str) -> bool:
    mime = content_type.split(';', 1)[0].strip().lower()
    return mime == 'application/json' or mime.endswith('+json')


class UploadValidator:
    """Structural and semantic checks on uploads."""

    def __init__(
        self,
        blacklist: BlacklistRegistry,
        world_id_floor: int = DEFAULT_WORLD_ID_FLOOR,
        world_id_ceiling: int = DEFAULT_WORLD_ID_CEILING
    ):
        self.blacklist = blacklist
        self.world_id_floor = world_id_floor
        self.world_id_ceiling = world_id_ceiling

    def pre_cast(
        self,
        api_key: Optional[str],
        body: Union[bytes, str, Dict[str, Any], None],
        content_type: Optional[str] = None
    ) -> Dict[str, Any]:
        """Check the request envelope and decode the body.

        Args:
            api_key: API key supplied with the request
            body: Raw request body, or an already decoded JSON object
            content_type: Request content type, if known

        Returns:
            The decoded JSON object

        Raises:
            AuthenticationError: If the API key is empty
            UnsupportedMediaError: If the body is missing or not a JSON object
        """
        if not api_key:
            raise AuthenticationError("API key is required")

        if content_type is not None and not _is_json(content_type):
            raise UnsupportedMediaError(f"Unsupported content type: {content_type}")

        if isinstance(body, dict):
            return body

        if not body:
            raise UnsupportedMediaError("Request body is empty")

        try:
            payload = json.loads(body)
        except (TypeError, ValueError) as e:
            raise UnsupportedMediaError(f"Request body is not valid JSON: {e}")

        if not isinstance(payload, dict):
            raise UnsupportedMediaError("Request body must be a JSON object")

        return payload

    def check_world(self, world_id: int) -> None:
        """Reject worlds outside the range upload agents can collect."""
        if world_id <= self.world_id_floor or world_id >= self.world_id_ceiling:
            raise ValidationError(f"World {world_id} does not accept uploads")

    async def post_cast(self, payload: Dict[str, Any], uploader_id: str) -> UploadData:
        """Cast the payload and validate its content.

        Args:
            payload: Decoded JSON body
            uploader_id: Hashed uploader id of the submission

        Returns:
            The typed upload

        Raises:
            ValidationError: If the upload is malformed, out of range, from a
                banned uploader or empty
        """
        try:
            upload = UploadData.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(f"Malformed upload: {e.error_count()} invalid field(s)")

        if not upload.worldID or not upload.itemID:
            raise ValidationError("worldID and itemID are required")

        self.check_world(upload.worldID)

        if await self.blacklist.is_banned(uploader_id):
            raise BlacklistedUploaderError("Uploader is blacklisted")

        if upload.is_empty:
            raise EmptyUploadError("Upload contains no listings, history or character data")

        return upload
