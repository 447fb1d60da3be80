"""Administrative operations for operators.

Trusted sources and the uploader blacklist have no public write endpoint;
they are managed through these commands against the configured store.
"""

from typing import Any, Dict, List, Optional

from context import AppContext
from identity import hash_value


async def add_source(context: AppContext, source_name: str, api_key: Optional[str] = None) -> str:
    """Register a trusted source and return its plaintext API key."""
    return await context.sources.add(source_name, api_key)


async def ban_uploader(context: AppContext, uploader_id: str, hashed: bool = False) -> str:
    """Blacklist an uploader.

    Args:
        context: Application context
        uploader_id: Raw uploader id, or its hash when ``hashed`` is set
        hashed: Whether ``uploader_id`` is already hashed

    Returns:
        The hashed uploader id that was banned
    """
    if not hashed:
        uploader_id = hash_value(uploader_id)
    await context.blacklist.ban(uploader_id)
    return uploader_id


async def upload_report(context: AppContext, days: Optional[int] = None) -> List[Dict[str, Any]]:
    """Daily upload counts, newest day first."""
    return await context.stats.get_daily_uploads(days)


__all__ = ['add_source', 'ban_uploader', 'upload_report']
