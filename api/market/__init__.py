"""Market data endpoints for current listings and sale history."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from context import AppContext
from database import StoreError
from queries import QueryError
from ..dependencies import get_context

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["Market"]
)


@router.get("/history/{world}/{item_ids}")
async def get_history(
    world: str,
    item_ids: str,
    entries: Optional[int] = Query(None),
    context: AppContext = Depends(get_context)
):
    """Get the extended sale history of one or more comma-separated items.

    Args:
        world: World id, world name or datacenter name
        item_ids: Comma-separated item ids
        entries: Optional number of entries to return per item
    """
    try:
        return await context.queries.get_history(world, item_ids, entries)
    except QueryError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except StoreError as e:
        logger.error(f"History query failed: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get("/{world}/{item_ids}")
async def get_snapshot(
    world: str,
    item_ids: str,
    context: AppContext = Depends(get_context)
):
    """Get current listings for one or more comma-separated items.

    Args:
        world: World id, world name or datacenter name
        item_ids: Comma-separated item ids
    """
    try:
        return await context.queries.get_snapshot(world, item_ids)
    except QueryError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except StoreError as e:
        logger.error(f"Snapshot query failed: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
