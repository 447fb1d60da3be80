"""Upload activity statistics endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from context import AppContext
from database import StoreError
from ..dependencies import get_context

router = APIRouter(
    prefix="/api/extra/stats",
    tags=["Statistics"]
)


@router.get("/upload-history")
async def upload_history(
    days: Optional[int] = Query(None, ge=1),
    context: AppContext = Depends(get_context)
):
    """Get daily upload counts, newest day first."""
    try:
        return {'uploadCountByDay': await context.stats.get_daily_uploads(days)}
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get("/most-recently-updated")
async def most_recently_updated(
    entries: Optional[int] = Query(None, ge=1),
    context: AppContext = Depends(get_context)
):
    """Get the (world, item) pairs that received data most recently."""
    try:
        return {'items': await context.stats.get_recently_updated(entries)}
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))


@router.get("/least-recently-updated")
async def least_recently_updated(
    entries: Optional[int] = Query(None, ge=1),
    context: AppContext = Depends(get_context)
):
    """Get the (world, item) pairs that have gone longest without new data."""
    try:
        return {'items': await context.stats.get_least_recently_updated(entries)}
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
