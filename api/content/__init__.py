"""Content identity endpoint."""

from fastapi import APIRouter, Depends, HTTPException, status

from context import AppContext
from database import StoreError
from ..dependencies import get_context

router = APIRouter(
    prefix="/api/content",
    tags=["Content"]
)


@router.get("/{content_id}")
async def get_content(content_id: str, context: AppContext = Depends(get_context)):
    """Get the last known name of a hashed character or retainer id.

    Returns an empty object when the id is unknown.
    """
    try:
        return await context.queries.get_content_identity(content_id)
    except StoreError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
