"""Upload endpoint for trusted sources."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import PlainTextResponse

from context import AppContext
from database import StoreError
from uploads import (
    AuthenticationError, UnsupportedMediaError, ValidationError,
    BlacklistedUploaderError, EmptyUploadError, UploadFailedError
)
from ..dependencies import get_context

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/upload",
    tags=["Upload"]
)


@router.post("/{api_key}", response_class=PlainTextResponse)
async def upload(api_key: str, request: Request, context: AppContext = Depends(get_context)):
    """Submit listings, sale history or a character name for one item on one world."""
    body = await request.body()
    try:
        await context.uploads.submit_upload(
            api_key, body, request.headers.get('content-type', '')
        )
        return PlainTextResponse("Success")
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except UnsupportedMediaError as e:
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(e))
    except BlacklistedUploaderError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except EmptyUploadError as e:
        raise HTTPException(status_code=status.HTTP_418_IM_A_TEAPOT, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(e))
    except (UploadFailedError, StoreError) as e:
        logger.error(f"Upload failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Upload could not be stored"
        )
