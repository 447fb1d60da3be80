"""FastAPI dependencies shared by the routers."""

from fastapi import HTTPException, Request, status

from context import AppContext


def get_context(request: Request) -> AppContext:
    """The application context owned by the running app."""
    context = getattr(request.app.state, 'context', None)
    if context is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is starting"
        )
    return context
