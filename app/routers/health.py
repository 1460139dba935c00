"""Health check endpoint.

Returns service status including content API reachability.
"""

import logging
from typing import Any

from fastapi import APIRouter
from starlette.responses import JSONResponse

from app.services.content import ContentClient

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check() -> Any:
    """Return health status; 503 when the content API cannot be reached."""
    reachable = await ContentClient().ping()

    payload: dict[str, str] = {
        "status": "ok" if reachable else "degraded",
        "content_api": "connected" if reachable else "disconnected",
    }

    if not reachable:
        return JSONResponse(status_code=503, content=payload)

    return payload
