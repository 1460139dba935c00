"""Popup endpoints.

GET    /         -- evaluate the popup for this visitor
POST   /dismiss  -- remember the dismissed popup in the suppression cookie
DELETE /seen     -- forget the last-shown popup
"""

from __future__ import annotations

import logging
from datetime import timedelta

from fastapi import APIRouter, HTTPException, Request, Response

from app.core.config import settings
from app.models.popup import DismissRequest, PopupDecision, SuppressionRecord
from app.services.content import ContentClient
from app.services.orchestrator import PopupOrchestrator
from app.services.suppression import CookieSuppressionStore

logger = logging.getLogger(__name__)

router = APIRouter()


def _cookie_store(request: Request) -> CookieSuppressionStore:
    """Build a suppression store over the request's popup cookie."""
    return CookieSuppressionStore(
        request.cookies.get(settings.POPUP_COOKIE_NAME),
        cookie_name=settings.POPUP_COOKIE_NAME,
        ttl=timedelta(hours=settings.POPUP_TTL_HOURS),
    )


@router.get("", response_model=PopupDecision)
async def get_popup(request: Request) -> PopupDecision:
    """Decide whether a popup should be shown and which one."""
    orchestrator: PopupOrchestrator | None = None
    try:
        orchestrator = PopupOrchestrator.from_client(
            _cookie_store(request),
            ContentClient(),
            settle_delay=settings.POPUP_SETTLE_DELAY_MS / 1000,
            notice_max_age_days=settings.NOTICE_MAX_AGE_DAYS,
        )
        candidate = await orchestrator.run()
        return PopupDecision(
            show=candidate is not None,
            popup=candidate,
            tier=orchestrator.tier,
            state=orchestrator.state,
        )
    except Exception as exc:
        logger.error(
            "get_popup_failed",
            extra={"error_message": str(exc)},
        )
        raise HTTPException(
            status_code=500,
            detail=f"Popup evaluation failed: {exc}",
        ) from exc
    finally:
        if orchestrator is not None:
            orchestrator.close()


@router.post("/dismiss", response_model=SuppressionRecord)
async def dismiss_popup(
    body: DismissRequest,
    request: Request,
    response: Response,
) -> SuppressionRecord:
    """Store the dismissed popup so it is not shown again."""
    store = _cookie_store(request)
    try:
        record = store.write(body.id, body.type)
    except Exception as exc:
        logger.error(
            "dismiss_popup_failed",
            extra={"candidate_id": body.id, "error_message": str(exc)},
        )
        raise HTTPException(
            status_code=500,
            detail=f"Could not record dismissal: {exc}",
        ) from exc
    store.apply(response)
    return record


@router.delete("/seen", status_code=200)
async def clear_seen(request: Request, response: Response) -> dict[str, str]:
    """Drop the suppression cookie."""
    store = _cookie_store(request)
    store.clear()
    store.apply(response)
    return {"message": "Popup history cleared"}
