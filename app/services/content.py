"""Content API client for pinned notices and approved events.

Both endpoints are filtered server-side; this client only fetches and
parses.  Failures propagate to the caller, which decides how to degrade.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from app.core.config import settings
from app.core.constants import EVENTS_PARAMS, EVENTS_PATH, NOTICES_PARAMS, NOTICES_PATH
from app.models.content import Event, Notice

logger = logging.getLogger(__name__)

_M = TypeVar("_M", bound=BaseModel)


def _parse_items(payload: Any, model: type[_M], stream: str) -> list[_M]:
    """Validate each item of a list payload, skipping malformed ones."""
    if not isinstance(payload, list):
        raise ValueError(f"Expected a list of {stream}, got {type(payload).__name__}")

    items: list[_M] = []
    for raw in payload:
        try:
            items.append(model.model_validate(raw))
        except ValidationError as exc:
            logger.warning(
                "content_item_skipped",
                extra={
                    "stream": stream,
                    "item_id": raw.get("id") if isinstance(raw, dict) else None,
                    "error_message": str(exc),
                },
            )
    return items


class ContentClient:
    """Thin async wrapper over the content API."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None) -> None:
        self.base_url = (base_url or settings.CONTENT_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.CONTENT_API_TIMEOUT

    async def _get_json(self, path: str, params: dict[str, str]) -> Any:
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            response = await client.get(f"{self.base_url}{path}", params=params)
            response.raise_for_status()
            return response.json()

    async def fetch_pinned_notices(self) -> list[Notice]:
        """Return approved, pinned notices."""
        payload = await self._get_json(NOTICES_PATH, NOTICES_PARAMS)
        notices = _parse_items(payload, Notice, "notices")
        logger.debug("notices_fetched", extra={"count": len(notices)})
        return notices

    async def fetch_events(self) -> list[Event]:
        """Return approved events."""
        payload = await self._get_json(EVENTS_PATH, EVENTS_PARAMS)
        events = _parse_items(payload, Event, "events")
        logger.debug("events_fetched", extra={"count": len(events)})
        return events

    async def ping(self) -> bool:
        """Return True if the content API answers at all."""
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, follow_redirects=True
            ) as client:
                response = await client.get(
                    f"{self.base_url}{EVENTS_PATH}", params=EVENTS_PARAMS
                )
        except httpx.HTTPError:
            logger.warning("content_api_unreachable", exc_info=True)
            return False
        return response.status_code < 500
