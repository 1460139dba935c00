"""Pydantic models for the content API payloads.

Only the fields the popup engine reads are declared; everything else the
API returns is ignored.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Notice(BaseModel):
    """Notice as returned by ``GET /api/notice/notices/``."""
    model_config = ConfigDict(extra="ignore")

    id: int | str
    title: str
    content: str | None = None
    flyer: str | None = None
    image: str | None = None
    pinned: bool | None = None
    status: str | None = None
    created_at: datetime | None = None

    @property
    def image_url(self) -> str | None:
        """Flyer artwork, falling back to the generic image field."""
        return self.flyer or self.image


class Event(BaseModel):
    """Event as returned by ``GET /api/event/events/``."""
    model_config = ConfigDict(extra="ignore")

    id: int | str
    slug: str | None = None
    title: str
    description: str | None = None
    image: str | None = None
    status: str | None = None
    event_status: str | None = None  # upcoming | running | past, kept raw
