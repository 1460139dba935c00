"""Candidate validation: image and recency predicates plus stream filters.

Notices must carry an image and be at most ``NOTICE_MAX_AGE_DAYS`` old;
events only need an image.  Anything failing is dropped here and never
reaches the priority resolver.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from app.core.constants import IMAGE_EXTENSIONS, NOTICE_MAX_AGE_DAYS
from app.models.content import Event, Notice
from app.models.enums import EventStatus
from app.models.popup import EventCandidate, NoticeCandidate

logger = logging.getLogger(__name__)

_ONE_DAY = timedelta(days=1)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_valid_image(url: str | None) -> bool:
    """Return True if *url* looks like an image.

    The extension only has to appear somewhere in the URL, so
    ``/file?name=a.png`` passes as well.
    """
    if not url:
        return False
    lowered = url.lower()
    return any(ext in lowered for ext in IMAGE_EXTENSIONS)


def is_recent(
    created_at: datetime | None,
    max_days: int = NOTICE_MAX_AGE_DAYS,
    now: datetime | None = None,
) -> bool:
    """Return True if *created_at* lies within *max_days* of *now*.

    The distance is rounded up to whole days, so anything up to exactly
    ``max_days * 24h`` old still counts.  Naive datetimes are read as UTC.
    """
    if created_at is None:
        return False
    current = _as_utc(now or utc_now())
    elapsed = abs(current - _as_utc(created_at))
    days = math.ceil(elapsed / _ONE_DAY)
    return days <= max_days


def filter_notices(
    notices: Iterable[Notice],
    now: datetime | None = None,
    max_days: int = NOTICE_MAX_AGE_DAYS,
) -> list[NoticeCandidate]:
    """Keep notices with a valid image that are recent enough, in order."""
    current = now or utc_now()
    kept: list[NoticeCandidate] = []
    dropped = 0

    for notice in notices:
        image_url = notice.image_url
        if not is_valid_image(image_url) or not is_recent(
            notice.created_at, max_days=max_days, now=current
        ):
            dropped += 1
            continue
        kept.append(
            NoticeCandidate(
                id=str(notice.id),
                title=notice.title,
                image_url=image_url,
                description=notice.content,
                created_at=_as_utc(notice.created_at),
            )
        )

    logger.debug(
        "notices_filtered",
        extra={"kept": len(kept), "dropped": dropped},
    )
    return kept


def filter_events(events: Iterable[Event]) -> list[EventCandidate]:
    """Keep events with a valid image, in order.

    Events whose ``event_status`` is not a known status are dropped too,
    since no bucket could ever hold them.
    """
    kept: list[EventCandidate] = []
    dropped = 0

    for event in events:
        if not is_valid_image(event.image):
            dropped += 1
            continue
        try:
            status = EventStatus(event.event_status)
        except ValueError:
            dropped += 1
            continue
        kept.append(
            EventCandidate(
                id=str(event.id),
                title=event.title,
                image_url=event.image,
                description=event.description,
                status=status,
            )
        )

    logger.debug(
        "events_filtered",
        extra={"kept": len(kept), "dropped": dropped},
    )
    return kept
