"""Shared test fixtures.

Provides a FastAPI ``test_client``, a controllable clock, an in-memory
suppression store and factories for content API payloads.
"""

from __future__ import annotations

import random
from collections.abc import Generator
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from app.models.content import Event, Notice
from app.services.priority import IndexChooser
from app.services.suppression import InMemorySuppressionStore

NOW = datetime(2024, 5, 10, 12, 0, 0, tzinfo=timezone.utc)


def seeded_chooser(seed: int) -> IndexChooser:
    """Return an index chooser backed by its own ``random.Random(seed)``."""
    return random.Random(seed).randrange


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


def make_notice(
    notice_id: int | str = 1,
    *,
    flyer: str | None = "https://cdn.example.org/flyers/notice.png",
    age: timedelta | None = timedelta(days=3),
    **overrides: Any,
) -> Notice:
    """Build a ``Notice`` created *age* before ``NOW``."""
    data: dict[str, Any] = {
        "id": notice_id,
        "title": f"Notice {notice_id}",
        "content": "Pinned notice body",
        "flyer": flyer,
        "pinned": True,
        "status": "APPROVED",
        "created_at": (NOW - age) if age is not None else None,
    }
    data.update(overrides)
    return Notice(**data)


def make_event(
    event_id: int | str = 1,
    *,
    event_status: str | None = "upcoming",
    image: str | None = "https://cdn.example.org/events/event.jpg",
    **overrides: Any,
) -> Event:
    """Build an approved ``Event``."""
    data: dict[str, Any] = {
        "id": event_id,
        "slug": f"event-{event_id}",
        "title": f"Event {event_id}",
        "description": "Event description",
        "image": image,
        "status": "APPROVED",
        "event_status": event_status,
    }
    data.update(overrides)
    return Event(**data)


@pytest.fixture()
def clock() -> FakeClock:
    """A clock frozen at ``NOW``."""
    return FakeClock()


@pytest.fixture()
def memory_store(clock: FakeClock) -> InMemorySuppressionStore:
    """An empty in-memory suppression store driven by ``clock``."""
    return InMemorySuppressionStore(clock=clock)


@pytest.fixture()
def no_settle_delay() -> Generator[None, None, None]:
    """Disable the settle delay for endpoint tests."""
    from app.core.config import settings

    with patch.object(settings, "POPUP_SETTLE_DELAY_MS", 0):
        yield


@pytest.fixture()
def test_client() -> Generator[TestClient, None, None]:
    """Provide a FastAPI TestClient."""
    from app.main import app

    with TestClient(app) as client:
        yield client
