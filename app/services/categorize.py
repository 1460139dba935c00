"""Split validated events into ongoing and upcoming buckets."""

from __future__ import annotations

from collections.abc import Iterable

from app.models.enums import EventStatus
from app.models.popup import CategorizedEvents, EventCandidate


def categorize_events(events: Iterable[EventCandidate]) -> CategorizedEvents:
    """Partition *events* by status, preserving input order.

    Past events land in neither bucket.
    """
    ongoing: list[EventCandidate] = []
    upcoming: list[EventCandidate] = []

    for event in events:
        if event.status == EventStatus.running:
            ongoing.append(event)
        elif event.status == EventStatus.upcoming:
            upcoming.append(event)

    return CategorizedEvents(ongoing=ongoing, upcoming=upcoming)
