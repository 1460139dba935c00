"""Popup priority resolution.

Maps the filtered notices and categorized events to at most one popup
candidate.  Tiers are evaluated in order and the first match wins:

1. ongoing *and* upcoming events exist -- random pick over both, notices
   are ignored
2. ongoing events only -- the first ongoing event
3. upcoming events only -- random pick over upcoming
4. no qualifying event -- the first pinned notice
5. nothing to show

The random source is injected as ``choose_index(n)`` so that callers and
tests control the outcome.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Sequence
from typing import TypeVar

from app.models.enums import PriorityTier
from app.models.popup import CategorizedEvents, NoticeCandidate, PopupCandidate

logger = logging.getLogger(__name__)

IndexChooser = Callable[[int], int]

_T = TypeVar("_T")


def random_index(size: int) -> int:
    """Uniformly pick an index in ``[0, size)``."""
    return random.randrange(size)


def _pick(items: Sequence[_T], choose_index: IndexChooser) -> _T:
    index = choose_index(len(items))
    if not 0 <= index < len(items):
        raise ValueError(
            f"choose_index returned {index} for {len(items)} candidates"
        )
    return items[index]


def resolve_tier(
    notices: Sequence[NoticeCandidate],
    events: CategorizedEvents,
    choose_index: IndexChooser = random_index,
) -> tuple[PriorityTier, PopupCandidate | None]:
    """Return the matching tier together with the selected candidate."""
    if events.upcoming and events.ongoing:
        pool = [*events.upcoming, *events.ongoing]
        return PriorityTier.mixed_events, _pick(pool, choose_index)

    if events.ongoing:
        return PriorityTier.ongoing_event, events.ongoing[0]

    if events.upcoming:
        return PriorityTier.upcoming_event, _pick(events.upcoming, choose_index)

    if notices:
        return PriorityTier.pinned_notice, notices[0]

    return PriorityTier.nothing, None


def resolve_popup(
    notices: Sequence[NoticeCandidate],
    events: CategorizedEvents,
    choose_index: IndexChooser = random_index,
) -> PopupCandidate | None:
    """Select the single candidate to show, or None."""
    tier, candidate = resolve_tier(notices, events, choose_index)
    logger.debug(
        "popup_resolved",
        extra={
            "tier": tier.value,
            "candidate_id": candidate.id if candidate else None,
            "candidate_kind": candidate.kind.value if candidate else None,
        },
    )
    return candidate
