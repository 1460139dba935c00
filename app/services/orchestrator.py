"""Popup evaluation orchestration.

One ``PopupOrchestrator`` drives a single visit:

1. ``start`` schedules the evaluation after a short settle delay.
2. Notices and events are fetched concurrently and joined; a failing
   stream degrades to an empty list without affecting the other.
3. Validation, categorization and priority resolution pick at most one
   candidate, which the suppression store may still veto.
4. ``dismiss`` records the shown candidate; ``close`` tears everything
   down so that no state changes after it returns.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

from app.core.constants import NOTICE_MAX_AGE_DAYS, SETTLE_DELAY_SECONDS
from app.models.content import Event, Notice
from app.models.enums import OrchestratorState, PriorityTier
from app.models.popup import PopupCandidate, SuppressionRecord
from app.services.categorize import categorize_events
from app.services.content import ContentClient
from app.services.priority import IndexChooser, random_index, resolve_tier
from app.services.suppression import SuppressionStore
from app.services.validation import filter_events, filter_notices, utc_now

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[list[Any]]]


# ---------------------------------------------------------------------------
# Fan-out / fan-in
# ---------------------------------------------------------------------------


async def _settle(fetch: Fetcher, stream: str) -> list[Any]:
    """Await *fetch*, turning any failure into an empty list."""
    try:
        return await fetch()
    except Exception as exc:
        logger.warning(
            "content_fetch_failed",
            extra={"stream": stream, "error_message": str(exc)},
        )
        return []


async def fetch_settled(
    fetch_notices: Fetcher,
    fetch_events: Fetcher,
) -> tuple[list[Notice], list[Event]]:
    """Run both fetches concurrently and wait for both to settle."""
    notices, events = await asyncio.gather(
        _settle(fetch_notices, "notices"),
        _settle(fetch_events, "events"),
    )
    return notices, events


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class PopupOrchestrator:
    """Decides, once per visit, whether and which popup to show."""

    def __init__(
        self,
        store: SuppressionStore,
        fetch_notices: Fetcher,
        fetch_events: Fetcher,
        *,
        choose_index: IndexChooser = random_index,
        settle_delay: float = SETTLE_DELAY_SECONDS,
        notice_max_age_days: int = NOTICE_MAX_AGE_DAYS,
        clock: Callable[[], datetime] = utc_now,
        on_resolved: Callable[[PopupCandidate], None] | None = None,
    ) -> None:
        self.store = store
        self._fetch_notices = fetch_notices
        self._fetch_events = fetch_events
        self._choose_index = choose_index
        self.settle_delay = settle_delay
        self.notice_max_age_days = notice_max_age_days
        self._clock = clock
        self._on_resolved = on_resolved

        self.state = OrchestratorState.idle
        self.tier: PriorityTier | None = None
        self.candidate: PopupCandidate | None = None
        self._task: asyncio.Task[PopupCandidate | None] | None = None
        self._dismissed = False

    @classmethod
    def from_client(
        cls,
        store: SuppressionStore,
        client: ContentClient,
        **kwargs: Any,
    ) -> PopupOrchestrator:
        """Build an orchestrator fetching from *client*."""
        return cls(store, client.fetch_pinned_notices, client.fetch_events, **kwargs)

    @property
    def closed(self) -> bool:
        return self.state is OrchestratorState.closed

    def start(self) -> asyncio.Task[PopupCandidate | None]:
        """Schedule the delayed evaluation; repeated calls return the same task."""
        if self.closed:
            raise RuntimeError("Orchestrator is closed")
        if self._task is None:
            self._task = asyncio.create_task(self._evaluate_after_delay())
        return self._task

    async def wait(self) -> PopupCandidate | None:
        """Wait for the evaluation and return the candidate to display."""
        if self._task is None:
            if self.closed:
                return None
            self.start()
        try:
            return await self._task
        except asyncio.CancelledError:
            if self.closed:
                return None
            raise

    async def run(self) -> PopupCandidate | None:
        """Start the evaluation and wait for its result."""
        return await self.wait()

    def close(self) -> None:
        """Cancel pending work; no state is updated afterwards."""
        if self.closed:
            return
        self.state = OrchestratorState.closed
        if self._task is not None and not self._task.done():
            self._task.cancel()
            logger.debug("popup_evaluation_cancelled")

    def dismiss(self) -> SuppressionRecord | None:
        """Record the shown candidate as seen, at most once."""
        if self.closed or self.candidate is None or self._dismissed:
            return None
        self._dismissed = True
        return self.store.write(self.candidate.id, self.candidate.kind)

    # ------------------------------------------------------------------

    async def _evaluate_after_delay(self) -> PopupCandidate | None:
        if self.settle_delay > 0:
            await asyncio.sleep(self.settle_delay)
        if self.closed:
            return None

        self.state = OrchestratorState.evaluating
        notices, events = await fetch_settled(self._fetch_notices, self._fetch_events)
        if self.closed:
            return None

        try:
            tier, candidate = self._decide(notices, events)
        except Exception as exc:
            logger.error(
                "popup_evaluation_failed",
                extra={"error_message": str(exc)},
            )
            tier, candidate = None, None

        self.tier = tier
        self.candidate = candidate
        self.state = OrchestratorState.resolved

        logger.info(
            "popup_evaluated",
            extra={
                "tier": tier.value if tier else None,
                "show": candidate is not None,
                "candidate_id": candidate.id if candidate else None,
                "notices_fetched": len(notices),
                "events_fetched": len(events),
            },
        )

        if candidate is not None and self._on_resolved is not None:
            self._on_resolved(candidate)
        return candidate

    def _decide(
        self,
        notices: list[Notice],
        events: list[Event],
    ) -> tuple[PriorityTier, PopupCandidate | None]:
        valid_notices = filter_notices(
            notices, now=self._clock(), max_days=self.notice_max_age_days
        )
        categorized = categorize_events(filter_events(events))
        tier, candidate = resolve_tier(valid_notices, categorized, self._choose_index)

        if candidate is not None and not self.store.should_show(candidate.id, candidate.kind):
            logger.info(
                "popup_suppressed",
                extra={"candidate_id": candidate.id, "candidate_kind": candidate.kind.value},
            )
            return tier, None
        return tier, candidate
