"""Pydantic models for popup candidates, suppression records and decisions."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import CandidateKind, EventStatus, OrchestratorState, PriorityTier


class PopupCandidate(BaseModel):
    """An item eligible to be shown as a popup."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    image_url: str
    description: str | None = None
    kind: CandidateKind


class NoticeCandidate(PopupCandidate):
    """A pinned, approved notice that passed image and recency checks."""
    kind: CandidateKind = CandidateKind.notice
    created_at: datetime


class EventCandidate(PopupCandidate):
    """An approved event that passed the image check."""
    kind: CandidateKind = CandidateKind.event
    status: EventStatus


class CategorizedEvents(BaseModel):
    """Events split into disjoint status buckets."""
    model_config = ConfigDict(frozen=True)

    ongoing: list[EventCandidate] = Field(default_factory=list)
    upcoming: list[EventCandidate] = Field(default_factory=list)


class SuppressionRecord(BaseModel):
    """The single last-shown popup record."""
    model_config = ConfigDict(frozen=True)

    id: str
    kind: CandidateKind
    shown_at: datetime


class DismissRequest(BaseModel):
    """Body of ``POST /api/v1/popup/dismiss``."""
    id: str = Field(..., min_length=1)
    type: CandidateKind


class PopupDecision(BaseModel):
    """Response of ``GET /api/v1/popup``."""
    show: bool
    popup: NoticeCandidate | EventCandidate | None = None
    tier: PriorityTier | None = None
    state: OrchestratorState
