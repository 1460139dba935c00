"""Enum types shared by the content API payloads and the popup engine."""

from enum import Enum


class CandidateKind(str, Enum):
    """Kind of item a popup can show."""
    notice = "notice"
    event = "event"


class EventStatus(str, Enum):
    """Server-computed lifecycle status of an event."""
    upcoming = "upcoming"
    running = "running"
    past = "past"


class PriorityTier(str, Enum):
    """Rule of the priority table that produced a popup decision."""
    mixed_events = "mixed_events"
    ongoing_event = "ongoing_event"
    upcoming_event = "upcoming_event"
    pinned_notice = "pinned_notice"
    nothing = "nothing"


class OrchestratorState(str, Enum):
    """Lifecycle of a single popup evaluation."""
    idle = "idle"
    evaluating = "evaluating"
    resolved = "resolved"
    closed = "closed"
