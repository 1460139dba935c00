"""Popup suppression state.

A single last-shown record ``{id, type, timestamp}`` is kept per client.
While it exists the same item is never shown again, and no other item may
interrupt the visitor until the suppression window has elapsed.  The
record is JSON, percent-encoded, so it can live in a cookie.

Backends implement ``_load`` / ``_save`` / ``clear``; the decision logic
lives on the base class so every backend behaves identically.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from urllib.parse import quote, unquote

from pydantic import BaseModel, ValidationError
from starlette.responses import Response

from app.core.constants import (
    POPUP_COOKIE_NAME,
    POPUP_COOKIE_PATH,
    POPUP_COOKIE_SAMESITE,
    SUPPRESSION_TTL,
)
from app.models.enums import CandidateKind
from app.models.popup import SuppressionRecord
from app.services.validation import utc_now

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class _StoredPayload(BaseModel):
    """Wire shape of the persisted record."""
    id: str
    type: CandidateKind
    timestamp: float  # epoch milliseconds


# ---------------------------------------------------------------------------
# Codec
# ---------------------------------------------------------------------------


def _to_epoch_ms(value: datetime) -> int:
    return round(value.timestamp() * 1000)


def encode_record(record: SuppressionRecord) -> str:
    """Serialize *record* to its percent-encoded JSON form."""
    payload = {
        "id": record.id,
        "type": record.kind.value,
        "timestamp": _to_epoch_ms(record.shown_at),
    }
    return quote(json.dumps(payload, separators=(",", ":")), safe="")


def decode_record(raw: str | None) -> SuppressionRecord | None:
    """Parse a stored value, returning None when absent or malformed."""
    if not raw:
        return None
    try:
        payload = _StoredPayload.model_validate_json(unquote(raw))
        shown_at = datetime.fromtimestamp(payload.timestamp / 1000, tz=timezone.utc)
    except (ValidationError, ValueError, OverflowError, OSError) as exc:
        logger.warning(
            "suppression_record_unreadable",
            extra={"error_message": str(exc)},
        )
        return None
    return SuppressionRecord(id=payload.id, kind=payload.type, shown_at=shown_at)


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


class SuppressionStore(ABC):
    """Single-record store deciding whether a popup may be shown."""

    def __init__(self, ttl: timedelta = SUPPRESSION_TTL, clock: Clock = utc_now) -> None:
        self.ttl = ttl
        self._clock = clock

    @abstractmethod
    def _load(self) -> str | None:
        """Return the raw stored value, or None."""

    @abstractmethod
    def _save(self, value: str, expires_at: datetime) -> None:
        """Persist *value*, replacing any previous one, until *expires_at*."""

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored record."""

    def read(self) -> SuppressionRecord | None:
        """Return the current record, or None if absent or unreadable."""
        return decode_record(self._load())

    def write(self, candidate_id: str, kind: CandidateKind) -> SuppressionRecord:
        """Record *candidate_id* as shown now, replacing any prior record."""
        now = self._clock()
        shown_at = datetime.fromtimestamp(_to_epoch_ms(now) / 1000, tz=timezone.utc)
        record = SuppressionRecord(id=candidate_id, kind=kind, shown_at=shown_at)
        self._save(encode_record(record), now + self.ttl)
        logger.info(
            "suppression_record_written",
            extra={"candidate_id": candidate_id, "candidate_kind": kind.value},
        )
        return record

    def should_show(self, candidate_id: str, kind: CandidateKind) -> bool:
        """Decide whether the given candidate may be displayed now."""
        record = self.read()
        if record is None:
            return True
        if record.id == candidate_id and record.kind == kind:
            return False
        if self._clock() - record.shown_at < self.ttl:
            return False
        return True


class InMemorySuppressionStore(SuppressionStore):
    """Process-local store with its own expiry, mirroring cookie expiry."""

    def __init__(self, ttl: timedelta = SUPPRESSION_TTL, clock: Clock = utc_now) -> None:
        super().__init__(ttl=ttl, clock=clock)
        self._value: str | None = None
        self._expires_at: datetime | None = None

    def _load(self) -> str | None:
        if self._expires_at is not None and self._clock() >= self._expires_at:
            self.clear()
        return self._value

    def _save(self, value: str, expires_at: datetime) -> None:
        self._value = value
        self._expires_at = expires_at

    def clear(self) -> None:
        self._value = None
        self._expires_at = None


class CookieSuppressionStore(SuppressionStore):
    """Store backed by a client cookie.

    Reads the value the client sent and buffers writes until ``apply``
    copies them onto the outgoing response.  Expiry is delegated to the
    client through ``Max-Age`` / ``Expires``.
    """

    def __init__(
        self,
        raw_cookie: str | None,
        cookie_name: str = POPUP_COOKIE_NAME,
        ttl: timedelta = SUPPRESSION_TTL,
        clock: Clock = utc_now,
    ) -> None:
        super().__init__(ttl=ttl, clock=clock)
        self.cookie_name = cookie_name
        self._value = raw_cookie
        self._expires_at: datetime | None = None
        self._dirty = False

    def _load(self) -> str | None:
        return self._value

    def _save(self, value: str, expires_at: datetime) -> None:
        self._value = value
        self._expires_at = expires_at
        self._dirty = True

    def clear(self) -> None:
        self._value = None
        self._expires_at = None
        self._dirty = True

    def apply(self, response: Response) -> None:
        """Write any pending change as ``Set-Cookie`` on *response*."""
        if not self._dirty:
            return
        if self._value is None:
            response.delete_cookie(
                self.cookie_name,
                path=POPUP_COOKIE_PATH,
                samesite=POPUP_COOKIE_SAMESITE,
            )
        else:
            response.set_cookie(
                self.cookie_name,
                self._value,
                max_age=int(self.ttl.total_seconds()),
                expires=self._expires_at,
                path=POPUP_COOKIE_PATH,
                samesite=POPUP_COOKIE_SAMESITE,
            )
        self._dirty = False
