"""Unit tests for the suppression store, its codec and cookie backend."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from urllib.parse import quote, unquote

import pytest
from starlette.responses import Response

from app.models.enums import CandidateKind
from app.models.popup import SuppressionRecord
from app.services.suppression import (
    CookieSuppressionStore,
    InMemorySuppressionStore,
    decode_record,
    encode_record,
)
from conftest import NOW, FakeClock

TTL = timedelta(hours=8)
ONE_MS = timedelta(milliseconds=1)


class TestCodec:
    """Percent-encoded JSON ``{id, type, timestamp}``."""

    def test_encoded_shape(self) -> None:
        record = SuppressionRecord(id="42", kind=CandidateKind.event, shown_at=NOW)

        raw = encode_record(record)

        assert "{" not in raw and '"' not in raw
        payload = json.loads(unquote(raw))
        assert payload == {
            "id": "42",
            "type": "event",
            "timestamp": int(NOW.timestamp() * 1000),
        }

    def test_decode_value_written_by_browser(self) -> None:
        raw = quote(json.dumps({"id": "7", "type": "notice", "timestamp": 1715342400000}))

        record = decode_record(raw)

        assert record == SuppressionRecord(
            id="7",
            kind=CandidateKind.notice,
            shown_at=datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc),
        )

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            "",
            "not-json",
            "%7Bbroken",
            quote(json.dumps({"id": "1", "type": "banner", "timestamp": 1})),
            quote(json.dumps({"id": "1", "timestamp": 1})),
            quote(json.dumps({"id": "1", "type": "event", "timestamp": "soon"})),
            quote(json.dumps(["id", "type"])),
            quote(json.dumps({"id": "1", "type": "event", "timestamp": 1e30})),
        ],
    )
    def test_unreadable_value_is_no_record(self, raw: str | None) -> None:
        assert decode_record(raw) is None


class TestShouldShow:
    """Decision order: no record, same item, window, elapsed."""

    def test_no_record_shows(self, memory_store: InMemorySuppressionStore) -> None:
        assert memory_store.should_show("1", CandidateKind.event) is True

    def test_same_item_never_reshown(
        self, memory_store: InMemorySuppressionStore, clock: FakeClock
    ) -> None:
        """Stored E1 shown an hour ago blocks E1."""
        memory_store.write("E1", CandidateKind.event)
        clock.advance(timedelta(hours=1))

        assert memory_store.should_show("E1", CandidateKind.event) is False

    def test_different_item_blocked_inside_window(
        self, memory_store: InMemorySuppressionStore, clock: FakeClock
    ) -> None:
        """Stored E1 shown 30 minutes ago blocks E2 as well."""
        memory_store.write("E1", CandidateKind.event)
        clock.advance(timedelta(minutes=30))

        assert memory_store.should_show("E2", CandidateKind.event) is False

    def test_same_id_other_kind_blocked_inside_window(
        self, memory_store: InMemorySuppressionStore
    ) -> None:
        memory_store.write("1", CandidateKind.notice)
        assert memory_store.should_show("1", CandidateKind.event) is False

    def test_window_boundary(
        self, memory_store: InMemorySuppressionStore, clock: FakeClock
    ) -> None:
        memory_store.write("E1", CandidateKind.event)

        clock.advance(TTL - ONE_MS)
        assert memory_store.should_show("E2", CandidateKind.event) is False

        clock.advance(2 * ONE_MS)
        assert memory_store.should_show("E2", CandidateKind.event) is True

    def test_window_boundary_without_storage_expiry(self) -> None:
        """The TTL check alone decides when storage keeps the record."""
        writer_clock = FakeClock()
        writer = CookieSuppressionStore(None, clock=writer_clock)
        writer.write("E1", CandidateKind.event)
        raw = writer._load()

        before = CookieSuppressionStore(raw, clock=FakeClock(NOW + TTL - ONE_MS))
        after = CookieSuppressionStore(raw, clock=FakeClock(NOW + TTL + ONE_MS))

        assert before.should_show("E2", CandidateKind.event) is False
        assert after.should_show("E2", CandidateKind.event) is True
        assert after.should_show("E1", CandidateKind.event) is False

    def test_repeated_checks_agree(
        self, memory_store: InMemorySuppressionStore, clock: FakeClock
    ) -> None:
        memory_store.write("E1", CandidateKind.event)
        clock.advance(timedelta(hours=2))

        for candidate_id in ("E1", "E2"):
            first = memory_store.should_show(candidate_id, CandidateKind.event)
            second = memory_store.should_show(candidate_id, CandidateKind.event)
            assert first == second

    def test_corrupt_value_fails_open(self, memory_store: InMemorySuppressionStore) -> None:
        memory_store._save("%7B%22id%22%3A", NOW + timedelta(days=1))
        assert memory_store.read() is None
        assert memory_store.should_show("E1", CandidateKind.event) is True


class TestInMemoryStore:
    """Single record, replaced on write, expiring with the window."""

    def test_write_replaces_previous(
        self, memory_store: InMemorySuppressionStore, clock: FakeClock
    ) -> None:
        memory_store.write("E1", CandidateKind.event)
        clock.advance(timedelta(minutes=5))
        memory_store.write("N1", CandidateKind.notice)

        record = memory_store.read()

        assert record is not None
        assert (record.id, record.kind) == ("N1", CandidateKind.notice)
        assert record.shown_at == NOW + timedelta(minutes=5)

    def test_record_expires_after_window(
        self, memory_store: InMemorySuppressionStore, clock: FakeClock
    ) -> None:
        memory_store.write("E1", CandidateKind.event)

        clock.advance(TTL)

        assert memory_store.read() is None
        assert memory_store.should_show("E1", CandidateKind.event) is True

    def test_clear(self, memory_store: InMemorySuppressionStore) -> None:
        memory_store.write("E1", CandidateKind.event)
        memory_store.clear()
        assert memory_store.read() is None


class TestCookieStore:
    """Buffered writes copied to the response as Set-Cookie."""

    def test_reads_request_cookie(self) -> None:
        raw = encode_record(
            SuppressionRecord(id="3", kind=CandidateKind.notice, shown_at=NOW)
        )
        store = CookieSuppressionStore(raw, clock=FakeClock())

        record = store.read()

        assert record is not None and record.id == "3"

    def test_write_sets_cookie(self) -> None:
        store = CookieSuppressionStore(None, cookie_name="popup_seen", clock=FakeClock())
        response = Response()

        store.write("E9", CandidateKind.event)
        store.apply(response)

        header = response.headers["set-cookie"]
        assert header.startswith("popup_seen=")
        assert "Max-Age=28800" in header
        assert "Path=/" in header
        assert "samesite=lax" in header.lower()

        value = header.split(";", 1)[0].split("=", 1)[1]
        record = decode_record(value)
        assert record is not None
        assert (record.id, record.kind) == ("E9", CandidateKind.event)

    def test_clear_deletes_cookie(self) -> None:
        store = CookieSuppressionStore("anything", clock=FakeClock())
        response = Response()

        store.clear()
        store.apply(response)

        header = response.headers["set-cookie"]
        assert header.startswith("popup_seen=")
        assert "Max-Age=0" in header

    def test_apply_without_changes_is_noop(self) -> None:
        store = CookieSuppressionStore(None, clock=FakeClock())
        response = Response()

        store.read()
        store.apply(response)

        assert "set-cookie" not in response.headers
