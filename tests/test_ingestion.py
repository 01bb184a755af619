"""Tests for webhook body extraction, filtering and per-request broadcast."""

import json
import re
from datetime import datetime

import pytest
from pydantic import ValidationError

from presence_relay.server.ingestion import extract_candidates, process_notifications, qualifies
from presence_relay.shared.models import locale_timestamp

from conftest import FakeSocket, presence


class TestExtractCandidates:
    def test_value_list(self):
        body = json.dumps({"value": [presence("u1")]}).encode()
        assert extract_candidates(body) == [presence("u1")]

    @pytest.mark.parametrize("body", [
        b"",
        b"not json",
        b"[1, 2, 3]",
        b'{"value": "nope"}',
        b'{"other": []}',
        b"\xff\xfe",
    ])
    def test_malformed_bodies_become_empty(self, body):
        assert extract_candidates(body) == []


class TestQualifies:
    def test_requires_non_empty_availability(self):
        assert qualifies(presence("u1", "Available"))
        assert not qualifies(presence("u1", None))
        assert not qualifies(presence("u1", ""))

    def test_odd_shapes_are_dropped(self):
        assert not qualifies(None)
        assert not qualifies("text")
        assert not qualifies({"resourceData": "busy"})
        assert not qualifies({})


class TestProcessNotifications:
    async def test_only_events_with_availability_are_kept(self, hub):
        accepted = await process_notifications(hub, [
            presence("u1", "Busy", "InACall"),
            presence("u2", None),
            {"changeType": "updated"},
            presence("u3", "Away"),
        ])

        assert {e.id for e in accepted} == {"u1", "u3"}
        assert {e.id for e in hub.all_events()} == {"u1", "u3"}
        busy = next(e for e in hub.all_events() if e.id == "u1")
        assert busy.activity == "InACall"

    async def test_one_broadcast_per_request(self, hub):
        sock = FakeSocket()
        hub.register("a", sock)

        await process_notifications(hub, [presence(f"u{i}") for i in range(3)])

        assert hub.broadcasts_sent == 1
        assert len(sock.sent) == 1
        assert len(sock.sent[0]) == 3

    async def test_no_broadcast_when_nothing_qualifies(self, hub):
        sock = FakeSocket()
        hub.register("a", sock)

        accepted = await process_notifications(hub, [presence("u2", None)])

        assert accepted == []
        assert hub.broadcasts_sent == 0
        assert sock.sent == []

    async def test_failure_keeps_already_appended_events(self, hub):
        sock = FakeSocket()
        hub.register("a", sock)

        with pytest.raises(ValidationError):
            await process_notifications(hub, [
                presence("good", "Busy"),
                {"resourceData": {"id": "bad", "availability": 5}},
            ])

        assert [e.id for e in hub.all_events()] == ["good"]
        assert len(sock.sent) == 1

    async def test_numeric_id_is_kept_as_sent(self, hub):
        [event] = await process_notifications(hub, [{"resourceData": {"availability": "Busy", "id": 42}}])
        assert event.id == 42
        assert hub.all_events() == [event]

    async def test_server_assigns_timestamp(self, hub):
        candidate = presence("u1")
        candidate["resourceData"]["timestamp"] = "caller supplied"

        [event] = await process_notifications(hub, [candidate])

        assert event.timestamp != "caller supplied"
        assert re.fullmatch(r"\d{1,2}/\d{1,2}/\d{4}, \d{1,2}:\d{2}:\d{2} (AM|PM)", event.timestamp)


class TestLocaleTimestamp:
    @pytest.mark.parametrize("moment, expected", [
        (datetime(2026, 10, 19, 15, 4, 5), "10/19/2026, 3:04:05 PM"),
        (datetime(2026, 1, 2, 0, 0, 9), "1/2/2026, 12:00:09 AM"),
        (datetime(2026, 7, 4, 12, 30, 0), "7/4/2026, 12:30:00 PM"),
        (datetime(2026, 7, 4, 9, 5, 59), "7/4/2026, 9:05:59 AM"),
    ])
    def test_en_us_layout(self, moment, expected):
        assert locale_timestamp(moment) == expected
