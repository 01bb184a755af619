"""Tests for the subscriber client and its dashboard."""

import json

from typer.testing import CliRunner

from presence_relay.client.subscriber import RelaySubscriber
from presence_relay.client.visualizer import Visualizer, availability_style
from presence_relay.runner import app as cli
from presence_relay.shared.models import PresenceEvent


def frame(*ids):
    return json.dumps([
        {"id": i, "availability": "Busy", "activity": None, "timestamp": "10/19/2026, 3:04:05 PM"}
        for i in ids
    ])


def test_ws_url_is_derived_from_http_base():
    assert RelaySubscriber("me", "http://relay:3000/").ws_url == "ws://relay:3000/ws?client_id=me"
    assert RelaySubscriber("me", "https://relay").ws_url.startswith("wss://relay/ws")


async def test_handle_message_updates_snapshot_and_stats():
    subscriber = RelaySubscriber("me", "http://relay")
    seen = []

    async def on_snapshot(snapshot):
        seen.append(snapshot)

    subscriber.set_callbacks(on_snapshot, None)
    snapshot = await subscriber.handle_message(frame("u1", "u2"))

    assert [e.id for e in snapshot] == ["u1", "u2"]
    assert seen == [snapshot]
    assert subscriber.stats["snapshots_received"] == 1
    assert subscriber.stats["events_seen"] == 2


async def test_bad_frame_is_ignored():
    subscriber = RelaySubscriber("me", "http://relay")
    assert await subscriber.handle_message('{"not": "a list"}') is None
    assert subscriber.stats["snapshots_received"] == 0


def test_visualizer_notes_buffer_wipe():
    visualizer = Visualizer(RelaySubscriber("me", "http://relay"))
    visualizer.on_snapshot([PresenceEvent(id="u1", availability="Busy")])
    visualizer.on_snapshot([])
    assert any("Buffer wiped" in line for line in visualizer.timeline)


def test_visualizer_table_lists_newest_first():
    visualizer = Visualizer(RelaySubscriber("me", "http://relay"))
    visualizer.on_snapshot([
        PresenceEvent(id="u1", availability="Busy"),
        PresenceEvent(id="u2", availability="Away"),
    ])
    table = visualizer.build_table()
    assert table.row_count == 2
    assert list(table.columns[1].cells) == ["u2", "u1"]
    assert visualizer.generate_layout() is not None


def test_availability_style_fallback():
    assert availability_style("Busy") == "red"
    assert availability_style("Something") == "white"


def test_cli_lists_commands():
    result = CliRunner().invoke(cli, ["--help"])
    assert result.exit_code == 0
    for command in ("serve", "listen", "notify", "handshake", "events", "stats"):
        assert command in result.output


def test_visualizer_renders_numeric_ids():
    visualizer = Visualizer(RelaySubscriber("me", "http://relay"))
    visualizer.on_snapshot([PresenceEvent(id=7, availability="Busy"), PresenceEvent(availability="Away")])
    assert list(visualizer.build_table().columns[1].cells) == ["-", "7"]
