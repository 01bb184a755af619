"""
MODULE OVERVIEW:
The Rich terminal dashboard for a relay subscriber.

WHAT IS HAPPENING HERE:
The subscriber runs in the background; every snapshot it receives replaces the feed
table wholesale, because the relay always sends the full recent window rather than deltas.
An empty snapshot after a non-empty one usually means another subscriber disconnected
and the relay wiped its buffer.
"""

import asyncio
from collections import deque
from datetime import datetime
from typing import List

from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from presence_relay.client.subscriber import RelaySubscriber
from presence_relay.shared.models import PresenceEvent

AVAILABILITY_STYLES = {
    "Available": "green",
    "Busy": "red",
    "DoNotDisturb": "bold red",
    "Away": "yellow",
    "BeRightBack": "yellow",
    "Offline": "dim",
}


def availability_style(availability: str) -> str:
    return AVAILABILITY_STYLES.get(availability, "white")


class Visualizer:
    def __init__(self, subscriber: RelaySubscriber):
        self.subscriber = subscriber
        self.snapshot: List[PresenceEvent] = []
        self.status = "INITIALIZING"
        self.timeline = deque(maxlen=8)

    def on_status_change(self, status: str):
        self.status = status
        ts = datetime.now().strftime("%H:%M:%S")
        self.timeline.appendleft(f"[{ts}] State: {status}")

    def on_snapshot(self, snapshot: List[PresenceEvent]):
        if self.snapshot and not snapshot:
            ts = datetime.now().strftime("%H:%M:%S")
            self.timeline.appendleft(f"[{ts}] Buffer wiped")
        self.snapshot = snapshot

    def build_table(self) -> Table:
        table = Table(title="Recent Presence Events", expand=True)
        table.add_column("Received", style="cyan", no_wrap=True)
        table.add_column("User", style="magenta")
        table.add_column("Availability")
        table.add_column("Activity", style="blue")

        # Newest on top
        for event in reversed(self.snapshot):
            style = availability_style(event.availability)
            table.add_row(
                event.timestamp,
                "-" if event.id is None else str(event.id),
                f"[{style}]{event.availability}[/]",
                event.activity or "-",
            )
        return table

    def generate_layout(self) -> Layout:
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="main")
        )
        layout["main"].split_row(
            Layout(name="left", ratio=2),
            Layout(name="right", ratio=1)
        )
        layout["right"].split_column(
            Layout(name="stats"),
            Layout(name="timeline"),
        )

        color = "green" if self.status == "ACTIVE" else "red" if self.status == "CLOSED" else "yellow"
        layout["header"].update(
            Panel(f"[{color} bold]{self.subscriber.ws_url} | Status: {self.status}[/]", style=color)
        )
        layout["left"].update(Panel(self.build_table(), title="Feed"))

        stats = self.subscriber.stats
        stats_text = (
            f"Snapshots: {stats['snapshots_received']}\n"
            f"Events seen: {stats['events_seen']}\n"
            f"Reconnects: {stats['reconnect_count']}"
        )
        layout["stats"].update(Panel(stats_text, title="Connection Stats"))
        layout["timeline"].update(Panel("\n".join(self.timeline), title="Timeline"))
        return layout

    async def run(self, duration_s: float):
        async def snapshot_hook(s): self.on_snapshot(s)
        async def status_hook(s): self.on_status_change(s)

        self.subscriber.set_callbacks(snapshot_hook, status_hook)
        subscriber_task = asyncio.create_task(self.subscriber.run(duration_s))

        with Live(self.generate_layout(), refresh_per_second=4) as live:
            while not subscriber_task.done():
                live.update(self.generate_layout())
                await asyncio.sleep(0.25)
            live.update(self.generate_layout())
