"""
MODULE OVERVIEW:
A WebSocket subscriber for the relay.

WHAT IS HAPPENING HERE:
We use the `websockets` library. The relay never expects anything from us, so this is
a pure read loop: every frame is a JSON array of up to five presence events (the
catch-up snapshot on connect, then one per broadcast or heartbeat).
"""

from datetime import datetime, timezone
from typing import Awaitable, Callable, List

import websockets
from loguru import logger
from pydantic import ValidationError

from presence_relay.shared.client_utils import make_client_stats, with_reconnect
from presence_relay.shared.models import PresenceEvent, snapshot_adapter
from presence_relay.shared.route_utils import ws_url_from_http

SnapshotCallback = Callable[[List[PresenceEvent]], Awaitable[None]]
StatusCallback = Callable[[str], Awaitable[None]]


class RelaySubscriber:
    def __init__(self, client_id: str, server_base_url: str):
        self.client_id = client_id
        self.ws_url = f"{ws_url_from_http(server_base_url)}/ws?client_id={client_id}"

        self.on_snapshot_callback: SnapshotCallback | None = None
        self.on_status_change_callback: StatusCallback | None = None

        self.stats = make_client_stats()
        self.latest_snapshot: List[PresenceEvent] = []

    def set_callbacks(self, on_snapshot: SnapshotCallback | None, on_status_change: StatusCallback | None):
        self.on_snapshot_callback = on_snapshot
        self.on_status_change_callback = on_status_change

    async def _emit_status(self, status: str):
        if self.on_status_change_callback:
            await self.on_status_change_callback(status)

    async def handle_message(self, message: str | bytes) -> List[PresenceEvent] | None:
        try:
            snapshot = snapshot_adapter.validate_json(message)
        except ValidationError as e:
            logger.warning(f"client_id={self.client_id} event=bad_frame reason='{e.error_count()} errors'")
            return None

        self.latest_snapshot = snapshot
        self.stats["snapshots_received"] += 1
        self.stats["events_seen"] += len(snapshot)
        self.stats["last_snapshot_at"] = datetime.now(timezone.utc).isoformat()
        if self.on_snapshot_callback:
            await self.on_snapshot_callback(snapshot)
        return snapshot

    async def connect(self) -> None:
        async with websockets.connect(self.ws_url) as ws:
            await self._emit_status("ACTIVE")
            async for message in ws:
                await self.handle_message(message)
        await self._emit_status("DISCONNECTED")

    async def run(self, duration_s: float = 60.0) -> None:
        try:
            await with_reconnect(self.connect, self.stats, duration_s, client_id=self.client_id)
        finally:
            await self._emit_status("CLOSED")
