"""
MODULE OVERVIEW:
The central state registry of the relay: the recent-event buffer, the live
subscriber registry and the broadcaster that fans snapshots out to them.

WHAT IS HAPPENING HERE:
One `RelayHub` is built per application and handed to every route through
`get_hub()`. It owns two structures behind ONE lock:
  - `_events`: every accepted presence event in arrival order. Storage is unbounded;
    consumers only ever see the last `recent_limit` entries.
  - `_subscribers`: `WebSocket -> client_id` for every open subscriber. The socket is
    the key; `client_id` is only a label for the logs, and two sockets may share one.

The lock is a plain `threading.Lock` and is never held across an `await`.
Snapshots are taken under it, then the actual socket sends run outside it,
concurrently, so a slow subscriber cannot stall the others.

Note the wipe rule in `unregister()`: ANY subscriber leaving clears the whole buffer,
even if other subscribers are still connected. Webhook consumers rely on that reset.
"""

import asyncio
import threading
from datetime import datetime, timezone
from typing import Dict, List

from fastapi.websockets import WebSocket, WebSocketState
from loguru import logger
from starlette.requests import HTTPConnection

from presence_relay.shared.models import PresenceEvent, RelayStats, snapshot_adapter


class RelayHub:
    def __init__(self, recent_limit: int = 5):
        self.recent_limit = recent_limit

        self._lock = threading.Lock()
        self._events: List[PresenceEvent] = []
        self._subscribers: Dict[WebSocket, str] = {}

        self.total_events_accepted = 0
        self.broadcasts_sent = 0
        self.buffer_wipes = 0
        self.startup_time = datetime.now(timezone.utc)

    # ==========================
    # EVENT BUFFER
    # ==========================
    def append(self, event: PresenceEvent) -> None:
        with self._lock:
            self._events.append(event)
            self.total_events_accepted += 1

    def recent_slice(self) -> List[PresenceEvent]:
        with self._lock:
            return self._recent_locked()

    def all_events(self) -> List[PresenceEvent]:
        with self._lock:
            return list(self._events)

    def _recent_locked(self) -> List[PresenceEvent]:
        if self.recent_limit <= 0:
            return []
        return self._events[-self.recent_limit:]

    @staticmethod
    def serialize(events: List[PresenceEvent]) -> str:
        return snapshot_adapter.dump_json(events).decode()

    # ==========================
    # SUBSCRIBER REGISTRY
    # ==========================
    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def register(self, client_id: str, websocket: WebSocket) -> List[PresenceEvent]:
        """Add a subscriber and return the catch-up snapshot it should be sent."""
        with self._lock:
            self._subscribers[websocket] = client_id
            snapshot = self._recent_locked()
            subscribers = len(self._subscribers)
        logger.info(f"client_id={client_id} protocol=websocket event=connect subscribers={subscribers}")
        return snapshot

    def unregister(self, websocket: WebSocket) -> None:
        with self._lock:
            client_id = self._subscribers.pop(websocket, "unknown")
            dropped = len(self._events)
            self._events.clear()
            self.buffer_wipes += 1
            remaining = len(self._subscribers)
        logger.info(
            f"client_id={client_id} protocol=websocket event=disconnect "
            f"subscribers={remaining} buffer_cleared={dropped}"
        )

    async def send_snapshot(self, client_id: str, websocket: WebSocket, events: List[PresenceEvent]) -> None:
        """Direct catch-up send to a single subscriber."""
        await websocket.send_text(self.serialize(events))
        logger.debug(f"client_id={client_id} protocol=websocket event=catch_up size={len(events)}")

    # ==========================
    # BROADCAST
    # ==========================
    @staticmethod
    def _is_open(websocket: WebSocket) -> bool:
        return (
            websocket.client_state == WebSocketState.CONNECTED
            and websocket.application_state == WebSocketState.CONNECTED
        )

    async def _deliver(self, client_id: str, websocket: WebSocket, payload: str) -> bool:
        try:
            await websocket.send_text(payload)
            return True
        except Exception as e:
            logger.warning(f"client_id={client_id} protocol=websocket event=error reason='{e}'")
            return False

    async def broadcast(self) -> int:
        """
        Push the current recent slice to every open subscriber.
        Returns how many subscribers actually got it.
        """
        with self._lock:
            snapshot = self._recent_locked()
            targets = [(cid, ws) for ws, cid in self._subscribers.items()]
            self.broadcasts_sent += 1

        payload = self.serialize(snapshot)
        open_targets = [(cid, ws) for cid, ws in targets if self._is_open(ws)]
        results = await asyncio.gather(
            *(self._deliver(cid, ws, payload) for cid, ws in open_targets)
        )
        delivered = sum(results)
        logger.debug(f"event=broadcast size={len(snapshot)} delivered={delivered}/{len(targets)}")
        return delivered

    # ==========================
    # METRICS
    # ==========================
    def get_stats(self) -> RelayStats:
        with self._lock:
            subscribers = len(self._subscribers)
            buffered = len(self._events)
        return RelayStats(
            active_subscribers=subscribers,
            buffered_events=buffered,
            total_events_accepted=self.total_events_accepted,
            broadcasts_sent=self.broadcasts_sent,
            buffer_wipes=self.buffer_wipes,
            uptime_s=(datetime.now(timezone.utc) - self.startup_time).total_seconds(),
            server_time=datetime.now(timezone.utc),
        )


def get_hub(connection: HTTPConnection) -> RelayHub:
    """FastAPI dependency: the hub built by `create_app()` for this application."""
    return connection.app.state.hub
