import asyncio
import random
from datetime import datetime, timezone
from typing import Awaitable, Callable

import httpx
import websockets
from loguru import logger


def make_client_stats() -> dict:
    """
    Returns a fresh stats dictionary with zeroed counters.
    Keys: snapshots_received, events_seen, reconnect_count,
          last_snapshot_at, connected_at.
    """
    return {
        "snapshots_received": 0,
        "events_seen": 0,
        "reconnect_count": 0,
        "last_snapshot_at": None,
        "connected_at": datetime.now(timezone.utc).isoformat(),
    }


async def with_reconnect(
    connect_fn: Callable[[], Awaitable[None]],
    stats: dict,
    duration_s: float,
    base_delay_s: float = 1.0,
    max_delay_s: float = 32.0,
    client_id: str = "unknown",
) -> None:
    """
    Runs `connect_fn` until `duration_s` has elapsed, reconnecting with exponential
    backoff (plus jitter) whenever the connection drops.
    """
    loop = asyncio.get_running_loop()
    attempt = 0
    start_time = loop.time()

    while True:
        elapsed = loop.time() - start_time
        if elapsed >= duration_s:
            break

        try:
            await asyncio.wait_for(connect_fn(), timeout=duration_s - elapsed)
            attempt = 0
        except asyncio.TimeoutError:
            # Reached max duration normally
            break
        except (ConnectionError, OSError, websockets.WebSocketException, httpx.HTTPError) as e:
            attempt += 1
            delay = min(base_delay_s * (2 ** attempt), max_delay_s)
            delay += random.uniform(0, delay * 0.1)
            stats["reconnect_count"] += 1
            logger.warning(
                f"client_id={client_id} attempt={attempt} delay={delay:.2f}s error='{e}'"
            )
            remaining = duration_s - (loop.time() - start_time)
            if remaining <= 0:
                break
            await asyncio.sleep(min(delay, remaining))
