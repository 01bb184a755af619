"""
MODULE OVERVIEW:
The periodic heartbeat re-broadcast.

WHAT IS HAPPENING HERE:
A single background asyncio task, started by the app lifespan, wakes up every
`interval_s` seconds and re-sends the recent slice to every subscriber. Idle relays
(no subscribers) stay silent. A failing tick is logged and the loop keeps going;
only `stop()` ends it.
"""

import asyncio
from loguru import logger

from presence_relay.server.relay_hub import RelayHub


class HeartbeatScheduler:
    def __init__(self, hub: RelayHub, interval_s: float = 30.0):
        self.hub = hub
        self.interval_s = interval_s
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def tick(self) -> bool:
        if self.hub.subscriber_count == 0:
            return False
        logger.info(f"event=heartbeat subscribers={self.hub.subscriber_count}")
        await self.hub.broadcast()
        return True

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_s)
            try:
                await self.tick()
            except Exception as e:
                logger.error(f"event=heartbeat reason='{e}'")

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.debug(f"Heartbeat started interval_s={self.interval_s}")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None
        logger.debug("Heartbeat stopped.")
