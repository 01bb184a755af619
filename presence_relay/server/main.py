"""
MODULE OVERVIEW:
The FastAPI application factory.

WHAT IS HAPPENING HERE:
`create_app()` builds exactly one `RelayHub` and parks it on `app.state`; routes reach
it through the `get_hub` dependency, never through a module global. The `lifespan`
context starts the heartbeat task when Uvicorn boots and stops it on shutdown.
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from presence_relay.server.heartbeat import HeartbeatScheduler
from presence_relay.server.middleware import TimingMiddleware
from presence_relay.server.relay_hub import RelayHub, get_hub
from presence_relay.server.routes import history, notifications, websocket
from presence_relay.shared.config import Settings, settings as default_settings
from presence_relay.shared.log_setup import setup_logging
from presence_relay.shared.models import RelayStats


@asynccontextmanager
async def lifespan(app: FastAPI):
    # STARTUP
    setup_logging(app.state.settings.LOG_LEVEL)
    logger.info(f"Presence relay starting up on port {app.state.settings.PORT}...")
    heartbeat: HeartbeatScheduler = app.state.heartbeat
    heartbeat.start()

    yield

    # SHUTDOWN
    logger.info("Relay shutting down. Stopping heartbeat...")
    await heartbeat.stop()
    logger.info("Shutdown complete.")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings

    app = FastAPI(
        title="Presence Relay",
        description="Webhook-to-WebSocket relay for presence notifications",
        version="1.0.0",
        lifespan=lifespan,
    )

    hub = RelayHub(recent_limit=settings.RECENT_EVENTS_LIMIT)
    app.state.settings = settings
    app.state.hub = hub
    app.state.heartbeat = HeartbeatScheduler(hub, interval_s=settings.HEARTBEAT_INTERVAL_S)

    app.add_middleware(TimingMiddleware, webhook_slow_ms=settings.WEBHOOK_SLOW_MS)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(notifications.router, tags=["Webhook"])
    app.include_router(websocket.router, tags=["Subscribers"])
    if settings.ENABLE_EVENTS_ENDPOINT:
        app.include_router(history.router, tags=["Subscribers"])

    @app.get("/healthz", tags=["Ops"])
    async def health_check():
        return {"status": "ok"}

    @app.get("/stats", tags=["Ops"], response_model=RelayStats)
    async def get_stats(hub: RelayHub = Depends(get_hub)):
        return hub.get_stats()

    return app


app = create_app()
