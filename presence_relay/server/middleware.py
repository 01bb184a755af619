"""
MODULE OVERVIEW:
FastAPI middleware that times every HTTP request and watches webhook latency.

WHAT IS HAPPENING HERE:
Every response gets an `X-Process-Time-Ms` header. Webhook deliveries
(`POST /notifications`) get more: the presence service gives up on, and eventually
throttles, endpoints that answer slowly, so each delivery logs its outcome and
latency, and anything slower than `webhook_slow_ms` is raised to a warning.
WebSocket traffic does not pass through here; BaseHTTPMiddleware only wraps HTTP scopes.
"""

import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from loguru import logger

WEBHOOK_PATH = "/notifications"


def webhook_outcome(request: Request, status_code: int) -> str:
    if "validationToken" in request.query_params:
        return "handshake"
    return "accepted" if status_code < 400 else "failed"


class TimingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, webhook_slow_ms: float = 3000.0):
        super().__init__(app)
        self.webhook_slow_ms = webhook_slow_ms
        self.slow_webhooks = 0

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        process_time_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Process-Time-Ms"] = f"{process_time_ms:.2f}"

        if request.method == "POST" and request.url.path == WEBHOOK_PATH:
            self._log_webhook(request, response.status_code, process_time_ms)
        elif request.url.path != "/healthz":
            logger.debug(f"{request.method} {request.url.path} status={response.status_code} latency_ms={process_time_ms:.2f}")

        return response

    def _log_webhook(self, request: Request, status_code: int, latency_ms: float) -> None:
        message = (
            f"event=webhook outcome={webhook_outcome(request, status_code)} "
            f"status={status_code} latency_ms={latency_ms:.2f}"
        )
        if latency_ms > self.webhook_slow_ms:
            self.slow_webhooks += 1
            logger.warning(f"{message} slow_threshold_ms={self.webhook_slow_ms:.0f}")
        else:
            logger.info(message)
