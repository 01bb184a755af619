"""
MODULE OVERVIEW:
The webhook ingestion endpoint.

WHAT IS HAPPENING HERE:
Before it delivers anything, the presence service proves we own the URL: it POSTs with
`?validationToken=...` and expects that exact token echoed back as plain text.
Every other POST carries notifications, which are handed to `process_notifications()`.
Whatever goes wrong inside is converted into a 500 here so the process keeps serving.
"""
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse
from loguru import logger

from presence_relay.server.ingestion import extract_candidates, process_notifications
from presence_relay.server.relay_hub import RelayHub, get_hub

router = APIRouter()


@router.post("/notifications", response_class=PlainTextResponse)
async def receive_notifications(
    request: Request,
    validation_token: str | None = Query(None, alias="validationToken"),
    hub: RelayHub = Depends(get_hub),
):
    if validation_token:
        logger.info("event=validation_handshake")
        return PlainTextResponse(validation_token, status_code=200)

    raw_body = await request.body()
    logger.debug(f"Received webhook event: {raw_body[:2048]!r}")

    try:
        await process_notifications(hub, extract_candidates(raw_body))
    except Exception:
        logger.exception("Error processing events")
        return PlainTextResponse("Error processing events", status_code=500)

    return PlainTextResponse("Event received", status_code=200)
