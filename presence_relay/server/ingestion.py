"""
MODULE OVERVIEW:
Turns a raw webhook body into presence events in the hub.

WHAT IS HAPPENING HERE:
The presence service posts `{"value": [notification, ...]}`. Only notifications whose
`resourceData.availability` is non-empty are relay-worthy; everything else is dropped
without complaint. Each candidate gets its own coroutine and they are joined with
`asyncio.gather`, so order inside one request does not matter, only the buffer state
once every candidate has finished. The request then triggers ONE broadcast covering
all of its accepted events.
"""

import asyncio
import json
from typing import Any, List

from loguru import logger

from presence_relay.server.relay_hub import RelayHub
from presence_relay.shared.models import Notification, PresenceEvent


def extract_candidates(raw_body: bytes) -> List[Any]:
    """The `value` list of a webhook body, or `[]` when the body is not shaped like one."""
    try:
        payload = json.loads(raw_body) if raw_body else None
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("event=ingest reason=unparseable_body")
        return []
    if not isinstance(payload, dict):
        return []
    value = payload.get("value")
    return value if isinstance(value, list) else []


def qualifies(candidate: Any) -> bool:
    if not isinstance(candidate, dict):
        return False
    resource = candidate.get("resourceData")
    return isinstance(resource, dict) and bool(resource.get("availability"))


async def ingest_one(hub: RelayHub, candidate: Any) -> PresenceEvent | None:
    if not qualifies(candidate):
        return None

    notification = Notification.model_validate(candidate)
    event = PresenceEvent.from_resource(notification.resource_data)
    hub.append(event)
    logger.info(
        f"event=presence_update status={event.availability} activity={event.activity} "
        f"timestamp='{event.timestamp}' id={event.id}"
    )
    return event


async def process_notifications(hub: RelayHub, candidates: List[Any]) -> List[PresenceEvent]:
    """
    Ingest every candidate concurrently and broadcast once if anything was accepted.

    Events appended before a failing candidate stay in the buffer and still go out in
    the broadcast; the first failure is then re-raised to the caller.
    """
    results = await asyncio.gather(
        *(ingest_one(hub, candidate) for candidate in candidates),
        return_exceptions=True,
    )

    accepted = [r for r in results if isinstance(r, PresenceEvent)]
    errors = [r for r in results if isinstance(r, Exception)]

    if accepted:
        await hub.broadcast()

    logger.info(f"event=ingest candidates={len(candidates)} accepted={len(accepted)} failed={len(errors)}")
    if errors:
        raise errors[0]
    return accepted
