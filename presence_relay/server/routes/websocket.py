"""
MODULE OVERVIEW:
The subscriber WebSocket route.

WHAT IS HAPPENING HERE:
Upgrades the request, registers the socket with the hub and immediately pushes the
current recent slice so a late joiner is not staring at an empty screen until the
next broadcast. Subscribers have nothing to say to us; anything they send is logged
and ignored. Leaving (cleanly or not) unregisters the socket, which also wipes the
event buffer.
"""
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from loguru import logger

from presence_relay.server.relay_hub import RelayHub, get_hub
from presence_relay.shared.route_utils import extract_client_id

router = APIRouter()


@router.websocket("/")
@router.websocket("/ws")
async def subscriber_endpoint(
    websocket: WebSocket,
    client_id: str | None = Query(None),
    hub: RelayHub = Depends(get_hub),
):
    cid = extract_client_id(client_id)
    await websocket.accept()
    snapshot = hub.register(cid, websocket)

    try:
        await hub.send_snapshot(cid, websocket, snapshot)
        while True:
            text_data = await websocket.receive_text()
            logger.debug(f"WS client {cid} sent: {text_data}")
    except WebSocketDisconnect:
        pass
    finally:
        hub.unregister(websocket)
