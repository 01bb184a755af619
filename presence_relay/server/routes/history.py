from fastapi import APIRouter, Depends

from presence_relay.server.relay_hub import RelayHub, get_hub
from presence_relay.shared.models import PresenceEvent

router = APIRouter()


@router.get("/events", response_model=list[PresenceEvent])
async def list_events(hub: RelayHub = Depends(get_hub)):
    """The whole buffer, unsliced, oldest first."""
    return hub.all_events()
