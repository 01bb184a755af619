"""
MODULE OVERVIEW:
The typed data structures shared by the relay server and its subscriber client,
powered by Pydantic v2.

WHAT IS HAPPENING HERE:
Inbound webhook items are loose: the presence service may add keys we do not care
about, so `Notification` and `ResourceData` ignore extras. What we store and push
to subscribers is the strict, frozen `PresenceEvent`.
"""
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


def locale_timestamp(moment: datetime | None = None) -> str:
    """Wall-clock time in the en-US locale layout, e.g. `10/19/2026, 3:04:05 PM`."""
    moment = moment or datetime.now()
    hour = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    return f"{moment.month}/{moment.day}/{moment.year}, {hour}:{moment:%M:%S} {meridiem}"


# Opaque: the presence service may send numeric ids, keep them as sent
ResourceId = str | int


class ResourceData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    availability: str | None = None
    activity: str | None = None
    id: ResourceId | None = None


class Notification(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    resource_data: ResourceData | None = Field(default=None, alias="resourceData")


# WHAT IS HAPPENING HERE:
# One accepted presence change. The timestamp is stamped by the server at ingestion;
# callers never supply it. Frozen so a snapshot can never be mutated after broadcast.
class PresenceEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: ResourceId | None = None
    availability: str
    activity: str | None = None
    timestamp: str = Field(default_factory=locale_timestamp)

    @classmethod
    def from_resource(cls, resource: ResourceData) -> "PresenceEvent":
        return cls(id=resource.id, availability=resource.availability, activity=resource.activity)


class RelayStats(BaseModel):
    active_subscribers: int
    buffered_events: int
    total_events_accepted: int
    broadcasts_sent: int
    buffer_wipes: int
    uptime_s: float
    server_time: datetime


# Subscribers always receive a JSON array of events
snapshot_adapter = TypeAdapter(list[PresenceEvent])
