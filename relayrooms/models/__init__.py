from .events import (
    EPHEMERAL_MESSAGE_KIND,
    PERMANENT_MESSAGE_KIND,
    ROOM_DEFINITION_KIND,
    EventFilter,
    EventTemplate,
    NostrEvent,
)
from .messages import Message
from .rooms import Room, RoomSceneConfig, RoomType

__all__ = [
    "EPHEMERAL_MESSAGE_KIND",
    "PERMANENT_MESSAGE_KIND",
    "ROOM_DEFINITION_KIND",
    "EventFilter",
    "EventTemplate",
    "NostrEvent",
    "Message",
    "Room",
    "RoomSceneConfig",
    "RoomType",
]
