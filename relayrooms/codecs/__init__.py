from .message_codec import decode_message, encode_message_tags, is_ephemeral_kind
from .room_codec import SceneDecodeResult, SceneOutcome, decode_room, decode_scene, encode_room
from .tags import encode_tag, find_tag_value, find_tag_values, parse_bool, parse_int

__all__ = [
    "decode_message",
    "encode_message_tags",
    "is_ephemeral_kind",
    "SceneDecodeResult",
    "SceneOutcome",
    "decode_room",
    "decode_scene",
    "encode_room",
    "encode_tag",
    "find_tag_value",
    "find_tag_values",
    "parse_bool",
    "parse_int",
]
