"""
메시지 레코드 코덱

kind 1(영구)과 kind 30000(임시) 레코드를 Message로 복원합니다.
호출자가 이미 kind와 e 태그로 걸러낸 레코드를 받으므로 복원은 실패하지 않습니다.
"""

from typing import List, Optional, Sequence

from relayrooms.models.events import EPHEMERAL_MESSAGE_KIND, NostrEvent
from relayrooms.models.messages import Message
from .tags import Tag, encode_tag, find_tag_value, find_tag_values, parse_int

ROOM_REFERENCE_TAG = "e"
MENTION_TAG = "p"
EXPIRATION_TAG = "expiration"
ACTIVITY_TAG = "activity"
ROOT_MARKER = "root"


def is_ephemeral_kind(kind: int) -> bool:
    return kind == EPHEMERAL_MESSAGE_KIND


def decode_message(event: NostrEvent, room_event_id: str) -> Message:
    """
    레코드를 Message로 복원

    e 태그 중 room_event_id와 일치하는 것이 있으면 그 방을, 없으면 첫 e 태그를 room_ref로 씁니다.
    expiration 태그가 없거나 숫자가 아니면 만료 없음으로 봅니다.
    """
    references = find_tag_values(event.tags, ROOM_REFERENCE_TAG)
    if room_event_id in references:
        room_ref = room_event_id
    else:
        room_ref = references[0] if references else None

    return Message(
        id=event.id,
        author=event.pubkey,
        content=event.content,
        created_at=event.created_at,
        kind=event.kind,
        room_ref=room_ref,
        is_ephemeral=is_ephemeral_kind(event.kind),
        expiration=parse_int(find_tag_value(event.tags, EXPIRATION_TAG)),
        mentions=find_tag_values(event.tags, MENTION_TAG),
        activity=find_tag_value(event.tags, ACTIVITY_TAG) or None,
    )


def encode_message_tags(
    room_event_id: str,
    relay_hint: str = "",
    mentions: Optional[Sequence[str]] = None,
    expiration: Optional[int] = None,
    activity: Optional[str] = None,
) -> List[Tag]:
    """메시지 발행용 태그 (방 참조, 만료, 멘션, 활동 순서)"""
    tags = [encode_tag(ROOM_REFERENCE_TAG, room_event_id, relay_hint, ROOT_MARKER)]

    if expiration is not None:
        tags.append(encode_tag(EXPIRATION_TAG, str(expiration)))

    for pubkey in mentions or []:
        tags.append(encode_tag(MENTION_TAG, pubkey))

    if activity:
        tags.append(encode_tag(ACTIVITY_TAG, activity))

    return tags
