"""
발행 서비스

방 생성/수정과 메시지 전송 요청을 태그로 인코딩해 이벤트 클라이언트로 발행합니다.
모든 발행은 서명 신원(로그인)이 있어야 합니다.
"""

import secrets
import string
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from relayrooms.codecs.message_codec import decode_message, encode_message_tags
from relayrooms.codecs.room_codec import encode_room
from relayrooms.core.config import settings
from relayrooms.core.errors import ValidationError, ValidationException, not_logged_in_error
from relayrooms.core.logging import get_logger, log_publish
from relayrooms.core.validators import Validator
from relayrooms.models.events import (
    EPHEMERAL_MESSAGE_KIND,
    PERMANENT_MESSAGE_KIND,
    ROOM_DEFINITION_KIND,
    EventTemplate,
    NostrEvent,
)
from relayrooms.models.messages import Message
from relayrooms.schemas.room import RoomCreate
from relayrooms.utils.room_id import format_room_id
from .event_client import EventClient
from .expiry_policy import DEFAULT_ACTIVITY_TTL_HOURS, DEFAULT_MESSAGE_TTL_HOURS, compute_expiration
from .message_service import MessageRepository
from .room_service import RoomRepository

logger = get_logger(__name__)

SLUG_PREFIX = "room"
SLUG_RANDOM_LENGTH = 8
_BASE36_ALPHABET = string.digits + string.ascii_lowercase


def generate_room_slug(clock: Callable[[], float] = time.time) -> str:
    """밀리초 타임스탬프 + base36 8자리 난수 slug (충돌 가능성은 무시할 수준)"""
    timestamp = int(clock() * 1000)
    random_part = "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(SLUG_RANDOM_LENGTH))
    return f"{SLUG_PREFIX}-{timestamp}-{random_part}"


@dataclass(frozen=True)
class PublishedRoom:
    event: NostrEvent
    room_id: str


class PublishOrchestrator:
    """방/메시지 발행"""

    def __init__(
        self,
        client: EventClient,
        rooms: Optional[RoomRepository] = None,
        messages: Optional[MessageRepository] = None,
        relay_hint: Optional[str] = None,
        clock: Callable[[], float] = time.time
    ):
        self._client = client
        self._rooms = rooms
        self._messages = messages
        self._relay_hint = settings.relay_hint if relay_hint is None else relay_hint
        self._clock = clock

    def _require_identity(self, action: str) -> str:
        pubkey = self._client.pubkey
        if not pubkey:
            raise not_logged_in_error(action)
        return pubkey

    async def _publish(self, template: EventTemplate) -> NostrEvent:
        event = await self._client.publish(template)
        log_publish(logger, event.kind, event.id, author=event.pubkey)
        return event

    @staticmethod
    def _validate_room_draft(draft: RoomCreate):
        Validator.validate_multiple_fields([
            lambda: Validator.validate_required(draft.title, "title"),
            lambda: Validator.validate_required(draft.description, "description"),
            lambda: Validator.validate_room_labels(draft.tags),
        ])

    @staticmethod
    def _validate_message(room_event_id: str, content: str, mentions: Sequence[str]):
        Validator.validate_multiple_fields(
            [
                lambda: Validator.validate_hex_key(room_event_id, "room_event_id"),
                lambda: Validator.validate_message_content(content),
            ]
            + [lambda key=key: Validator.validate_hex_key(key, "mentions") for key in mentions]
        )

    async def _publish_room(self, author: str, slug: str, draft: RoomCreate) -> PublishedRoom:
        template = EventTemplate(
            kind=ROOM_DEFINITION_KIND,
            content=draft.description,
            tags=encode_room(slug, draft),
        )
        event = await self._publish(template)

        if self._rooms is not None:
            await self._rooms.invalidate(author, slug)

        return PublishedRoom(event=event, room_id=format_room_id(author, slug))

    async def create_room(self, draft: RoomCreate) -> PublishedRoom:
        """
        새 방 발행

        Returns:
            PublishedRoom: 발행된 레코드와 복합 방 ID (author:slug)

        Raises:
            AuthenticationException: 서명 신원이 없는 경우
            ValidationException: 제목/설명이 비었거나 라벨이 잘못된 경우
        """
        author = self._require_identity("create a room")
        self._validate_room_draft(draft)

        slug = generate_room_slug(self._clock)
        published = await self._publish_room(author, slug, draft)
        logger.info(f"Created room {published.room_id}")
        return published

    async def update_room(self, slug: str, draft: RoomCreate) -> PublishedRoom:
        """
        기존 slug로 방 스냅샷 재발행

        같은 (author, slug)의 최신 레코드가 방의 현재 상태가 됩니다.
        """
        author = self._require_identity("update a room")
        Validator.validate_required(slug, "slug")
        self._validate_room_draft(draft)

        published = await self._publish_room(author, slug, draft)
        logger.info(f"Updated room {published.room_id}")
        return published

    async def _publish_message(
        self,
        room_event_id: str,
        kind: int,
        content: str,
        tags: List[List[str]]
    ) -> Message:
        event = await self._publish(EventTemplate(kind=kind, content=content, tags=tags))

        if self._messages is not None:
            await self._messages.invalidate(room_event_id)

        return decode_message(event, room_event_id)

    async def send_message(
        self,
        room_event_id: str,
        content: str,
        mentions: Optional[Sequence[str]] = None
    ) -> Message:
        """영구 메시지(kind 1) 전송 (멘션은 입력 순서대로 p 태그)"""
        self._require_identity("send messages")
        mentions = list(mentions or [])
        self._validate_message(room_event_id, content, mentions)

        tags = encode_message_tags(room_event_id, self._relay_hint, mentions=mentions)
        return await self._publish_message(room_event_id, PERMANENT_MESSAGE_KIND, content, tags)

    async def send_ephemeral_message(
        self,
        room_event_id: str,
        content: str,
        hours: Optional[int] = None,
        mentions: Optional[Sequence[str]] = None
    ) -> Message:
        """임시 메시지(kind 30000) 전송 (기본 24시간 후 만료)"""
        self._require_identity("send ephemeral messages")
        mentions = list(mentions or [])
        self._validate_message(room_event_id, content, mentions)

        expiration = compute_expiration(int(self._clock()), hours, DEFAULT_MESSAGE_TTL_HOURS)
        tags = encode_message_tags(
            room_event_id, self._relay_hint, mentions=mentions, expiration=expiration
        )
        return await self._publish_message(room_event_id, EPHEMERAL_MESSAGE_KIND, content, tags)

    async def send_ephemeral_announcement(
        self,
        room_event_id: str,
        content: str,
        hours: Optional[int] = None
    ) -> Message:
        """입장/퇴장 안내 같은 임시 공지 전송 (기본 1시간 후 만료)"""
        self._require_identity("send ephemeral announcements")
        self._validate_message(room_event_id, content, [])

        expiration = compute_expiration(int(self._clock()), hours, DEFAULT_ACTIVITY_TTL_HOURS)
        tags = encode_message_tags(room_event_id, self._relay_hint, expiration=expiration)
        return await self._publish_message(room_event_id, EPHEMERAL_MESSAGE_KIND, content, tags)

    async def publish_room_activity(
        self,
        room_event_id: str,
        activity: str,
        hours: Optional[int] = None
    ) -> Message:
        """타이핑/입장 등 활동 신호 발행 (기본 1시간 후 만료)"""
        self._require_identity("publish room activity")
        Validator.validate_multiple_fields([
            lambda: Validator.validate_hex_key(room_event_id, "room_event_id"),
            lambda: Validator.validate_required(activity, "activity"),
        ])

        expiration = compute_expiration(int(self._clock()), hours, DEFAULT_ACTIVITY_TTL_HOURS)
        tags = encode_message_tags(
            room_event_id, self._relay_hint, expiration=expiration, activity=activity
        )
        return await self._publish_message(room_event_id, EPHEMERAL_MESSAGE_KIND, activity, tags)

    async def save_ephemeral_message(self, message: Message) -> Message:
        """임시 메시지 내용을 같은 방의 영구 메시지로 다시 발행 (원 작성자를 멘션)"""
        self._require_identity("save messages")
        if not message.is_ephemeral or not message.room_ref:
            raise ValidationException(
                "Only ephemeral room messages can be saved",
                validation_errors=[
                    ValidationError(
                        field="message",
                        message="Message must be ephemeral and reference a room",
                        value=message.id
                    )
                ]
            )

        tags = encode_message_tags(message.room_ref, self._relay_hint, mentions=[message.author])
        return await self._publish_message(
            message.room_ref, PERMANENT_MESSAGE_KIND, message.content, tags
        )
