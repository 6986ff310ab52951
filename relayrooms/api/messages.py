import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from relayrooms.api.dependencies import get_message_repository, get_publisher, get_room_repository
from relayrooms.core.errors import room_not_found_error
from relayrooms.models.messages import Message
from relayrooms.models.rooms import Room
from relayrooms.schemas.message import (
    EphemeralMessageCreate,
    MessageCreate,
    MessageListResponse,
    MessagePage,
    RoomActivityCreate,
)
from relayrooms.services.message_service import MessageRepository
from relayrooms.services.publish_service import PublishOrchestrator
from relayrooms.services.room_service import RoomRepository
from relayrooms.utils.room_id import parse_room_id

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/rooms", tags=["Messages"])


async def _resolve_room(room_id: str, rooms: RoomRepository) -> Room:
    author, slug = parse_room_id(room_id)
    room = await rooms.get_room(author, slug)
    if room is None:
        raise room_not_found_error(room_id)
    return room


@router.get("/{room_id}/messages", response_model=MessageListResponse)
async def get_messages(
    room_id: str,
    rooms: RoomRepository = Depends(get_room_repository),
    messages: MessageRepository = Depends(get_message_repository)
) -> MessageListResponse:
    """방의 최근 메시지 조회 (오래된 순, 만료된 임시 메시지 제외)"""
    room = await _resolve_room(room_id, rooms)
    result = await messages.list_messages(room.event_id)
    return MessageListResponse(messages=result, total=len(result))


@router.get("/{room_id}/messages/history", response_model=MessagePage)
async def get_message_history(
    room_id: str,
    before: Optional[int] = Query(default=None, ge=0, description="이 시각 이하의 메시지 조회"),
    rooms: RoomRepository = Depends(get_room_repository),
    messages: MessageRepository = Depends(get_message_repository)
) -> MessagePage:
    """
    이전 메시지 페이지 조회

    - **before**: 커서 (응답의 next_cursor를 그대로 전달, 없으면 현재 시각)

    만료된 메시지만 있던 페이지는 messages가 비어 있어도 next_cursor가 있을 수 있습니다.
    next_cursor가 null이면 더 이전 메시지가 없습니다.
    """
    room = await _resolve_room(room_id, rooms)
    return await messages.list_messages_page(room.event_id, before)


@router.post("/{room_id}/messages", response_model=Message, status_code=status.HTTP_201_CREATED)
async def send_message(
    room_id: str,
    message_data: MessageCreate,
    rooms: RoomRepository = Depends(get_room_repository),
    publisher: PublishOrchestrator = Depends(get_publisher)
) -> Message:
    """영구 메시지 전송"""
    room = await _resolve_room(room_id, rooms)
    return await publisher.send_message(room.event_id, message_data.content, message_data.mentions)


@router.post("/{room_id}/ephemeral", response_model=Message, status_code=status.HTTP_201_CREATED)
async def send_ephemeral_message(
    room_id: str,
    message_data: EphemeralMessageCreate,
    rooms: RoomRepository = Depends(get_room_repository),
    publisher: PublishOrchestrator = Depends(get_publisher)
) -> Message:
    """임시 메시지 전송 (hours 미지정 시 24시간 후 만료)"""
    room = await _resolve_room(room_id, rooms)
    return await publisher.send_ephemeral_message(
        room.event_id,
        message_data.content,
        hours=message_data.hours,
        mentions=message_data.mentions,
    )


@router.post("/{room_id}/activity", response_model=Message, status_code=status.HTTP_201_CREATED)
async def publish_activity(
    room_id: str,
    activity_data: RoomActivityCreate,
    rooms: RoomRepository = Depends(get_room_repository),
    publisher: PublishOrchestrator = Depends(get_publisher)
) -> Message:
    """방 활동 신호 발행 (hours 미지정 시 1시간 후 만료)"""
    room = await _resolve_room(room_id, rooms)
    return await publisher.publish_room_activity(
        room.event_id, activity_data.activity, hours=activity_data.hours
    )
