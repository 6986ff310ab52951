import logging
from fastapi import APIRouter, Depends, status

from relayrooms.api.dependencies import get_event_client, get_publisher, get_room_repository
from relayrooms.core.errors import AuthorizationException, room_not_found_error
from relayrooms.models.rooms import Room
from relayrooms.schemas.room import PublishedRoomResponse, RoomCreate, RoomListResponse, RoomUpdate
from relayrooms.services.event_client import EventClient
from relayrooms.services.publish_service import PublishedRoom, PublishOrchestrator
from relayrooms.services.room_service import RoomRepository
from relayrooms.utils.room_id import parse_room_id

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/rooms", tags=["Rooms"])


def _published_response(published: PublishedRoom) -> PublishedRoomResponse:
    return PublishedRoomResponse(
        room_id=published.room_id,
        event_id=published.event.id,
        created_at=published.event.created_at,
    )


@router.get("", response_model=RoomListResponse)
async def list_rooms(rooms: RoomRepository = Depends(get_room_repository)) -> RoomListResponse:
    """방 목록 조회 (최근 수정순)"""
    result = await rooms.list_rooms()
    return RoomListResponse(rooms=result, total=len(result))


@router.get("/{room_id}", response_model=Room)
async def get_room(room_id: str, rooms: RoomRepository = Depends(get_room_repository)) -> Room:
    """
    방 상세 조회

    - **room_id**: 복합 방 ID (author:slug)
    """
    author, slug = parse_room_id(room_id)
    room = await rooms.get_room(author, slug)
    if room is None:
        raise room_not_found_error(room_id)
    return room


@router.post("", response_model=PublishedRoomResponse, status_code=status.HTTP_201_CREATED)
async def create_room(
    room_data: RoomCreate,
    publisher: PublishOrchestrator = Depends(get_publisher)
) -> PublishedRoomResponse:
    """
    방 생성

    - **title**: 방 이름 (필수)
    - **description**: 방 설명 (필수)
    - **scene**: 장면 설정 (선택사항)
    - **tags**: 라벨 (최대 5개)
    """
    published = await publisher.create_room(room_data)
    return _published_response(published)


@router.put("/{room_id}", response_model=PublishedRoomResponse)
async def update_room(
    room_id: str,
    room_data: RoomUpdate,
    client: EventClient = Depends(get_event_client),
    publisher: PublishOrchestrator = Depends(get_publisher)
) -> PublishedRoomResponse:
    """방 수정 (같은 slug로 새 스냅샷 발행, 작성자만 가능)"""
    author, slug = parse_room_id(room_id)

    # 다른 작성자의 slug로 발행하면 내 이름의 새 방이 생길 뿐이므로 미리 막음
    if client.pubkey and client.pubkey != author:
        raise AuthorizationException("Only the room author can update this room")

    published = await publisher.update_room(slug, room_data)
    return _published_response(published)
