"""
API 의존성

프로세스당 하나의 이벤트 클라이언트와 조회 캐시를 만들고, 요청마다 저장소/발행 서비스를 구성합니다.
"""

from typing import Optional
from fastapi import Depends

from relayrooms.core.config import settings
from relayrooms.core.logging import get_logger
from relayrooms.services.event_client import EventClient, InMemoryEventClient
from relayrooms.services.message_service import MessageRepository
from relayrooms.services.publish_service import PublishOrchestrator
from relayrooms.services.query_cache import QueryCache, build_query_cache
from relayrooms.services.room_service import RoomRepository

logger = get_logger(__name__)

_event_client: Optional[EventClient] = None
_query_cache: Optional[QueryCache] = None


def get_event_client() -> EventClient:
    """이벤트 클라이언트 싱글톤"""
    global _event_client

    if _event_client is None:
        _event_client = InMemoryEventClient(pubkey=settings.author_pubkey)
        logger.info(
            "In-memory event client initialized "
            f"({'authenticated' if settings.author_pubkey else 'read-only'})"
        )

    return _event_client


def get_query_cache() -> QueryCache:
    """조회 캐시 싱글톤"""
    global _query_cache

    if _query_cache is None:
        _query_cache = build_query_cache()

    return _query_cache


def get_room_repository(
    client: EventClient = Depends(get_event_client),
    cache: QueryCache = Depends(get_query_cache)
) -> RoomRepository:
    return RoomRepository(client, cache)


def get_message_repository(
    client: EventClient = Depends(get_event_client),
    cache: QueryCache = Depends(get_query_cache)
) -> MessageRepository:
    return MessageRepository(client, cache)


def get_publisher(
    client: EventClient = Depends(get_event_client),
    rooms: RoomRepository = Depends(get_room_repository),
    messages: MessageRepository = Depends(get_message_repository)
) -> PublishOrchestrator:
    return PublishOrchestrator(client, rooms=rooms, messages=messages)


async def close_dependencies():
    """종료 시 캐시 연결 정리"""
    global _event_client, _query_cache

    if _query_cache is not None:
        await _query_cache.close()

    _event_client = None
    _query_cache = None
