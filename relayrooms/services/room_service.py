"""
Room repository.

Fetches room-definition records, decodes them, and collapses every
``(author, slug)`` identity to its newest record.
"""

import time
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, TypeVar

from pydantic import TypeAdapter

from relayrooms.codecs.room_codec import decode_room
from relayrooms.core.logging import get_logger, log_query
from relayrooms.models.events import ROOM_DEFINITION_KIND, EventFilter, coerce_events
from relayrooms.models.rooms import Room
from relayrooms.utils.room_id import format_room_id
from .event_client import EventClient
from .query_cache import CacheKey, CachePolicy, QueryCache

logger = get_logger(__name__)

T = TypeVar("T")

ROOM_LIST_LIMIT = 100

# 신선도 정책
ROOM_LIST_POLICY = CachePolicy(stale_time=30)
ROOM_LOOKUP_POLICY = CachePolicy(stale_time=60)

ROOM_LIST_KEY = "rooms"
ROOM_LOOKUP_KEY = "room"

_ROOM_LIST_ADAPTER = TypeAdapter(List[Room])
_ROOM_ADAPTER = TypeAdapter(Optional[Room])


def _is_newer(candidate: Room, current: Room) -> bool:
    # 같은 시각이면 ID가 작은 레코드가 이김
    if candidate.updated_at != current.updated_at:
        return candidate.updated_at > current.updated_at
    return candidate.event_id < current.event_id


def select_current_rooms(rooms: Iterable[Room]) -> List[Room]:
    """같은 (author, slug)의 레코드 중 최신만 남기고 updated_at 내림차순 정렬"""
    current: Dict[str, Room] = {}
    for room in rooms:
        existing = current.get(room.id)
        if existing is None or _is_newer(room, existing):
            current[room.id] = room

    return sorted(current.values(), key=lambda room: (-room.updated_at, room.id))


class RoomRepository:
    """방 목록/단건 조회"""

    def __init__(self, client: EventClient, cache: Optional[QueryCache] = None):
        self._client = client
        self._cache = cache

    async def _cached(
        self,
        key: CacheKey,
        fetcher: Callable[[], Awaitable[T]],
        policy: CachePolicy,
        adapter: TypeAdapter,
        force: bool
    ) -> T:
        if self._cache is None:
            return await fetcher()
        return await self._cache.get_or_fetch(key, fetcher, policy, adapter=adapter, force=force)

    async def _query_rooms(self, operation: str, event_filter: EventFilter) -> List[Room]:
        start_time = time.perf_counter()
        records = coerce_events(await self._client.query([event_filter]))

        rooms = []
        for record in records:
            room = decode_room(record)
            if room is None:
                logger.debug(f"Skipping non-room record {record.id}")
                continue
            rooms.append(room)

        log_query(
            logger,
            operation,
            event_filter.to_wire(),
            len(records),
            duration_ms=(time.perf_counter() - start_time) * 1000,
            decoded_count=len(rooms)
        )
        return rooms

    async def list_rooms(self, *, force: bool = False) -> List[Room]:
        """
        방 목록 조회

        최대 100개의 room-definition 레코드를 조회해 복원하고,
        (author, slug)별 최신 레코드만 남겨 최근 수정순으로 반환합니다.
        """
        async def fetch() -> List[Room]:
            event_filter = EventFilter(kinds=[ROOM_DEFINITION_KIND], limit=ROOM_LIST_LIMIT)
            return select_current_rooms(await self._query_rooms("list_rooms", event_filter))

        return await self._cached((ROOM_LIST_KEY,), fetch, ROOM_LIST_POLICY, _ROOM_LIST_ADAPTER, force)

    async def get_room(self, author: str, slug: str, *, force: bool = False) -> Optional[Room]:
        """
        작성자와 slug로 방 단건 조회

        relay가 최신 레코드 하나만 돌려준다고 가정하지 않고 복원/최신 선택을 다시 적용합니다.
        """
        async def fetch() -> Optional[Room]:
            event_filter = EventFilter(
                kinds=[ROOM_DEFINITION_KIND],
                authors=[author],
                d_tags=[slug],
                limit=1,
            )
            rooms = await self._query_rooms("get_room", event_filter)
            room_id = format_room_id(author, slug)
            matching = select_current_rooms(room for room in rooms if room.id == room_id)
            return matching[0] if matching else None

        return await self._cached(
            (ROOM_LOOKUP_KEY, author, slug), fetch, ROOM_LOOKUP_POLICY, _ROOM_ADAPTER, force
        )

    async def invalidate(self, author: Optional[str] = None, slug: Optional[str] = None):
        """발행 후 목록 캐시와 (지정 시) 해당 방 캐시 무효화"""
        if self._cache is None:
            return
        await self._cache.invalidate((ROOM_LIST_KEY,))
        if author and slug:
            await self._cache.invalidate((ROOM_LOOKUP_KEY, author, slug))
