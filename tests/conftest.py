import pytest
import pytest_asyncio
from typing import AsyncGenerator, Callable, List, Optional
from httpx import AsyncClient, ASGITransport

from relayrooms.main import app
from relayrooms.api.dependencies import (
    get_event_client,
    get_message_repository,
    get_publisher,
    get_query_cache,
    get_room_repository,
)
from relayrooms.models.events import NostrEvent
from relayrooms.services.event_client import InMemoryEventClient, compute_event_id
from relayrooms.services.message_service import MessageRepository
from relayrooms.services.publish_service import PublishOrchestrator
from relayrooms.services.query_cache import QueryCache
from relayrooms.services.room_service import RoomRepository


AUTHOR_PUBKEY = "a" * 64
OTHER_PUBKEY = "b" * 64
START_TIME = 1_700_000_000


class FakeClock:
    """테스트용 시계 (초 단위, 수동으로 진행)"""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def event_client(clock) -> InMemoryEventClient:
    """로그인된 작성자의 메모리 relay 클라이언트"""
    return InMemoryEventClient(pubkey=AUTHOR_PUBKEY, clock=clock)


@pytest.fixture
def anonymous_client(clock) -> InMemoryEventClient:
    """서명 신원이 없는 클라이언트"""
    return InMemoryEventClient(pubkey=None, clock=clock)


@pytest.fixture
def query_cache(clock) -> QueryCache:
    return QueryCache(clock=clock)


@pytest.fixture
def room_repository(event_client, query_cache) -> RoomRepository:
    return RoomRepository(event_client, query_cache)


@pytest.fixture
def message_repository(event_client, query_cache, clock) -> MessageRepository:
    return MessageRepository(event_client, query_cache, clock=clock)


@pytest.fixture
def publisher(event_client, room_repository, message_repository, clock) -> PublishOrchestrator:
    return PublishOrchestrator(
        event_client,
        rooms=room_repository,
        messages=message_repository,
        relay_hint="",
        clock=clock,
    )


@pytest.fixture
def anonymous_publisher(anonymous_client, clock) -> PublishOrchestrator:
    return PublishOrchestrator(anonymous_client, relay_hint="", clock=clock)


@pytest.fixture
def make_event() -> Callable[..., NostrEvent]:
    """다른 작성자가 발행한 것 같은 임의 레코드 생성"""

    def _make_event(
        kind: int,
        tags: Optional[List[List[str]]] = None,
        content: str = "",
        pubkey: str = AUTHOR_PUBKEY,
        created_at: int = START_TIME,
    ) -> NostrEvent:
        tags = tags or []
        return NostrEvent(
            id=compute_event_id(
                pubkey=pubkey, created_at=created_at, kind=kind, tags=tags, content=content
            ),
            pubkey=pubkey,
            created_at=created_at,
            kind=kind,
            tags=tags,
            content=content,
        )

    return _make_event


@pytest_asyncio.fixture
async def client(
    event_client, query_cache, room_repository, message_repository, publisher
) -> AsyncGenerator[AsyncClient, None]:
    """테스트용 비동기 HTTP 클라이언트"""
    app.dependency_overrides[get_event_client] = lambda: event_client
    app.dependency_overrides[get_query_cache] = lambda: query_cache
    app.dependency_overrides[get_room_repository] = lambda: room_repository
    app.dependency_overrides[get_message_repository] = lambda: message_repository
    app.dependency_overrides[get_publisher] = lambda: publisher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def anonymous_api_client(
    anonymous_client, query_cache, clock
) -> AsyncGenerator[AsyncClient, None]:
    """비로그인 상태의 HTTP 클라이언트"""
    rooms = RoomRepository(anonymous_client, query_cache)
    messages = MessageRepository(anonymous_client, query_cache, clock=clock)
    app.dependency_overrides[get_event_client] = lambda: anonymous_client
    app.dependency_overrides[get_query_cache] = lambda: query_cache
    app.dependency_overrides[get_room_repository] = lambda: rooms
    app.dependency_overrides[get_message_repository] = lambda: messages
    app.dependency_overrides[get_publisher] = lambda: PublishOrchestrator(
        anonymous_client, rooms=rooms, messages=messages, relay_hint="", clock=clock
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
