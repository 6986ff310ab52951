"""
Message service layer for room message streams.

Handles the live message window, backward cursor pagination and the
background poller that keeps an open room view up to date.
"""

import asyncio
import time
from typing import AsyncIterator, Awaitable, Callable, Dict, List, Optional

from pydantic import TypeAdapter

from relayrooms.codecs.message_codec import decode_message
from relayrooms.core.logging import get_logger, log_query
from relayrooms.models.events import (
    EPHEMERAL_MESSAGE_KIND,
    PERMANENT_MESSAGE_KIND,
    EventFilter,
    coerce_events,
)
from relayrooms.models.messages import Message
from relayrooms.schemas.message import MessagePage
from .event_client import EventClient
from .expiry_policy import MissingExpiration, filter_expired
from .query_cache import CachePolicy, QueryCache

logger = get_logger(__name__)

MESSAGE_KINDS = [PERMANENT_MESSAGE_KIND, EPHEMERAL_MESSAGE_KIND]
MESSAGE_WINDOW_LIMIT = 100
MESSAGE_PAGE_LIMIT = 50

# 신선도 정책: 5초간 신선, 방을 보는 동안 10초마다 재조회
LIVE_MESSAGES_POLICY = CachePolicy(stale_time=5, refetch_interval=10)

ROOM_MESSAGES_KEY = "room-messages"

_MESSAGE_LIST_ADAPTER = TypeAdapter(List[Message])


def sort_messages(messages: List[Message]) -> List[Message]:
    """ID 기준 중복 제거 후 created_at 오름차순 정렬"""
    unique: Dict[str, Message] = {message.id: message for message in messages}
    return sorted(unique.values(), key=lambda message: (message.created_at, message.id))


class MessageRepository:
    """방 메시지 조회"""

    def __init__(
        self,
        client: EventClient,
        cache: Optional[QueryCache] = None,
        clock: Callable[[], float] = time.time,
        missing_expiration: MissingExpiration = MissingExpiration.NEVER_EXPIRE
    ):
        self._client = client
        self._cache = cache
        self._clock = clock
        self._missing_expiration = missing_expiration

    def _now(self) -> int:
        return int(self._clock())

    def _visible(self, messages: List[Message]) -> List[Message]:
        return filter_expired(messages, self._now(), self._missing_expiration)

    async def _fetch_room_messages(
        self,
        operation: str,
        room_event_id: str,
        event_filter: EventFilter
    ) -> List[Message]:
        """조회 후 복원하고 이 방을 참조하는 메시지만 남김 (만료 필터 전)"""
        start_time = time.perf_counter()
        records = coerce_events(await self._client.query([event_filter]))

        messages = []
        for record in records:
            if record.kind not in MESSAGE_KINDS:
                continue
            message = decode_message(record, room_event_id)
            if message.room_ref != room_event_id:
                continue
            messages.append(message)

        log_query(
            logger,
            operation,
            event_filter.to_wire(),
            len(records),
            duration_ms=(time.perf_counter() - start_time) * 1000,
            room_event_id=room_event_id
        )
        return sort_messages(messages)

    async def list_messages(self, room_event_id: str, *, force: bool = False) -> List[Message]:
        """
        방의 최근 메시지 조회

        Args:
            room_event_id: 방 레코드 ID
            force: 캐시 신선도와 무관하게 재조회

        Returns:
            만료되지 않은 메시지 (오래된 순, 최대 100개)
        """
        async def fetch() -> List[Message]:
            event_filter = EventFilter(
                kinds=MESSAGE_KINDS,
                e_tags=[room_event_id],
                limit=MESSAGE_WINDOW_LIMIT,
            )
            return await self._fetch_room_messages("list_messages", room_event_id, event_filter)

        if self._cache is None:
            messages = await fetch()
        else:
            messages = await self._cache.get_or_fetch(
                (ROOM_MESSAGES_KEY, room_event_id),
                fetch,
                LIVE_MESSAGES_POLICY,
                adapter=_MESSAGE_LIST_ADAPTER,
                force=force,
            )

        # 캐시된 값도 읽을 때마다 만료 여부를 다시 판단
        return self._visible(messages)

    async def list_messages_page(self, room_event_id: str, before: Optional[int] = None) -> MessagePage:
        """
        before 이전 메시지 페이지 조회 (역방향 페이지네이션)

        Args:
            room_event_id: 방 레코드 ID
            before: 이 시각 이하의 메시지만 조회 (None이면 현재 시각)

        Returns:
            MessagePage: 최대 50개 메시지(오래된 순)와 다음 커서.
            조회 결과가 비어있으면 next_cursor는 None입니다.
            커서는 만료 필터 전의 가장 오래된 메시지 기준입니다. 따라서 만료된 메시지만 있던
            페이지는 messages가 빈 목록이면서 next_cursor는 None이 아닐 수 있습니다.
            페이지네이션의 끝은 빈 messages가 아니라 next_cursor가 None인 것으로 판단해야 합니다.
        """
        if before is None:
            before = self._now()

        event_filter = EventFilter(
            kinds=MESSAGE_KINDS,
            e_tags=[room_event_id],
            until=before,
            limit=MESSAGE_PAGE_LIMIT,
        )
        fetched = await self._fetch_room_messages("list_messages_page", room_event_id, event_filter)

        # until을 무시하는 relay 대비
        fetched = [message for message in fetched if message.created_at <= before]
        if not fetched:
            return MessagePage(messages=[], next_cursor=None)

        return MessagePage(
            messages=self._visible(fetched),
            next_cursor=fetched[0].created_at - 1,
        )

    async def iter_message_pages(
        self,
        room_event_id: str,
        before: Optional[int] = None
    ) -> AsyncIterator[MessagePage]:
        """더 이상 메시지가 없을 때까지 최신 페이지부터 차례로 반환"""
        cursor = before
        while True:
            page = await self.list_messages_page(room_event_id, cursor)
            if page.next_cursor is None:
                return
            yield page
            cursor = page.next_cursor

    async def invalidate(self, room_event_id: str):
        """메시지 발행 후 해당 방의 최근 메시지 캐시 무효화"""
        if self._cache is not None:
            await self._cache.invalidate((ROOM_MESSAGES_KEY, room_event_id))


class MessagePoller:
    """
    방 화면이 열려 있는 동안 최근 메시지를 주기적으로 다시 조회합니다.

    첫 조회는 캐시가 신선하면 캐시를 쓰고, 이후에는 신선도와 무관하게 매 주기 재조회합니다.
    stop()은 진행 중인 조회를 취소합니다.
    """

    def __init__(
        self,
        repository: MessageRepository,
        room_event_id: str,
        on_messages: Callable[[List[Message]], Awaitable[None]],
        interval: float = LIVE_MESSAGES_POLICY.refetch_interval
    ):
        self._repository = repository
        self._room_event_id = room_event_id
        self._on_messages = on_messages
        self._interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        """폴링 시작"""
        if self.running:
            logger.warning(f"Poller for room {self._room_event_id} already running")
            return self._task

        self._task = asyncio.create_task(self._run())
        logger.info(f"Started message poller for room {self._room_event_id}")
        return self._task

    async def stop(self):
        """폴링 중지"""
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error(f"Message poller for room {self._room_event_id} had failed: {e}")
        finally:
            self._task = None
        logger.info(f"Stopped message poller for room {self._room_event_id}")

    async def _run(self):
        force = False
        while True:
            try:
                messages = await self._repository.list_messages(self._room_event_id, force=force)
                await self._on_messages(messages)
            except Exception as e:
                # 이번 주기만 실패로 처리하고 다음 주기에 다시 조회
                logger.error(f"Failed to poll messages for room {self._room_event_id}: {e}")

            force = True
            await asyncio.sleep(self._interval)
