"""
이벤트 클라이언트

relay 연결, 재시도, 서명은 클라이언트의 책임이며 이 패키지는 query/publish 두 연산만 사용합니다.
InMemoryEventClient는 개발과 테스트를 위한 단일 relay 시뮬레이션입니다.
"""

import asyncio
import hashlib
import json
import time
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Sequence

from relayrooms.core.logging import get_logger
from relayrooms.models.events import EventFilter, EventTemplate, NostrEvent

logger = get_logger(__name__)


class EventClient(Protocol):
    """relay 조회/발행 인터페이스 (pubkey가 None이면 서명 신원 없음)"""

    pubkey: Optional[str]

    async def query(self, filters: Sequence[EventFilter]) -> List[NostrEvent]:
        ...

    async def publish(self, template: EventTemplate) -> NostrEvent:
        ...


def compute_event_id(
    *, pubkey: str, created_at: int, kind: int, tags: List[List[str]], content: str
) -> str:
    """NIP-01 방식 레코드 ID: [0, pubkey, created_at, kind, tags, content] 직렬화의 sha256"""
    serialized = json.dumps(
        [0, pubkey, created_at, kind, tags, content],
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


def event_matches(event: NostrEvent, event_filter: EventFilter) -> bool:
    """레코드가 필터 조건을 모두 만족하는지 확인"""
    if event.kind not in event_filter.kinds:
        return False
    if event_filter.authors is not None and event.pubkey not in event_filter.authors:
        return False
    if event_filter.until is not None and event.created_at > event_filter.until:
        return False

    for tag_name, wanted in (("e", event_filter.e_tags), ("d", event_filter.d_tags)):
        if wanted is None:
            continue
        values = {tag[1] for tag in event.tags if len(tag) >= 2 and tag[0] == tag_name}
        if values.isdisjoint(wanted):
            return False

    return True


class InMemoryEventClient:
    """
    메모리 relay

    - 발행 시 created_at은 clock 기준, ID는 NIP-01 해시로 부여 (서명은 하지 않음)
    - 조회는 필터별로 최신순 정렬 후 limit만큼 자르고, 필터 간 중복은 ID로 합침
    - 교체 가능 kind라도 이전 버전을 지우지 않음 (최신 버전 선택은 조회하는 쪽의 책임)
    """

    def __init__(
        self,
        pubkey: Optional[str] = None,
        clock: Callable[[], float] = time.time,
        events: Optional[Iterable[NostrEvent]] = None
    ):
        self.pubkey = pubkey
        self._clock = clock
        self._events: Dict[str, NostrEvent] = {}
        for event in events or []:
            self.add(event)

    def add(self, event: NostrEvent) -> NostrEvent:
        """다른 작성자의 레코드 등 외부 레코드를 그대로 저장"""
        self._events[event.id] = event
        return event

    def sign(self, template: EventTemplate, created_at: Optional[int] = None) -> NostrEvent:
        """템플릿에 작성자/시각/ID를 채운 레코드 생성 (저장하지 않음)"""
        if self.pubkey is None:
            raise RuntimeError("No signing identity configured")

        created_at = int(self._clock()) if created_at is None else created_at
        event_id = compute_event_id(
            pubkey=self.pubkey,
            created_at=created_at,
            kind=template.kind,
            tags=template.tags,
            content=template.content,
        )
        return NostrEvent(
            id=event_id,
            pubkey=self.pubkey,
            created_at=created_at,
            kind=template.kind,
            tags=template.tags,
            content=template.content,
        )

    async def query(self, filters: Sequence[EventFilter]) -> List[NostrEvent]:
        # 취소 지점
        await asyncio.sleep(0)

        results: Dict[str, NostrEvent] = {}
        for event_filter in filters:
            matched = [event for event in self._events.values() if event_matches(event, event_filter)]
            matched.sort(key=lambda event: (-event.created_at, event.id))
            for event in matched[:event_filter.limit]:
                results[event.id] = event

        return list(results.values())

    async def publish(self, template: EventTemplate) -> NostrEvent:
        await asyncio.sleep(0)
        event = self.sign(template)
        self._events[event.id] = event
        logger.debug(f"Stored kind {event.kind} event {event.id}")
        return event
