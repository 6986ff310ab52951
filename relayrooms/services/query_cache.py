"""
조회 캐시

(조회 이름, 파라미터...) 키로 {값, 조회 시각}을 보관하고, 조회별 신선도 정책에 따라 재조회를 결정합니다.
기본은 프로세스 내부 저장소이며 여러 인스턴스가 공유할 때는 Redis 백엔드를 사용합니다.
"""

import json
import math
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, Tuple, TypeVar

import redis.asyncio as redis
from pydantic import TypeAdapter, ValidationError
from redis.exceptions import RedisError

from relayrooms.core.config import settings
from relayrooms.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
CacheKey = Tuple[str, ...]

# Redis 키 패턴
QUERY_CACHE_KEY = "relayrooms:query:{key}"


@dataclass(frozen=True)
class CachePolicy:
    """조회별 신선도 정책 (초 단위)"""
    stale_time: float
    refetch_interval: Optional[float] = None


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    value: T
    fetched_at: float


def is_fresh(entry: CacheEntry, policy: CachePolicy, now: float) -> bool:
    """stale_time 안에 조회된 값이면 신선"""
    return now - entry.fetched_at < policy.stale_time


def is_refetch_due(entry: CacheEntry, policy: CachePolicy, now: float) -> bool:
    """주기 재조회 정책이 있고 주기가 지났으면 재조회 대상 (신선도와 무관)"""
    if policy.refetch_interval is None:
        return False
    return now - entry.fetched_at >= policy.refetch_interval


class QueryCache:
    """프로세스 내부 조회 캐시"""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._clock = clock

    async def get(self, key: CacheKey, adapter: Optional[TypeAdapter] = None) -> Optional[CacheEntry]:
        return self._entries.get(key)

    async def set(
        self,
        key: CacheKey,
        value: Any,
        policy: CachePolicy,
        adapter: Optional[TypeAdapter] = None
    ) -> CacheEntry:
        entry = CacheEntry(value=value, fetched_at=self._clock())
        self._entries[key] = entry
        return entry

    async def invalidate(self, key: CacheKey) -> int:
        """key와 key로 시작하는 모든 항목 삭제"""
        targets = [cached for cached in self._entries if cached[:len(key)] == key]
        for cached in targets:
            del self._entries[cached]
        return len(targets)

    async def get_or_fetch(
        self,
        key: CacheKey,
        fetcher: Callable[[], Awaitable[T]],
        policy: CachePolicy,
        *,
        adapter: Optional[TypeAdapter] = None,
        force: bool = False
    ) -> T:
        """
        신선한 캐시 값이 있으면 반환하고, 없거나 force이면 fetcher로 다시 조회

        Args:
            key: 캐시 키 (조회 이름, 파라미터...)
            fetcher: 실제 조회 코루틴 함수
            policy: 신선도 정책
            adapter: 직렬화가 필요한 백엔드에서 값을 복원할 때 쓰는 TypeAdapter
            force: 신선도와 무관하게 재조회
        """
        if not force:
            entry = await self.get(key, adapter)
            if entry is not None and is_fresh(entry, policy, self._clock()):
                logger.debug(f"Cache hit: {key}")
                return entry.value
            logger.debug(f"Cache miss: {key}")

        value = await fetcher()
        await self.set(key, value, policy, adapter)
        return value

    async def close(self):
        self._entries.clear()


class RedisQueryCache(QueryCache):
    """
    Redis 조회 캐시

    값은 JSON으로 저장하며 TTL은 정책의 stale_time/refetch_interval 중 긴 쪽입니다.
    Redis 오류는 캐시 미스로 처리하고 로그만 남깁니다.
    """

    def __init__(self, client: redis.Redis, clock: Callable[[], float] = time.time):
        super().__init__(clock=clock)
        self._redis = client

    @staticmethod
    def _redis_key(key: CacheKey) -> str:
        return QUERY_CACHE_KEY.format(key=":".join(key))

    async def get(self, key: CacheKey, adapter: Optional[TypeAdapter] = None) -> Optional[CacheEntry]:
        try:
            raw = await self._redis.get(self._redis_key(key))
        except RedisError as e:
            logger.warning(f"Failed to get cached query {key}: {e}")
            return None

        if raw is None:
            return None

        # 깨졌거나 이전 모델 형식으로 저장된 항목은 캐시 미스
        try:
            data = json.loads(raw)
            value = data["value"]
            if adapter is not None:
                value = adapter.validate_python(value)
            return CacheEntry(value=value, fetched_at=float(data["fetched_at"]))
        except (ValueError, TypeError, KeyError, ValidationError) as e:
            logger.warning(f"Discarding unreadable cached query {key}: {e}")
            return None

    async def set(
        self,
        key: CacheKey,
        value: Any,
        policy: CachePolicy,
        adapter: Optional[TypeAdapter] = None
    ) -> CacheEntry:
        entry = CacheEntry(value=value, fetched_at=self._clock())
        payload = adapter.dump_python(value, mode="json") if adapter is not None else value
        ttl = max(1, math.ceil(max(policy.stale_time, policy.refetch_interval or 0)))

        try:
            await self._redis.setex(
                self._redis_key(key),
                ttl,
                json.dumps({"fetched_at": entry.fetched_at, "value": payload}, ensure_ascii=False)
            )
            logger.debug(f"Cache set: {key} (expires in {ttl}s)")
        except RedisError as e:
            logger.warning(f"Failed to cache query {key}: {e}")

        return entry

    async def invalidate(self, key: CacheKey) -> int:
        redis_key = self._redis_key(key)
        try:
            targets = [redis_key]
            async for cached in self._redis.scan_iter(match=f"{redis_key}:*"):
                targets.append(cached)
            return await self._redis.delete(*targets)
        except RedisError as e:
            logger.warning(f"Failed to invalidate cached query {key}: {e}")
            return 0

    async def close(self):
        await self._redis.aclose()
        logger.info("Redis query cache closed")


def build_query_cache(clock: Callable[[], float] = time.time) -> QueryCache:
    """설정의 cache_backend에 맞는 조회 캐시 생성"""
    if settings.cache_backend == "redis":
        client = redis.from_url(settings.redis_url, decode_responses=True, encoding="utf-8")
        logger.info("Using Redis query cache")
        return RedisQueryCache(client, clock=clock)
    return QueryCache(clock=clock)
