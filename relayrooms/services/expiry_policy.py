"""
임시 메시지 만료 정책

발행 시 만료 시각을 계산하고, 조회 시 만료된 메시지를 걸러냅니다.
relay는 만료된 레코드를 지우지 않을 수 있으므로 표시 시점 필터링이 유일한 보장입니다.
"""

from enum import Enum
from typing import Iterable, List, Optional

from relayrooms.models.messages import Message

SECONDS_PER_HOUR = 3600
DEFAULT_MESSAGE_TTL_HOURS = 24  # 채팅 메시지
DEFAULT_ACTIVITY_TTL_HOURS = 1  # 입장/타이핑 등 활동 신호


class MissingExpiration(str, Enum):
    """만료 태그가 없거나 읽을 수 없는 임시 메시지의 처리 방식"""
    NEVER_EXPIRE = "never_expire"
    DISCARD = "discard"


def compute_expiration(
    now_seconds: int,
    hours: Optional[int] = None,
    default_hours: int = DEFAULT_MESSAGE_TTL_HOURS
) -> int:
    """
    만료 시각 계산

    Args:
        now_seconds: 현재 시각 (unix seconds)
        hours: 만료까지 시간. None이거나 0 이하이면 default_hours 사용
        default_hours: 기본 시간

    Returns:
        now_seconds + hours * 3600
    """
    if hours is None or hours <= 0:
        hours = default_hours
    return int(now_seconds) + int(hours) * SECONDS_PER_HOUR


def is_expired(message: Message, now_seconds: int) -> bool:
    """만료 시각이 있고 now 이하이면 만료"""
    return message.expiration is not None and message.expiration <= now_seconds


def filter_expired(
    messages: Iterable[Message],
    now_seconds: int,
    missing: MissingExpiration = MissingExpiration.NEVER_EXPIRE
) -> List[Message]:
    """조회 결과에서 만료된 메시지 제거"""
    visible = []
    for message in messages:
        if is_expired(message, now_seconds):
            continue
        if (
            missing is MissingExpiration.DISCARD
            and message.is_ephemeral
            and message.expiration is None
        ):
            continue
        visible.append(message)
    return visible
