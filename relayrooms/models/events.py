"""
Relay 이벤트 와이어 모델

relay에서 받은 레코드, 발행용 템플릿, 조회 필터를 정의합니다.
"""

from typing import Any, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from relayrooms.core.logging import get_logger

logger = get_logger(__name__)

# 레코드 kind
PERMANENT_MESSAGE_KIND = 1
ROOM_DEFINITION_KIND = 12347
EPHEMERAL_MESSAGE_KIND = 30000


class NostrEvent(BaseModel):
    """서명된 relay 레코드"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="레코드 해시 ID")
    pubkey: str = Field(..., description="작성자 공개키")
    created_at: int = Field(..., description="작성 시각 (unix seconds)")
    kind: int = Field(..., description="레코드 kind")
    tags: List[List[str]] = Field(default_factory=list, description="태그 목록")
    content: str = Field(default="", description="본문")
    sig: str = Field(default="", description="서명")

    @classmethod
    def from_wire(cls, data: Any) -> Optional["NostrEvent"]:
        """
        와이어 데이터를 검증하여 NostrEvent로 변환

        형식이 맞지 않는 레코드는 에러 없이 None을 반환합니다.
        """
        if isinstance(data, cls):
            return data
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            logger.debug(f"Dropping malformed record: {e.error_count()} validation errors")
            return None


def coerce_events(records: Iterable[Union[NostrEvent, Mapping[str, Any]]]) -> List[NostrEvent]:
    """조회 결과에서 형식이 올바른 레코드만 추림"""
    events = []
    for record in records:
        event = NostrEvent.from_wire(record)
        if event is not None:
            events.append(event)
    return events


class EventTemplate(BaseModel):
    """발행 요청 (작성자/서명/ID/시각은 클라이언트가 채움)"""
    kind: int
    content: str = ""
    tags: List[List[str]] = Field(default_factory=list)


class EventFilter(BaseModel):
    """relay 조회 필터"""
    model_config = ConfigDict(populate_by_name=True)

    kinds: List[int]
    authors: Optional[List[str]] = None
    e_tags: Optional[List[str]] = Field(default=None, alias="#e")
    d_tags: Optional[List[str]] = Field(default=None, alias="#d")
    until: Optional[int] = None
    limit: int

    def to_wire(self) -> dict:
        """와이어 형식 dict로 변환 ('#e', '#d' 키 사용)"""
        return self.model_dump(by_alias=True, exclude_none=True)
