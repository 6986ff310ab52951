from typing import List, Optional
from pydantic import BaseModel, Field

from relayrooms.models.messages import Message


class MessageCreate(BaseModel):
    """영구 메시지 전송 스키마"""
    content: str = Field(..., description="메시지 내용")
    mentions: List[str] = Field(default_factory=list, description="멘션할 공개키 목록")


class EphemeralMessageCreate(MessageCreate):
    """임시 메시지 전송 스키마"""
    hours: Optional[int] = Field(None, description="만료까지 시간 (기본 24시간)")


class RoomActivityCreate(BaseModel):
    """방 활동(입장, 타이핑 등) 발행 스키마"""
    activity: str = Field(..., description="활동 라벨")
    hours: Optional[int] = Field(None, description="만료까지 시간 (기본 1시간)")


class MessageListResponse(BaseModel):
    """메시지 목록 스키마"""
    messages: List[Message] = Field(..., description="메시지 목록 (오래된 순)")
    total: int = Field(..., description="메시지 수")


class MessagePage(BaseModel):
    """역방향 페이지 조회 결과"""
    messages: List[Message] = Field(..., description="페이지 메시지 (오래된 순)")
    next_cursor: Optional[int] = Field(None, description="다음 페이지 before 값 (없으면 끝)")
