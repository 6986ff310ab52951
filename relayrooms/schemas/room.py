from typing import List, Optional
from pydantic import BaseModel, Field

from relayrooms.models.rooms import Room, RoomSceneConfig


class RoomCreate(BaseModel):
    """방 생성/수정 입력 스키마 (수정 시에도 전체 스냅샷을 다시 발행)"""
    title: str = Field(..., description="방 이름")
    description: str = Field(..., description="방 설명")
    image: Optional[str] = Field(None, description="대표 이미지 URL")
    scene: Optional[RoomSceneConfig] = Field(None, description="장면 설정")
    tags: List[str] = Field(default_factory=list, description="라벨 목록")


class RoomUpdate(RoomCreate):
    """방 수정 스키마"""
    pass


class RoomListResponse(BaseModel):
    """방 목록 응답 스키마"""
    rooms: List[Room] = Field(..., description="방 목록 (최근 수정순)")
    total: int = Field(..., description="방 개수")


class PublishedRoomResponse(BaseModel):
    """방 발행 결과 응답 스키마"""
    room_id: str = Field(..., description="복합 방 ID (author:slug)")
    event_id: str = Field(..., description="발행된 레코드 ID")
    created_at: int = Field(..., description="레코드 시각")
