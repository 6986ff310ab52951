from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RoomType = Literal["lobby", "meeting", "social", "workspace", "custom"]

DEFAULT_BACKGROUND_COLOR = "#1a1a2e"
DEFAULT_MAX_USERS = 20
DEFAULT_IS_PUBLIC = True
DEFAULT_ROOM_TYPE = "social"


class RoomSceneConfig(BaseModel):
    """방 장면 설정 (와이어에서는 camelCase JSON)"""
    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    background_color: str = Field(default=DEFAULT_BACKGROUND_COLOR, description="배경색")
    max_users: int = Field(default=DEFAULT_MAX_USERS, ge=1, description="최대 인원")
    is_public: bool = Field(default=DEFAULT_IS_PUBLIC, description="공개 여부")
    room_type: RoomType = Field(default=DEFAULT_ROOM_TYPE, description="방 유형")


class Room(BaseModel):
    """room-definition 레코드에서 복원한 방"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="복합 ID (author:slug)")
    event_id: str = Field(..., description="현재 방을 나타내는 레코드 ID")
    author: str = Field(..., description="작성자 공개키")
    slug: str = Field(..., description="식별(d) 태그 값")
    title: str
    description: str
    image: Optional[str] = None
    scene: RoomSceneConfig = Field(default_factory=RoomSceneConfig)
    tags: List[str] = Field(default_factory=list, description="라벨 (입력 순서 유지, 중복 없음)")
    created_at: int
    updated_at: int

    def __repr__(self):
        return f"<Room(id={self.id}, event_id={self.event_id}, title={self.title!r})>"
