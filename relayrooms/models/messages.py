from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Message(BaseModel):
    """영구(kind 1) 또는 임시(kind 30000) 방 메시지"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="레코드 ID")
    author: str = Field(..., description="작성자 공개키")
    content: str = Field(default="", description="메시지 내용")
    created_at: int = Field(..., description="작성 시각 (unix seconds)")
    kind: int = Field(..., description="레코드 kind")
    room_ref: Optional[str] = Field(None, description="참조하는 방 레코드 ID (e 태그)")
    is_ephemeral: bool = Field(default=False, description="임시 메시지 여부")
    expiration: Optional[int] = Field(None, description="만료 시각 (unix seconds)")
    mentions: List[str] = Field(default_factory=list, description="멘션된 공개키 (태그 순서)")
    activity: Optional[str] = Field(None, description="활동 라벨 (입장, 타이핑 등)")

    def __repr__(self):
        return f"<Message(id={self.id}, author={self.author}, kind={self.kind}, room_ref={self.room_ref})>"
