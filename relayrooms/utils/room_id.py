"""
복합 방 ID 유틸리티

방의 안정적인 ID는 "작성자 공개키:slug" 형식입니다.
"""
from typing import Tuple

from relayrooms.core.errors import ValidationException, ValidationError

ROOM_ID_SEPARATOR = ":"


def format_room_id(author: str, slug: str) -> str:
    """작성자 공개키와 slug로 복합 방 ID 생성"""
    return f"{author}{ROOM_ID_SEPARATOR}{slug}"


def parse_room_id(room_id: str) -> Tuple[str, str]:
    """
    복합 방 ID를 (작성자 공개키, slug)로 분리합니다.

    공개키에는 ':'가 없으므로 첫 번째 구분자에서 자릅니다.

    Raises:
        ValidationException: 구분자가 없거나 한쪽이 비어있는 경우
    """
    author, separator, slug = room_id.partition(ROOM_ID_SEPARATOR)
    if not separator or not author or not slug:
        raise ValidationException(
            "Invalid room id",
            validation_errors=[
                ValidationError(
                    field="room_id",
                    message="Room id must look like '<author pubkey>:<slug>'",
                    value=room_id
                )
            ]
        )
    return author, slug
