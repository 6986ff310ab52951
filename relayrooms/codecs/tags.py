"""
태그 스키마

레코드의 문자열 배열 태그 목록과 타입 있는 필드 사이를 변환합니다.
조회 시에는 첫 번째 일치가 우선하고, 여러 값 태그는 태그 순서를 그대로 유지합니다.
"""

from typing import List, Optional, Sequence

Tag = List[str]


def find_tag_value(tags: Sequence[Sequence[str]], name: str) -> Optional[str]:
    """이름이 일치하는 첫 태그의 값 (없으면 None)"""
    for tag in tags:
        if len(tag) >= 2 and tag[0] == name:
            return tag[1]
    return None


def find_tag_values(tags: Sequence[Sequence[str]], name: str) -> List[str]:
    """이름이 일치하는 모든 태그의 값 (태그 순서 유지)"""
    return [tag[1] for tag in tags if len(tag) >= 2 and tag[0] == name]


def encode_tag(name: str, value: str, *extra: str) -> Tag:
    """태그 생성"""
    return [name, value, *extra]


def parse_int(value: Optional[str]) -> Optional[int]:
    """정수 문자열 파싱 (실패 시 None)"""
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def parse_bool(value: Optional[str]) -> Optional[bool]:
    """'true'/'false' 문자열 파싱 (그 외 값은 None)"""
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized == "true":
        return True
    if normalized == "false":
        return False
    return None
