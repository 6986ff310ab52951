"""
방 레코드 코덱

room-definition(kind 12347) 레코드를 Room으로 복원하고, 방 입력을 발행용 태그로 변환합니다.
같은 kind를 다른 용도로 쓰는 작성자가 있을 수 있으므로 복원은 검증이 아니라 관대한 해석입니다.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from relayrooms.core.logging import get_logger
from relayrooms.models.events import ROOM_DEFINITION_KIND, NostrEvent
from relayrooms.models.rooms import Room, RoomSceneConfig
from relayrooms.schemas.room import RoomCreate
from relayrooms.utils.room_id import format_room_id
from .tags import Tag, encode_tag, find_tag_value, find_tag_values, parse_bool, parse_int

logger = get_logger(__name__)

IDENTITY_TAG = "d"
TITLE_TAG = "title"
DESCRIPTION_TAG = "description"
IMAGE_TAG = "image"
SCENE_TAG = "scene"
LABEL_TAG = "t"

# 장면 설정을 개별 태그로 쓰던 이전 형식
FLAT_SCENE_TAGS = {
    "background_color": ("background_color", lambda value: value or None),
    "max_users": ("max_users", parse_int),
    "is_public": ("is_public", parse_bool),
    "room_type": ("room_type", lambda value: value or None),
}

# JSON 키(camelCase 별칭 또는 필드명) -> 필드명
_SCENE_KEYS: Dict[str, str] = {
    **{name: name for name in RoomSceneConfig.model_fields},
    **{to_camel(name): name for name in RoomSceneConfig.model_fields},
}


class SceneOutcome(str, Enum):
    """장면 설정 복원 결과"""
    PARSED = "parsed"
    DEFAULTED = "defaulted"


@dataclass(frozen=True)
class SceneDecodeResult:
    scene: RoomSceneConfig
    outcome: SceneOutcome
    error: Optional[str] = None


def _overlay(scene: RoomSceneConfig, field_name: str, value: Any) -> RoomSceneConfig:
    """필드 하나를 덮어쓴 장면 설정 (값이 유효하지 않으면 원래 설정 유지)"""
    try:
        return RoomSceneConfig.model_validate({**scene.model_dump(), field_name: value})
    except ValidationError:
        logger.debug(f"Ignoring invalid scene field {field_name}={value!r}")
        return scene


def decode_scene(tags: Sequence[Sequence[str]]) -> SceneDecodeResult:
    """
    태그에서 장면 설정 복원

    기본값 위에 개별 장면 태그를 덮어쓰고, 그 위에 JSON scene 태그를 덮어씁니다.

    Returns:
        SceneDecodeResult: JSON scene 태그를 읽었으면 PARSED, 없거나 깨졌으면 DEFAULTED
    """
    scene = RoomSceneConfig()

    for tag_name, (field_name, parse) in FLAT_SCENE_TAGS.items():
        value = parse(find_tag_value(tags, tag_name))
        if value is not None:
            scene = _overlay(scene, field_name, value)

    raw_scene = find_tag_value(tags, SCENE_TAG)
    if not raw_scene:
        return SceneDecodeResult(scene=scene, outcome=SceneOutcome.DEFAULTED)

    try:
        parsed = json.loads(raw_scene)
    except json.JSONDecodeError as e:
        return SceneDecodeResult(scene=scene, outcome=SceneOutcome.DEFAULTED, error=str(e))

    if not isinstance(parsed, dict):
        return SceneDecodeResult(
            scene=scene,
            outcome=SceneOutcome.DEFAULTED,
            error=f"scene must be a JSON object, got {type(parsed).__name__}"
        )

    for key, value in parsed.items():
        field_name = _SCENE_KEYS.get(key)
        if field_name is None or value is None:
            continue
        scene = _overlay(scene, field_name, value)

    return SceneDecodeResult(scene=scene, outcome=SceneOutcome.PARSED)


def decode_room(event: NostrEvent) -> Optional[Room]:
    """
    room-definition 레코드를 Room으로 복원

    kind가 다르거나 slug(d 태그) 또는 title 태그가 없으면 방이 아닌 것으로 보고 None을 반환합니다.
    """
    if event.kind != ROOM_DEFINITION_KIND:
        return None

    slug = find_tag_value(event.tags, IDENTITY_TAG)
    title = find_tag_value(event.tags, TITLE_TAG)
    if not slug or not title:
        return None

    scene_result = decode_scene(event.tags)
    if scene_result.error:
        logger.warning(
            f"Failed to parse scene config for room event {event.id}: {scene_result.error}",
            extra={"event_id": event.id, "author": event.pubkey}
        )

    labels = [label for label in find_tag_values(event.tags, LABEL_TAG) if label]

    return Room(
        id=format_room_id(event.pubkey, slug),
        event_id=event.id,
        author=event.pubkey,
        slug=slug,
        title=title,
        description=find_tag_value(event.tags, DESCRIPTION_TAG) or event.content,
        image=find_tag_value(event.tags, IMAGE_TAG) or None,
        scene=scene_result.scene,
        tags=list(dict.fromkeys(labels)),
        created_at=event.created_at,
        updated_at=event.created_at,
    )


def encode_scene(scene: RoomSceneConfig) -> str:
    """장면 설정을 camelCase JSON 문자열로 직렬화"""
    return json.dumps(scene.model_dump(by_alias=True), separators=(",", ":"))


def encode_room(slug: str, draft: RoomCreate) -> List[Tag]:
    """
    방 입력을 발행용 태그로 변환

    d/title/description은 항상 포함하고, image는 비어있지 않을 때만, scene은 주어졌을 때만 포함합니다.
    라벨은 입력 순서대로 하나씩 t 태그가 되며 중복 제거는 호출자의 몫입니다.
    """
    tags = [
        encode_tag(IDENTITY_TAG, slug),
        encode_tag(TITLE_TAG, draft.title),
        encode_tag(DESCRIPTION_TAG, draft.description),
    ]

    if draft.image:
        tags.append(encode_tag(IMAGE_TAG, draft.image))

    if draft.scene is not None:
        tags.append(encode_tag(SCENE_TAG, encode_scene(draft.scene)))

    for label in draft.tags:
        tags.append(encode_tag(LABEL_TAG, label))

    return tags
