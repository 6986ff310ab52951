import json
import logging

import pytest

from relayrooms.codecs.room_codec import (
    SceneOutcome,
    decode_room,
    decode_scene,
    encode_room,
)
from relayrooms.models.events import PERMANENT_MESSAGE_KIND, ROOM_DEFINITION_KIND, EventTemplate
from relayrooms.models.rooms import RoomSceneConfig
from relayrooms.schemas.room import RoomCreate
from tests.conftest import AUTHOR_PUBKEY, START_TIME

DEFAULT_SCENE = RoomSceneConfig(
    background_color="#1a1a2e",
    max_users=20,
    is_public=True,
    room_type="social",
)


class TestDecodeRoom:
    """방 레코드 복원 테스트"""

    def test_decode_full_record(self, make_event):
        """모든 태그가 있는 레코드 복원"""
        scene = {"backgroundColor": "#000000", "maxUsers": 8, "isPublic": False, "roomType": "meeting"}
        event = make_event(
            ROOM_DEFINITION_KIND,
            tags=[
                ["d", "demo"],
                ["title", "Lounge"],
                ["description", "A quiet place"],
                ["image", "https://example.com/lounge.png"],
                ["scene", json.dumps(scene)],
                ["t", "music"],
                ["t", "chill"],
            ],
            content="ignored",
        )

        room = decode_room(event)

        assert room is not None
        assert room.id == f"{AUTHOR_PUBKEY}:demo"
        assert room.event_id == event.id
        assert room.author == AUTHOR_PUBKEY
        assert room.slug == "demo"
        assert room.title == "Lounge"
        assert room.description == "A quiet place"
        assert room.image == "https://example.com/lounge.png"
        assert room.scene == RoomSceneConfig(
            background_color="#000000", max_users=8, is_public=False, room_type="meeting"
        )
        assert room.tags == ["music", "chill"]
        assert room.created_at == START_TIME
        assert room.updated_at == START_TIME

    def test_description_falls_back_to_content(self, make_event):
        """description 태그가 없으면 본문 사용"""
        event = make_event(
            ROOM_DEFINITION_KIND,
            tags=[["d", "demo"], ["title", "Lounge"]],
            content="From content",
        )
        assert decode_room(event).description == "From content"

    def test_default_scene_overlay(self, make_event):
        """scene 태그가 없으면 기본 장면 설정"""
        event = make_event(ROOM_DEFINITION_KIND, tags=[["d", "demo"], ["title", "Lounge"]])

        room = decode_room(event)

        assert room.scene == DEFAULT_SCENE
        assert room.image is None
        assert room.tags == []

    @pytest.mark.parametrize(
        "tags",
        [
            [["title", "Lounge"], ["description", "no slug"]],
            [["d", "demo"], ["description", "no title"]],
            [["d", ""], ["title", "Lounge"]],
            [["d", "demo"], ["title", ""]],
        ],
    )
    def test_reject_missing_identity_or_title(self, make_event, tags):
        """slug 또는 title이 없으면 방이 아님"""
        assert decode_room(make_event(ROOM_DEFINITION_KIND, tags=tags)) is None

    def test_reject_wrong_kind(self, make_event):
        """다른 kind의 레코드는 방이 아님"""
        event = make_event(PERMANENT_MESSAGE_KIND, tags=[["d", "demo"], ["title", "Lounge"]])
        assert decode_room(event) is None

    def test_malformed_scene_keeps_room(self, make_event, caplog):
        """깨진 scene JSON은 경고만 남기고 기본 장면으로 복원"""
        event = make_event(
            ROOM_DEFINITION_KIND,
            tags=[["d", "demo"], ["title", "Lounge"], ["scene", "{not json"], ["t", "music"]],
        )

        with caplog.at_level(logging.WARNING):
            room = decode_room(event)

        assert room is not None
        assert room.title == "Lounge"
        assert room.tags == ["music"]
        assert room.scene == DEFAULT_SCENE
        assert "Failed to parse scene config" in caplog.text

    def test_labels_are_an_ordered_set(self, make_event):
        """라벨은 입력 순서를 유지하고 중복/빈 값은 제거"""
        event = make_event(
            ROOM_DEFINITION_KIND,
            tags=[["d", "demo"], ["title", "Lounge"], ["t", "b"], ["t", "a"], ["t", "b"], ["t", ""]],
        )
        assert decode_room(event).tags == ["b", "a"]

    def test_empty_image_is_absent(self, make_event):
        event = make_event(
            ROOM_DEFINITION_KIND, tags=[["d", "demo"], ["title", "Lounge"], ["image", ""]]
        )
        assert decode_room(event).image is None


class TestDecodeScene:
    """장면 설정 복원 테스트"""

    def test_no_scene_tag_is_defaulted(self):
        result = decode_scene([["d", "demo"]])
        assert result.outcome is SceneOutcome.DEFAULTED
        assert result.scene == DEFAULT_SCENE
        assert result.error is None

    def test_partial_scene_overlays_defaults(self):
        """일부 필드만 있는 scene은 기본값 위에 덮어씀"""
        result = decode_scene([["scene", '{"maxUsers":50}']])
        assert result.outcome is SceneOutcome.PARSED
        assert result.scene == DEFAULT_SCENE.model_copy(update={"max_users": 50})

    def test_invalid_fields_are_ignored(self):
        """유효하지 않은 필드만 버리고 나머지는 적용"""
        result = decode_scene(
            [["scene", '{"maxUsers":"lots","roomType":"arena","backgroundColor":"#ffffff","extra":1}']]
        )
        assert result.outcome is SceneOutcome.PARSED
        assert result.scene == DEFAULT_SCENE.model_copy(update={"background_color": "#ffffff"})

    def test_malformed_json_is_defaulted(self):
        result = decode_scene([["scene", "{oops"]])
        assert result.outcome is SceneOutcome.DEFAULTED
        assert result.scene == DEFAULT_SCENE
        assert result.error

    def test_non_object_json_is_defaulted(self):
        result = decode_scene([["scene", "[1, 2]"]])
        assert result.outcome is SceneOutcome.DEFAULTED
        assert "JSON object" in result.error

    def test_flat_scene_tags(self):
        """개별 장면 태그(이전 형식)도 읽음"""
        result = decode_scene([
            ["max_users", "8"],
            ["room_type", "workspace"],
            ["background_color", "#123456"],
            ["is_public", "false"],
        ])
        assert result.outcome is SceneOutcome.DEFAULTED
        assert result.scene == RoomSceneConfig(
            background_color="#123456", max_users=8, is_public=False, room_type="workspace"
        )

    def test_scene_blob_wins_over_flat_tags(self):
        result = decode_scene([["max_users", "8"], ["scene", '{"maxUsers":12}']])
        assert result.scene.max_users == 12

    def test_unparsable_flat_tags_are_ignored(self):
        result = decode_scene([["max_users", "many"], ["is_public", "maybe"]])
        assert result.scene == DEFAULT_SCENE


class TestEncodeRoom:
    """방 태그 인코딩 테스트"""

    def test_required_tags_only(self):
        """image/scene/라벨이 없으면 필수 태그만"""
        draft = RoomCreate(title="Lounge", description="A quiet place")
        assert encode_room("demo", draft) == [
            ["d", "demo"],
            ["title", "Lounge"],
            ["description", "A quiet place"],
        ]

    def test_all_tags(self):
        draft = RoomCreate(
            title="Lounge",
            description="A quiet place",
            image="https://example.com/lounge.png",
            scene=RoomSceneConfig(max_users=8, room_type="meeting"),
            tags=["music", "chill"],
        )

        assert encode_room("demo", draft) == [
            ["d", "demo"],
            ["title", "Lounge"],
            ["description", "A quiet place"],
            ["image", "https://example.com/lounge.png"],
            ["scene", '{"backgroundColor":"#1a1a2e","maxUsers":8,"isPublic":true,"roomType":"meeting"}'],
            ["t", "music"],
            ["t", "chill"],
        ]

    def test_empty_image_is_omitted(self):
        draft = RoomCreate(title="Lounge", description="A quiet place", image="")
        assert ["image", ""] not in encode_room("demo", draft)

    def test_duplicate_labels_are_not_removed(self):
        """라벨 중복 제거는 호출자의 책임"""
        draft = RoomCreate(title="Lounge", description="d", tags=["a", "a"])
        assert encode_room("demo", draft)[-2:] == [["t", "a"], ["t", "a"]]

    @pytest.mark.asyncio
    async def test_round_trip_through_relay(self, event_client):
        """인코딩 -> 발행 -> 복원 시 title/description/scene/tags 보존"""
        draft = RoomCreate(
            title="Lounge",
            description="A quiet place",
            scene=RoomSceneConfig(background_color="#222222", max_users=5, is_public=False, room_type="lobby"),
            tags=["music", "chill"],
        )
        event = await event_client.publish(
            EventTemplate(kind=ROOM_DEFINITION_KIND, content=draft.description, tags=encode_room("demo", draft))
        )

        room = decode_room(event)

        assert room.title == draft.title
        assert room.description == draft.description
        assert room.scene == draft.scene
        assert room.tags == draft.tags
