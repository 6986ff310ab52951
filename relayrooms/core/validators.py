import re
from typing import List, Any, Callable

from .errors import ValidationException, ValidationError

HEX_KEY_PATTERN = re.compile(r'^[0-9a-f]{64}$')

MAX_ROOM_LABELS = 5
MAX_MESSAGE_LENGTH = 5000


class Validator:
    """입력 검증을 위한 유틸리티 클래스"""

    @staticmethod
    def validate_required(value: Any, field_name: str) -> Any:
        """필수 필드 검증"""
        if value is None or (isinstance(value, str) and value.strip() == ""):
            raise ValidationException(
                f"{field_name} is required",
                validation_errors=[
                    ValidationError(field=field_name, message="This field is required", value=value)
                ]
            )
        return value

    @staticmethod
    def validate_hex_key(value: str, field_name: str = "pubkey") -> str:
        """32바이트 hex 공개키/이벤트 ID 형식 검증"""
        if not isinstance(value, str) or not HEX_KEY_PATTERN.match(value):
            raise ValidationException(
                f"Invalid {field_name}",
                validation_errors=[
                    ValidationError(
                        field=field_name,
                        message="Must be 64 lowercase hex characters",
                        value=value
                    )
                ]
            )
        return value

    @staticmethod
    def validate_room_labels(labels: List[str], field_name: str = "tags") -> List[str]:
        """방 라벨 검증 (최대 5개, 중복/빈 값 금지)"""
        errors = []

        if len(labels) > MAX_ROOM_LABELS:
            errors.append(
                ValidationError(
                    field=field_name,
                    message=f"Maximum {MAX_ROOM_LABELS} tags allowed",
                    value=len(labels)
                )
            )

        seen = set()
        for label in labels:
            if not label or label.strip() == "":
                errors.append(
                    ValidationError(field=field_name, message="Tags cannot be empty", value=label)
                )
            elif label in seen:
                errors.append(
                    ValidationError(field=field_name, message="Duplicate tag", value=label)
                )
            seen.add(label)

        if errors:
            raise ValidationException(
                "Room tags validation failed",
                validation_errors=errors
            )

        return labels

    @staticmethod
    def validate_message_content(content: str, field_name: str = "content") -> str:
        """메시지 내용 검증"""
        errors = []

        # 빈 메시지 검증
        if not content or content.strip() == "":
            errors.append(
                ValidationError(
                    field=field_name,
                    message="Message content cannot be empty"
                )
            )
        elif len(content) > MAX_MESSAGE_LENGTH:
            errors.append(
                ValidationError(
                    field=field_name,
                    message=f"Message content must be no more than {MAX_MESSAGE_LENGTH} characters",
                    value=len(content)
                )
            )

        if errors:
            raise ValidationException(
                "Message content validation failed",
                validation_errors=errors
            )

        return content

    @staticmethod
    def validate_multiple_fields(validations: List[Callable[[], Any]]) -> List[Any]:
        """여러 필드 동시 검증"""
        errors = []
        results = []

        for validation_func in validations:
            try:
                result = validation_func()
                results.append(result)
            except ValidationException as e:
                errors.extend(e.validation_errors)

        if errors:
            raise ValidationException(
                "Multiple validation errors",
                validation_errors=errors
            )

        return results
