"""
relayrooms 에러 정의

발행 전제조건 위반(로그인, 입력 검증)과 relay 전송 실패를 HTTP 에러 응답으로 표현합니다.
잘못된 형식의 relay 레코드는 에러가 아니라 조회 결과에서 제외됩니다.
"""

from typing import Any, Dict, List, Optional
from fastapi import HTTPException, status
from pydantic import BaseModel


class ValidationError(BaseModel):
    """검증 에러 세부사항"""
    field: str
    message: str
    value: Optional[Any] = None


class ErrorResponse(BaseModel):
    """표준 에러 응답 모델 (검증 에러일 때만 validation_errors 포함)"""
    error: str
    message: str
    details: Optional[Dict[str, Any]] = None
    validation_errors: Optional[List[ValidationError]] = None
    status_code: int


class BaseCustomException(HTTPException):
    """
    기본 커스텀 예외 클래스

    하위 클래스는 status_code/error/default_message만 정의합니다.
    """
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "internal_server_error"
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(status_code=self.status_code, detail=self.to_dict())

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(
            error=self.error,
            message=self.message,
            details=self.details,
            status_code=self.status_code
        )

    def to_dict(self) -> Dict[str, Any]:
        """예외를 응답 본문 딕셔너리로 변환"""
        return self.to_response().model_dump(exclude_none=True)


class ValidationException(BaseCustomException):
    """입력 검증 실패 (방 입력, 메시지 내용, 공개키/레코드 ID 형식)"""
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error = "validation_error"
    default_message = "Validation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        validation_errors: Optional[List[ValidationError]] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.validation_errors = validation_errors or []
        super().__init__(message, details)

    def to_response(self) -> ErrorResponse:
        response = super().to_response()
        return response.model_copy(update={"validation_errors": self.validation_errors})


class AuthenticationException(BaseCustomException):
    """서명 신원이 없는 상태에서의 발행 시도"""
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "authentication_error"
    default_message = "You must be logged in"


class AuthorizationException(BaseCustomException):
    """다른 작성자의 방 수정 시도"""
    status_code = status.HTTP_403_FORBIDDEN
    error = "authorization_error"
    default_message = "Access denied"


class ResourceNotFoundException(BaseCustomException):
    """리소스를 찾을 수 없음"""
    status_code = status.HTTP_404_NOT_FOUND
    error = "resource_not_found"

    def __init__(self, resource: str = "Resource", details: Optional[Dict[str, Any]] = None):
        super().__init__(f"{resource} not found", details or {"resource": resource})


class RelayUnavailableException(BaseCustomException):
    """relay 연결 실패"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error = "connection_error"
    default_message = "Relay temporarily unavailable"


class RelayTimeoutException(BaseCustomException):
    """relay 응답 시간 초과"""
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    error = "timeout_error"
    default_message = "Relay request timeout"


def room_not_found_error(room_id: Optional[str] = None) -> ResourceNotFoundException:
    details = {"room_id": room_id} if room_id else None
    return ResourceNotFoundException("Room", details=details)


def not_logged_in_error(action: str) -> AuthenticationException:
    """로그인하지 않은 상태에서의 발행 에러"""
    return AuthenticationException(f"You must be logged in to {action}")
