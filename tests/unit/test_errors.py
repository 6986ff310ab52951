import runpy

import pytest

from relayrooms.core.errors import (
    AuthenticationException,
    BaseCustomException,
    RelayTimeoutException,
    RelayUnavailableException,
    ValidationError,
    ValidationException,
    not_logged_in_error,
    room_not_found_error,
)


class TestErrorResponses:
    """에러 응답 본문 테스트"""

    def test_not_logged_in(self):
        exc = not_logged_in_error("send messages")

        assert isinstance(exc, AuthenticationException)
        assert exc.to_dict() == {
            "error": "authentication_error",
            "message": "You must be logged in to send messages",
            "status_code": 401,
        }

    def test_room_not_found(self):
        exc = room_not_found_error("abc:demo")

        assert exc.status_code == 404
        assert exc.to_dict()["message"] == "Room not found"
        assert exc.to_dict()["details"] == {"room_id": "abc:demo"}

    def test_validation_errors_are_listed(self):
        exc = ValidationException(
            "Invalid room id",
            validation_errors=[ValidationError(field="room_id", message="bad", value="x")],
        )

        body = exc.to_dict()

        assert body["status_code"] == 422
        assert body["validation_errors"] == [{"field": "room_id", "message": "bad", "value": "x"}]

    @pytest.mark.parametrize(
        "exc, status_code, error",
        [
            (RelayUnavailableException(), 503, "connection_error"),
            (RelayTimeoutException(), 504, "timeout_error"),
            (BaseCustomException(), 500, "internal_server_error"),
        ],
    )
    def test_default_messages(self, exc, status_code, error):
        body = exc.to_dict()
        assert body["status_code"] == status_code
        assert body["error"] == error
        assert body["message"]


class TestEntryPoint:
    """python -m relayrooms.main 실행 테스트"""

    def test_runs_uvicorn(self, monkeypatch):
        calls = []
        monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: calls.append((app, kwargs)))

        runpy.run_module("relayrooms.main", run_name="__main__")

        assert calls == [("relayrooms.main:app", {"host": "0.0.0.0", "port": 8000, "reload": False})]
