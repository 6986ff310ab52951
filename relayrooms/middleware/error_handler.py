import traceback
from typing import Callable
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from relayrooms.core.config import settings
from relayrooms.core.errors import (
    BaseCustomException,
    RelayTimeoutException,
    RelayUnavailableException,
)
from relayrooms.core.logging import get_logger

logger = get_logger(__name__)


def _error_json(exc: BaseCustomException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def custom_exception_handler(request: Request, exc: BaseCustomException) -> JSONResponse:
    """커스텀 예외를 표준 에러 응답으로 변환"""
    return _error_json(exc)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    통합 에러 처리 미들웨어

    라우터에서 처리되지 않은 예외를 표준화된 에러 응답으로 변환합니다.
    relay 전송 실패는 재해석하지 않고 연결/시간 초과 에러로만 구분합니다.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)

        except BaseCustomException as e:
            return _error_json(e)

        except ConnectionError as e:
            logger.error(f"Relay connection error on {request.url.path}: {e}")
            return _error_json(
                RelayUnavailableException(details={"detail": str(e)} if settings.debug else None)
            )

        except TimeoutError as e:
            logger.error(f"Relay timeout on {request.url.path}: {e}")
            return _error_json(
                RelayTimeoutException(details={"detail": str(e)} if settings.debug else None)
            )

        except Exception as e:
            # 예상하지 못한 모든 에러들
            logger.exception(f"Unhandled error on {request.url.path}: {e}")
            return _error_json(
                BaseCustomException(
                    details={"traceback": traceback.format_exc()} if settings.debug else None
                )
            )
