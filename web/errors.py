"""
서비스 예외 → HTTP 응답 변환

비즈니스 실패(거래소 오류, 타임아웃)는 200 + success=false로 응답하고,
입력/상태 오류만 HTTP 에러 코드로 변환.
"""

from fastapi import HTTPException

from adapters.errors import ExchangeError, UnsupportedExchangeError
from sync.errors import (
    ConnectionNotFoundError,
    InvalidCredentialsError,
    NoTradesSelectedError,
    SyncError,
    SyncInProgressError,
)

# 예외 타입 → HTTP 상태 코드 (먼저 매칭되는 항목 사용)
STATUS_CODES: tuple[tuple[type[Exception], int], ...] = (
    (ConnectionNotFoundError, 404),
    (SyncInProgressError, 409),
    (NoTradesSelectedError, 400),
    (InvalidCredentialsError, 400),
    (UnsupportedExchangeError, 400),
)


def to_http_exception(error: Exception) -> HTTPException:
    """서비스 예외 → HTTPException

    매핑에 없는 예외는 500.
    """
    for error_type, status_code in STATUS_CODES:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=_message(error))
    return HTTPException(status_code=500, detail=_message(error))


def _message(error: Exception) -> str:
    if isinstance(error, (SyncError, ExchangeError)):
        return error.message
    return str(error)
