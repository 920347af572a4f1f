"""
거래소 어댑터 에러 분류

모든 거래소의 HTTP 상태 / 거래소 고유 에러 코드는
이 분류 중 하나로 변환되어 상위로 전달됨.

- retryable=True: NetworkError, ServerError, RateLimitError (재시도 대상)
- retryable=False: 인증/권한/요청 형식 오류 (재시도 금지)
"""

from typing import Any


class ExchangeError(Exception):
    """거래소 에러 베이스

    Attributes:
        message: 사용자에게 보여줄 수 있는 설명
        exchange: 거래소 이름 (없으면 None)
        code: 거래소 원본 에러 코드 또는 HTTP 상태 코드
        raw_message: 거래소 원본 에러 메시지 (진단용)
    """

    retryable: bool = False

    def __init__(
        self,
        message: str,
        exchange: str | None = None,
        code: Any = None,
        raw_message: str | None = None,
    ):
        self.message = message
        self.exchange = exchange
        self.code = code
        self.raw_message = raw_message
        super().__init__(self._format())

    def _format(self) -> str:
        prefix = f"[{self.exchange}] " if self.exchange else ""
        text = f"{prefix}{self.message}"
        if self.code is not None:
            text += f" (code={self.code})"
        if self.raw_message and self.raw_message != self.message:
            text += f": {self.raw_message}"
        return text

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환 (로깅/응답용)"""
        return {
            "type": type(self).__name__,
            "exchange": self.exchange,
            "code": self.code,
            "message": self.message,
            "raw_message": self.raw_message,
            "retryable": self.retryable,
        }


class UnsupportedExchangeError(ExchangeError):
    """지원하지 않는 거래소 이름"""

    def __init__(self, exchange_name: str):
        super().__init__(
            message=f"Unsupported exchange: {exchange_name}",
            exchange=None,
        )
        self.exchange_name = exchange_name


class AuthenticationError(ExchangeError):
    """API 키/시크릿/passphrase 오류"""

    pass


class PermissionDeniedError(ExchangeError):
    """API 키에 필요한 권한(scope) 없음"""

    pass


class RateLimitError(ExchangeError):
    """요청 한도 초과 (재시도 가능)

    Attributes:
        retry_after: 거래소가 알려준 대기 시간 (초, 없으면 None)
    """

    retryable = True

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        exchange: str | None = None,
        code: Any = None,
        raw_message: str | None = None,
        retry_after: float | None = None,
    ):
        self.retry_after = retry_after
        super().__init__(message, exchange, code, raw_message)


class ServerError(ExchangeError):
    """거래소 서버 오류 (5xx, 재시도 가능)"""

    retryable = True


class ValidationError(ExchangeError):
    """요청 형식 오류 또는 응답 필수 필드 누락"""

    pass


class NetworkError(ExchangeError):
    """전송 계층 오류 (타임아웃, 연결 실패 등, 재시도 가능)"""

    retryable = True


class ExchangeApiError(ExchangeError):
    """분류표에 없는 거래소 에러 코드

    원본 code/message를 그대로 보존.
    """

    pass
