"""
거래소 공통 HTTP 클라이언트

거래소별 설정(ExchangeSpec)을 받아 동작하는 범용 클라이언트.
요청 1건 처리 순서:
    RateLimiter 대기 → 서명(매 시도마다 새 타임스탬프) → 전송 → 응답 분류
    일시적 오류는 with_retry가 지수 백오프로 재시도.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping

import httpx

from adapters.errors import (
    AuthenticationError,
    ExchangeApiError,
    ExchangeError,
    NetworkError,
    PermissionDeniedError,
    RateLimitError,
    ServerError,
    ValidationError,
)
from adapters.exchange.rate_limiter import RateLimiter
from adapters.exchange.retry import RetryPolicy, with_retry
from adapters.exchange.signing import RequestSpec, SignedRequest, Signer, unsigned_request
from adapters.models import ExchangeCredentials
from core.constants import SyncDefaults
from core.types import MarketType

logger = logging.getLogger(__name__)


# 거래소 에러 코드 → (에러 클래스, 설명)
ErrorTable = Mapping[Any, tuple[type[ExchangeError], str]]

# 응답 처리 함수: (거래소 이름, 응답) → 페이로드
ResponseHandler = Callable[[str, httpx.Response], Any]


def _retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def raise_for_http_status(
    exchange: str,
    response: httpx.Response,
    code: Any = None,
    raw_message: str | None = None,
) -> None:
    """HTTP 상태 코드 기반 분류 (2xx면 통과)

    401 → AuthenticationError, 403 → PermissionDeniedError,
    429 → RateLimitError, 5xx → ServerError, 400/404/422 → ValidationError,
    그 외 4xx → ExchangeApiError

    Raises:
        ExchangeError: 2xx가 아닌 경우
    """
    status = response.status_code
    if status < 400:
        return

    code = code if code is not None else status
    raw = raw_message if raw_message is not None else response.text[:500]

    if status == 401:
        raise AuthenticationError("Invalid API key or signature", exchange, code, raw)
    if status == 403:
        raise PermissionDeniedError("API key lacks the required permission", exchange, code, raw)
    if status == 429 or status == 418:
        raise RateLimitError(
            "Rate limit exceeded",
            exchange,
            code,
            raw,
            retry_after=_retry_after(response),
        )
    if status >= 500:
        raise ServerError("Exchange server error", exchange, code, raw)
    if status in (400, 404, 422):
        raise ValidationError("Bad request", exchange, code, raw)
    raise ExchangeApiError("Exchange API error", exchange, code, raw)


def raise_mapped_error(
    exchange: str,
    code: Any,
    raw_message: str | None,
    table: ErrorTable,
    response: httpx.Response | None = None,
) -> None:
    """거래소 에러 코드 분류

    분류표에 있으면 해당 클래스, 없으면 HTTP 상태로 분류,
    그래도 없으면 원본 code/message를 보존한 ExchangeApiError.

    Raises:
        ExchangeError: 항상
    """
    if code in table:
        error_cls, message = table[code]
        if error_cls is RateLimitError:
            raise RateLimitError(
                message,
                exchange,
                code,
                raw_message,
                retry_after=_retry_after(response) if response is not None else None,
            )
        raise error_cls(message, exchange, code, raw_message)

    if response is not None:
        raise_for_http_status(exchange, response, code, raw_message)

    raise ExchangeApiError("Exchange API error", exchange, code, raw_message)


def read_json(exchange: str, response: httpx.Response) -> Any:
    """응답 본문 JSON 파싱

    Raises:
        ValidationError: JSON이 아닌 응답
    """
    try:
        return response.json()
    except ValueError as e:
        raise ValidationError(
            "Invalid JSON response",
            exchange,
            response.status_code,
            response.text[:200],
        ) from e


def default_response_handler(exchange: str, response: httpx.Response) -> Any:
    """HTTP 상태만으로 성공/실패를 판단하는 거래소용 기본 처리"""
    raise_for_http_status(exchange, response)
    return read_json(exchange, response)


@dataclass(frozen=True)
class ExchangeSpec:
    """거래소별 고정 설정

    Attributes:
        exchange_id: 거래소 식별자 (소문자, 예: binance)
        display_name: 표시 이름 (예: Binance)
        base_url: REST 베이스 URL
        min_delay: 요청 간 최소 간격 (초)
        signer: 서명 함수
        response_handler: 응답 처리 함수 (에러 코드 분류 포함)
        requires_passphrase: passphrase 필요 여부
        markets: 지원 마켓 (체결 조회 루틴 단위)
    """

    exchange_id: str
    display_name: str
    base_url: str
    min_delay: float
    signer: Signer
    response_handler: ResponseHandler = default_response_handler
    requires_passphrase: bool = False
    markets: tuple[MarketType, ...] = (MarketType.SPOT,)


def _now_ms() -> int:
    return int(time.time() * 1000)


class ExchangeHttpClient:
    """거래소 공통 HTTP 클라이언트

    어댑터 인스턴스마다 하나씩 생성 (RateLimiter 상태 공유 단위).

    Args:
        spec: 거래소 설정
        credentials: API 자격 증명
        timeout: 요청 타임아웃 (초)
        retry_policy: 재시도 정책
        rate_limiter: 요청 간격 제한기 (None이면 spec.min_delay로 생성)
        base_url: 베이스 URL 재정의 (테스트넷/프록시)
        clock_ms: 현재 시각(밀리초) 함수 (테스트 주입용)
    """

    def __init__(
        self,
        spec: ExchangeSpec,
        credentials: ExchangeCredentials,
        timeout: float = SyncDefaults.REQUEST_TIMEOUT_SEC,
        retry_policy: RetryPolicy | None = None,
        rate_limiter: RateLimiter | None = None,
        base_url: str | None = None,
        clock_ms: Callable[[], int] = _now_ms,
    ):
        self.spec = spec
        self._credentials = credentials
        self.timeout = timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self.rate_limiter = rate_limiter or RateLimiter(spec.min_delay)
        self.base_url = (base_url or spec.base_url).rstrip("/")
        self._clock_ms = clock_ms
        self._client: httpx.AsyncClient | None = None

    @property
    def exchange(self) -> str:
        return self.spec.exchange_id

    async def _get_client(self) -> httpx.AsyncClient:
        """HTTP 클라이언트 가져오기 (lazy initialization)"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """HTTP 클라이언트 종료"""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def sign(self, request: RequestSpec, signed: bool = True) -> SignedRequest:
        """요청 서명 (signed=False면 공개 요청)"""
        if not signed:
            return unsigned_request(request)
        return self.spec.signer(self._credentials, request, self._clock_ms())

    async def _send(self, request: RequestSpec, signed: bool, base_url: str | None) -> Any:
        """1회 전송 (재시도 단위)"""
        await self.rate_limiter.acquire()

        prepared = self.sign(request, signed)
        root = (base_url or self.base_url).rstrip("/")
        url = f"{root}{prepared.target}"
        client = await self._get_client()

        try:
            response = await client.request(
                prepared.method,
                url,
                content=prepared.content,
                headers=prepared.headers,
            )
        except httpx.TimeoutException as e:
            raise NetworkError("Request timeout", self.exchange, raw_message=str(e)) from e
        except httpx.RequestError as e:
            raise NetworkError("Network error", self.exchange, raw_message=str(e)) from e

        return self.spec.response_handler(self.exchange, response)

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        body: dict[str, Any] | None = None,
        signed: bool = True,
        base_url: str | None = None,
    ) -> Any:
        """API 요청 실행 (rate limit + 서명 + 재시도)

        Args:
            method: HTTP 메서드
            path: API 경로 (예: /api/v3/myTrades)
            params: 쿼리 파라미터
            body: 요청 본문
            signed: 서명 필요 여부
            base_url: 베이스 URL 재정의 (선물 API 등 별도 호스트)

        Returns:
            거래소 응답 페이로드 (response_handler 결과)

        Raises:
            ExchangeError: 분류된 거래소 에러 (재시도 소진 시 마지막 에러)
        """
        request = RequestSpec(
            method=method.upper(),
            path=path,
            params=dict(params or {}),
            body=body,
        )

        async def attempt() -> Any:
            return await self._send(request, signed, base_url)

        return await with_retry(
            attempt,
            self.retry_policy,
            label=f"{self.exchange} {request.method} {path}",
        )


def body_code_handler(
    table: ErrorTable,
    code_field: str = "code",
    message_field: str = "msg",
    ok_codes: tuple[Any, ...] = (0,),
    payload_field: str | None = None,
) -> ResponseHandler:
    """본문에 결과 코드를 싣는 거래소용 응답 처리 함수 생성

    HTTP 200이어도 본문 코드가 ok_codes에 없으면 실패로 분류.
    payload_field가 있으면 해당 필드만 반환 (예: Bybit result, OKX data).

    Example:
        >>> handler = body_code_handler(ERROR_CODES, "retCode", "retMsg", (0,), "result")
    """

    def handler(exchange: str, response: httpx.Response) -> Any:
        try:
            data = response.json()
        except ValueError:
            data = None

        if isinstance(data, dict) and code_field in data and data[code_field] not in ok_codes:
            raise_mapped_error(exchange, data[code_field], data.get(message_field), table, response)

        raise_for_http_status(exchange, response)
        if data is None:
            data = read_json(exchange, response)

        if payload_field is not None and isinstance(data, dict):
            return data.get(payload_field)
        return data

    return handler
