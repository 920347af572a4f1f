"""
요청 서명 공통 요소

거래소별 서명 함수(sign_request)가 공유하는 HMAC/해시 헬퍼와
요청/서명 결과 데이터 구조.

거래소별 서명 함수 규약:
    sign_request(credentials, request, timestamp_ms) -> SignedRequest
    - 입력만으로 결과가 결정되는 순수 함수 (시간은 인자로 주입)
    - 고정 벡터로 독립 테스트 가능
"""

import base64
import hashlib
import hmac
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
from urllib.parse import urlencode

from adapters.errors import AuthenticationError
from adapters.models import ExchangeCredentials


class DigestEncoding(str, Enum):
    """서명 출력 인코딩"""

    HEX = "hex"
    UPPER_HEX = "upper_hex"
    BASE64 = "base64"


_ALGORITHMS: dict[str, Callable[..., Any]] = {
    "sha256": hashlib.sha256,
    "sha384": hashlib.sha384,
    "sha512": hashlib.sha512,
}


def _to_bytes(value: str | bytes) -> bytes:
    return value if isinstance(value, bytes) else value.encode("utf-8")


def hmac_digest(secret: str | bytes, message: str | bytes, algorithm: str = "sha256") -> bytes:
    """HMAC 원시 digest (bytes)

    Args:
        secret: HMAC 키
        message: 서명할 메시지
        algorithm: sha256 / sha384 / sha512

    Raises:
        ValueError: 지원하지 않는 알고리즘
    """
    try:
        digestmod = _ALGORITHMS[algorithm]
    except KeyError:
        raise ValueError(f"Unsupported HMAC algorithm: {algorithm}") from None
    return hmac.new(_to_bytes(secret), _to_bytes(message), digestmod).digest()


def encode_digest(digest: bytes, encoding: DigestEncoding) -> str:
    """digest를 문자열로 인코딩"""
    if encoding == DigestEncoding.HEX:
        return digest.hex()
    if encoding == DigestEncoding.UPPER_HEX:
        return digest.hex().upper()
    return base64.b64encode(digest).decode("ascii")


def hmac_sign(
    secret: str | bytes,
    message: str | bytes,
    algorithm: str = "sha256",
    encoding: DigestEncoding = DigestEncoding.HEX,
) -> str:
    """HMAC 서명 생성

    Example:
        >>> hmac_sign("secret", "symbol=BTCUSDT&timestamp=1", "sha256")
        '...64자 hex...'
    """
    return encode_digest(hmac_digest(secret, message, algorithm), encoding)


def sha_hex(data: str | bytes, algorithm: str = "sha512") -> str:
    """단순 해시 (hex) - Gate.io 본문 해시 등"""
    return hashlib.new(algorithm, _to_bytes(data)).hexdigest()


def build_query(params: dict[str, Any] | None) -> str:
    """쿼리 문자열 생성 (None 값 제외, 삽입 순서 유지)

    서명 대상 문자열과 실제 전송 URL이 반드시 같아야 하므로
    httpx params 인코딩 대신 이 결과를 그대로 URL에 붙임.
    """
    if not params:
        return ""
    return urlencode([(k, v) for k, v in params.items() if v is not None])


def require_passphrase(credentials: ExchangeCredentials, exchange: str, label: str = "passphrase") -> str:
    """passphrase 필수 거래소의 passphrase 반환

    빈 문자열로 대체하지 않고 즉시 실패.

    Raises:
        AuthenticationError: passphrase 없음
    """
    if not credentials.api_passphrase:
        raise AuthenticationError(
            f"API {label} is required for {exchange} but was not provided",
            exchange=exchange,
        )
    return credentials.api_passphrase


@dataclass(frozen=True)
class RequestSpec:
    """서명 전 요청 설명

    Attributes:
        method: HTTP 메서드 (GET/POST)
        path: API 경로 (베이스 URL 제외, 예: /api/v3/myTrades)
        params: 쿼리 파라미터 (삽입 순서 유지)
        body: 요청 본문 (JSON 또는 form 필드)
    """

    method: str
    path: str
    params: dict[str, Any] = field(default_factory=dict)
    body: dict[str, Any] | None = None


@dataclass(frozen=True)
class SignedRequest:
    """전송 가능한 서명 완료 요청

    Attributes:
        method: HTTP 메서드
        path: API 경로
        query: 인코딩된 쿼리 문자열 (서명 포함 가능)
        headers: 요청 헤더 (인증 헤더 포함)
        content: 인코딩된 본문 (없으면 None)
    """

    method: str
    path: str
    query: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    content: str | None = None

    @property
    def target(self) -> str:
        """경로 + 쿼리"""
        return f"{self.path}?{self.query}" if self.query else self.path


# 거래소별 서명 함수 타입
Signer = Callable[[ExchangeCredentials, RequestSpec, int], SignedRequest]


def unsigned_request(request: RequestSpec) -> SignedRequest:
    """공개 엔드포인트용 (서명 없음)"""
    return SignedRequest(
        method=request.method,
        path=request.path,
        query=build_query(request.params),
    )
