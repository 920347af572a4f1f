"""
거래소 어댑터 공통 계층

서명 헬퍼, 요청 간격 제한기, 재시도 헬퍼, 범용 HTTP 클라이언트,
정규화 헬퍼, 어댑터 공통 동작(연결 테스트, 헬스 체크, 심볼 순회).
"""

from adapters.exchange.client import ExchangeHttpClient, ExchangeSpec
from adapters.exchange.rate_limiter import RateLimiter
from adapters.exchange.retry import RetryPolicy, with_retry
from adapters.exchange.signing import (
    DigestEncoding,
    RequestSpec,
    SignedRequest,
    hmac_sign,
)

__all__ = [
    "ExchangeHttpClient",
    "ExchangeSpec",
    "RateLimiter",
    "RetryPolicy",
    "with_retry",
    "DigestEncoding",
    "RequestSpec",
    "SignedRequest",
    "hmac_sign",
]
