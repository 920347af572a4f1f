"""
어댑터 레이어

외부 서비스(거래소 REST API, DB)와의 연동을 담당.
Protocol 기반 인터페이스로 Mock 교체 가능.
"""

from adapters.interfaces import (
    IExchangeAdapter,
    ICredentialCipher,
)
from adapters.models import (
    ExchangeCredentials,
    FetchOptions,
    FetchWarning,
    Trade,
    Balance,
    Order,
    Deposit,
    Withdrawal,
    HealthCheckResult,
)

__all__ = [
    # Interfaces
    "IExchangeAdapter",
    "ICredentialCipher",
    # Models
    "ExchangeCredentials",
    "FetchOptions",
    "FetchWarning",
    "Trade",
    "Balance",
    "Order",
    "Deposit",
    "Withdrawal",
    "HealthCheckResult",
]
