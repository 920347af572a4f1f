"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
모든 구현체는 이 Protocol을 준수해야 함.
"""

from typing import Protocol, runtime_checkable

from adapters.models import (
    Balance,
    Deposit,
    FetchOptions,
    HealthCheckResult,
    Order,
    Trade,
    Withdrawal,
)
from core.types import MarketType


@runtime_checkable
class IExchangeAdapter(Protocol):
    """거래소 어댑터 인터페이스

    거래소마다 하나의 구현체.
    금액/수량은 반드시 Decimal, 시간은 UTC datetime 사용.
    """

    @property
    def name(self) -> str:
        """거래소 식별자 (소문자, 예: binance)"""
        ...

    @property
    def display_name(self) -> str:
        """표시 이름 (예: Binance)"""
        ...

    @property
    def markets(self) -> tuple[MarketType, ...]:
        """체결 조회를 지원하는 마켓"""
        ...

    async def test_connection(self) -> bool:
        """인증 호출 성공 여부

        어떤 에러도 호출자에게 던지지 않고 False로 반환.
        """
        ...

    async def fetch_trades(self, options: FetchOptions | None = None) -> list[Trade]:
        """체결 내역 조회

        심볼별 조회만 지원하는 거래소는 seed 심볼을 순회.
        심볼/마켓 단위 실패는 options.warnings에 기록하고 건너뜀.
        인증/권한 에러나 요청한 마켓 전체 실패는 예외로 전파.
        """
        ...

    async def fetch_balances(self) -> list[Balance]:
        """잔고 조회 (free/locked 모두 0인 항목 제외)"""
        ...

    async def fetch_orders(self, options: FetchOptions | None = None) -> list[Order]:
        """주문 내역 조회 (엔드포인트가 없으면 빈 목록)"""
        ...

    async def fetch_deposits(self, options: FetchOptions | None = None) -> list[Deposit]:
        """입금 내역 조회 (엔드포인트가 없으면 빈 목록)"""
        ...

    async def fetch_withdrawals(self, options: FetchOptions | None = None) -> list[Withdrawal]:
        """출금 내역 조회 (엔드포인트가 없으면 빈 목록)"""
        ...

    async def health_check(self) -> HealthCheckResult:
        """연결 상태 및 지연 측정"""
        ...

    async def close(self) -> None:
        """HTTP 리소스 정리"""
        ...


@runtime_checkable
class ICredentialCipher(Protocol):
    """자격 증명 암/복호화 인터페이스

    저장 시 암호화는 외부 책임(봉투 암호화, KMS 등).
    코어는 이 인터페이스로만 복호화 결과를 받음.
    """

    def encrypt(self, plaintext: str) -> str:
        """평문 → 저장용 암호문"""
        ...

    def decrypt(self, ciphertext: str) -> str:
        """저장된 암호문 → 평문"""
        ...
