"""
어댑터 공통 데이터 모델

거래소 API 응답을 표준화한 정규(canonical) 모델.
모든 금액/수량은 Decimal, 모든 시간은 UTC datetime 사용.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from adapters.errors import ValidationError
from core.types import (
    HealthStatus,
    MarketType,
    OrderStatus,
    TradeRole,
    TradeSide,
    TransferStatus,
)
from core.utils.timezone import format_iso, to_timestamp_ms


@dataclass(frozen=True)
class ExchangeCredentials:
    """거래소 API 자격 증명

    어댑터 인스턴스가 수명 동안 단독 소유.
    repr/로그에 절대 노출되지 않도록 모든 필드 repr=False.

    Attributes:
        api_key: API 키
        api_secret: API 시크릿
        api_passphrase: passphrase (Bitstamp는 Customer ID)
    """

    api_key: str = field(repr=False)
    api_secret: str = field(repr=False)
    api_passphrase: str | None = field(default=None, repr=False)

    @property
    def has_passphrase(self) -> bool:
        """passphrase 존재 여부"""
        return bool(self.api_passphrase)


@dataclass(frozen=True)
class FetchWarning:
    """심볼/마켓 단위 조회 실패 기록

    조회 전체를 중단하지 않고 건너뛴 실패를 호출자에게 전달.
    """

    exchange: str
    message: str
    market: str | None = None
    symbol: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "exchange": self.exchange,
            "market": self.market,
            "symbol": self.symbol,
            "message": self.message,
        }


@dataclass(frozen=True)
class FetchOptions:
    """조회 옵션

    값이 없으면 거래소 기본 기간/개수 사용.

    Attributes:
        start_time: 조회 시작 시각
        end_time: 조회 종료 시각
        limit: 최대 개수
        symbol: 심볼 필터 (BASE/QUOTE 형식)
        market: 마켓 필터 (None이면 어댑터가 지원하는 전체 마켓)
        warnings: 심볼/마켓 단위 실패 수집 목록
    """

    start_time: datetime | None = None
    end_time: datetime | None = None
    limit: int | None = None
    symbol: str | None = None
    market: MarketType | None = None
    warnings: list[FetchWarning] = field(default_factory=list, compare=False, repr=False)

    @property
    def start_ms(self) -> int | None:
        """시작 시각 (밀리초)"""
        return to_timestamp_ms(self.start_time) if self.start_time else None

    @property
    def end_ms(self) -> int | None:
        """종료 시각 (밀리초)"""
        return to_timestamp_ms(self.end_time) if self.end_time else None

    def in_range(self, ts: datetime) -> bool:
        """시각이 조회 기간 안에 있는지 (서버 측 필터가 없는 거래소용)"""
        if self.start_time is not None and ts < self.start_time:
            return False
        if self.end_time is not None and ts > self.end_time:
            return False
        return True

    def includes_market(self, market: MarketType) -> bool:
        """마켓 필터 통과 여부"""
        return self.market is None or self.market == market

    def add_warning(
        self,
        exchange: str,
        message: str,
        market: MarketType | str | None = None,
        symbol: str | None = None,
    ) -> None:
        """심볼/마켓 단위 실패 기록"""
        market_value = market.value if isinstance(market, MarketType) else market
        self.warnings.append(
            FetchWarning(
                exchange=exchange,
                message=message,
                market=market_value,
                symbol=symbol,
            )
        )


@dataclass(frozen=True)
class Trade:
    """체결 정보

    Attributes:
        id: 거래소 체결 ID
        exchange: 거래소 이름
        symbol: 정규화 심볼 (BASE/QUOTE)
        side: 체결 방향 (buy/sell)
        price: 체결 가격 (>= 0)
        quantity: 체결 수량 (>= 0)
        fee: 수수료
        fee_currency: 수수료 통화
        timestamp: 체결 시각 (UTC)
        order_id: 주문 ID
        role: maker/taker (알 수 없으면 None)
        market: spot/futures
    """

    id: str
    exchange: str
    symbol: str
    side: TradeSide
    price: Decimal
    quantity: Decimal
    fee: Decimal
    fee_currency: str | None
    timestamp: datetime
    order_id: str | None = None
    role: TradeRole | None = None
    market: MarketType = MarketType.SPOT

    def __post_init__(self) -> None:
        if self.price < 0 or self.quantity < 0:
            raise ValidationError(
                f"Negative price/quantity in trade {self.id}",
                exchange=self.exchange,
            )

    @property
    def notional(self) -> Decimal:
        """체결 금액 (가격 * 수량)"""
        return self.price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환 (JSON 직렬화용)"""
        return {
            "id": self.id,
            "exchange": self.exchange,
            "symbol": self.symbol,
            "side": self.side.value,
            "price": str(self.price),
            "quantity": str(self.quantity),
            "fee": str(self.fee),
            "fee_currency": self.fee_currency,
            "timestamp": format_iso(self.timestamp),
            "order_id": self.order_id,
            "role": self.role.value if self.role else None,
            "market": self.market.value,
        }


@dataclass(frozen=True)
class Balance:
    """잔고 정보

    total은 free + locked로 계산되므로 항상 일치.

    Attributes:
        exchange: 거래소 이름
        currency: 자산 코드 (예: USDT, BTC)
        free: 사용 가능 잔고
        locked: 주문 등에 묶인 잔고
    """

    exchange: str
    currency: str
    free: Decimal
    locked: Decimal = Decimal("0")

    @property
    def total(self) -> Decimal:
        """총 잔고 (free + locked)"""
        return self.free + self.locked

    @property
    def is_zero(self) -> bool:
        """잔고 없음 여부"""
        return self.free == 0 and self.locked == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "exchange": self.exchange,
            "currency": self.currency,
            "free": str(self.free),
            "locked": str(self.locked),
            "total": str(self.total),
        }


@dataclass(frozen=True)
class Order:
    """주문 정보

    Attributes:
        id: 거래소 주문 ID
        exchange: 거래소 이름
        symbol: 정규화 심볼
        side: 주문 방향
        type: 주문 유형 (limit, market 등 거래소 값 소문자)
        status: 정규화 상태 (open/closed/cancelled/expired)
        price: 주문 가격
        quantity: 주문 수량
        filled: 체결 수량
        timestamp: 주문 생성 시각
    """

    id: str
    exchange: str
    symbol: str
    side: TradeSide
    type: str
    status: OrderStatus
    price: Decimal
    quantity: Decimal
    filled: Decimal
    timestamp: datetime

    @property
    def remaining(self) -> Decimal:
        """잔여 수량"""
        return self.quantity - self.filled

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "exchange": self.exchange,
            "symbol": self.symbol,
            "side": self.side.value,
            "type": self.type,
            "status": self.status.value,
            "price": str(self.price),
            "quantity": str(self.quantity),
            "filled": str(self.filled),
            "remaining": str(self.remaining),
            "timestamp": format_iso(self.timestamp),
        }


@dataclass(frozen=True)
class Deposit:
    """입금 정보

    Attributes:
        id: 거래소 입금 ID
        exchange: 거래소 이름
        currency: 자산 코드
        amount: 입금 수량
        address: 입금 주소
        tx_id: 블록체인 트랜잭션 ID
        status: 정규화 상태 (pending/completed/failed)
        timestamp: 입금 시각
        network: 네트워크 (체인)
        memo: 메모/태그
    """

    id: str
    exchange: str
    currency: str
    amount: Decimal
    address: str | None
    tx_id: str | None
    status: TransferStatus
    timestamp: datetime
    network: str | None = None
    memo: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "exchange": self.exchange,
            "currency": self.currency,
            "amount": str(self.amount),
            "address": self.address,
            "tx_id": self.tx_id,
            "status": self.status.value,
            "timestamp": format_iso(self.timestamp),
            "network": self.network,
            "memo": self.memo,
        }


@dataclass(frozen=True)
class Withdrawal:
    """출금 정보

    Deposit 필드에 출금 수수료(fee) 추가.
    """

    id: str
    exchange: str
    currency: str
    amount: Decimal
    address: str | None
    tx_id: str | None
    status: TransferStatus
    timestamp: datetime
    fee: Decimal = Decimal("0")
    network: str | None = None
    memo: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "exchange": self.exchange,
            "currency": self.currency,
            "amount": str(self.amount),
            "fee": str(self.fee),
            "address": self.address,
            "tx_id": self.tx_id,
            "status": self.status.value,
            "timestamp": format_iso(self.timestamp),
            "network": self.network,
            "memo": self.memo,
        }


@dataclass(frozen=True)
class HealthCheckResult:
    """헬스 체크 결과

    Attributes:
        status: healthy/degraded/down
        latency_ms: 인증 호출 왕복 시간 (밀리초)
        error: 실패 사유 (down일 때)
    """

    status: HealthStatus
    latency_ms: int
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "latency_ms": self.latency_ms,
            "error": self.error,
        }
