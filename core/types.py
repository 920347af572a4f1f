"""
타입 정의 모듈

Enum 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class ExchangeName(str, Enum):
    """지원 거래소 식별자 (소문자 고정)"""

    BINANCE = "binance"
    BYBIT = "bybit"
    COINBASE = "coinbase"
    KRAKEN = "kraken"
    BITFINEX = "bitfinex"
    BINGX = "bingx"
    MEXC = "mexc"
    KUCOIN = "kucoin"
    OKX = "okx"
    GATEIO = "gateio"
    BITSTAMP = "bitstamp"

    @property
    def requires_passphrase(self) -> bool:
        """passphrase(또는 Customer ID) 필요 여부"""
        return self in PASSPHRASE_EXCHANGES


# KuCoin, OKX: API passphrase / Bitstamp: Customer ID
PASSPHRASE_EXCHANGES = frozenset({
    ExchangeName.KUCOIN,
    ExchangeName.OKX,
    ExchangeName.BITSTAMP,
})


class MarketType(str, Enum):
    """마켓 종류 (현물 / 선물)"""

    SPOT = "spot"
    FUTURES = "futures"


class TradeSide(str, Enum):
    """체결 방향"""

    BUY = "buy"
    SELL = "sell"


class TradeRole(str, Enum):
    """유동성 역할"""

    MAKER = "maker"
    TAKER = "taker"


class OrderStatus(str, Enum):
    """정규화된 주문 상태 (닫힌 집합)"""

    OPEN = "open"
    CLOSED = "closed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class TransferStatus(str, Enum):
    """정규화된 입출금 상태 (닫힌 집합)"""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class ResourceType(str, Enum):
    """동기화 대상 리소스"""

    TRADES = "trades"
    BALANCES = "balances"
    ORDERS = "orders"
    DEPOSITS = "deposits"
    WITHDRAWALS = "withdrawals"


class SyncMode(str, Enum):
    """동기화 모드 (2단계 워크플로우)"""

    PREVIEW = "preview"
    IMPORT = "import"


class SyncStatus(str, Enum):
    """거래소 연결의 동기화 상태"""

    IDLE = "idle"
    SYNCING = "syncing"
    PENDING_REVIEW = "pending_review"
    SUCCESS = "success"
    ERROR = "error"


class SyncHistoryStatus(str, Enum):
    """동기화 이력 상태"""

    PROCESSING = "processing"
    PENDING_REVIEW = "pending_review"
    COMPLETED = "completed"
    FAILED = "failed"


class SyncTrigger(str, Enum):
    """동기화 실행 주체"""

    MANUAL = "manual"
    AUTO = "auto"
    SCHEDULED = "scheduled"


class HealthStatus(str, Enum):
    """거래소 연결 상태 (헬스 체크 결과)"""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    DOWN = "down"


class AdapterState(str, Enum):
    """어댑터 인스턴스 상태 (정보용)"""

    UNINITIALIZED = "uninitialized"
    TESTED = "tested"
    ACTIVE = "active"


class JobPriority(str, Enum):
    """스케줄러 작업 우선순위"""

    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"

    @property
    def rank(self) -> int:
        """정렬 순위 (작을수록 먼저)"""
        return {"high": 0, "normal": 1, "low": 2}[self.value]
