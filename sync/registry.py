"""
거래소 어댑터 레지스트리

거래소 이름 → 어댑터 생성/캐시, 리소스 일괄 조회(sync_exchange).
모듈 전역 캐시 없이 호출자가 인스턴스를 주입받아 사용.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from adapters.binance import BinanceAdapter
from adapters.bingx import BingXAdapter
from adapters.bitfinex import BitfinexAdapter
from adapters.bitstamp import BitstampAdapter
from adapters.bybit import BybitAdapter
from adapters.coinbase import CoinbaseAdapter
from adapters.errors import UnsupportedExchangeError
from adapters.exchange.base import ExchangeAdapterBase
from adapters.exchange.retry import RetryPolicy
from adapters.interfaces import IExchangeAdapter
from adapters.gateio import GateioAdapter
from adapters.kraken import KrakenAdapter
from adapters.kucoin import KuCoinAdapter
from adapters.mexc import MEXCAdapter
from adapters.models import (
    Balance,
    Deposit,
    ExchangeCredentials,
    FetchOptions,
    FetchWarning,
    HealthCheckResult,
    Order,
    Trade,
    Withdrawal,
)
from adapters.okx import OKXAdapter
from core.config.loader import AppSettings, SyncSettings
from core.types import ExchangeName, HealthStatus, ResourceType

logger = logging.getLogger(__name__)

# 클래스 속성 spec(표시 이름, passphrase 여부)을 인스턴스 없이 참조하므로 구현 클래스로 보관.
# 생성된 어댑터는 IExchangeAdapter로만 다룸.
ADAPTER_CLASSES: dict[ExchangeName, type[ExchangeAdapterBase]] = {
    ExchangeName.BINANCE: BinanceAdapter,
    ExchangeName.BYBIT: BybitAdapter,
    ExchangeName.COINBASE: CoinbaseAdapter,
    ExchangeName.KRAKEN: KrakenAdapter,
    ExchangeName.BITFINEX: BitfinexAdapter,
    ExchangeName.BINGX: BingXAdapter,
    ExchangeName.MEXC: MEXCAdapter,
    ExchangeName.KUCOIN: KuCoinAdapter,
    ExchangeName.OKX: OKXAdapter,
    ExchangeName.GATEIO: GateioAdapter,
    ExchangeName.BITSTAMP: BitstampAdapter,
}

# 외부 표기 → 정규 이름
EXCHANGE_ALIASES: dict[str, str] = {
    "gate.io": ExchangeName.GATEIO.value,
}


def canonical_name(exchange_name: str) -> str:
    """대소문자/별칭 정규화 (예: "GATE.IO" → "gateio")"""
    key = exchange_name.strip().lower()
    return EXCHANGE_ALIASES.get(key, key)


def resolve_exchange(exchange_name: str) -> ExchangeName:
    """
    Raises:
        UnsupportedExchangeError: 지원하지 않는 거래소
    """
    try:
        return ExchangeName(canonical_name(exchange_name))
    except ValueError:
        raise UnsupportedExchangeError(exchange_name) from None


@dataclass(frozen=True)
class SyncOptions:
    """sync_exchange 옵션 (리소스 토글 기본값 모두 True)"""

    sync_trades: bool = True
    sync_balances: bool = True
    sync_orders: bool = True
    sync_deposits: bool = True
    sync_withdrawals: bool = True
    start_date: datetime | None = None
    end_date: datetime | None = None

    @classmethod
    def only(cls, *resources: ResourceType, **kwargs: Any) -> "SyncOptions":
        """지정 리소스만 켠 옵션"""
        wanted = set(resources)
        return cls(
            sync_trades=ResourceType.TRADES in wanted,
            sync_balances=ResourceType.BALANCES in wanted,
            sync_orders=ResourceType.ORDERS in wanted,
            sync_deposits=ResourceType.DEPOSITS in wanted,
            sync_withdrawals=ResourceType.WITHDRAWALS in wanted,
            **kwargs,
        )


@dataclass
class SyncExchangeResult:
    """sync_exchange 결과 (꺼진 리소스는 None)"""

    success: bool
    trades: list[Trade] | None = None
    balances: list[Balance] | None = None
    orders: list[Order] | None = None
    deposits: list[Deposit] | None = None
    withdrawals: list[Withdrawal] | None = None
    warnings: list[FetchWarning] = field(default_factory=list)
    error: str | None = None


class ExchangeRegistry:
    """거래소 어댑터 레지스트리

    Args:
        settings: 애플리케이션 설정 (거래소별 seed 심볼, 재시도/타임아웃)
        adapter_classes: 거래소 → 어댑터 클래스 매핑 (테스트 주입용)
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        adapter_classes: Mapping[ExchangeName, type[ExchangeAdapterBase]] | None = None,
    ):
        self.settings = settings
        self._adapter_classes = dict(adapter_classes or ADAPTER_CLASSES)
        self._adapters: dict[str, IExchangeAdapter] = {}

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    def is_supported(self, exchange_name: str) -> bool:
        try:
            return resolve_exchange(exchange_name) in self._adapter_classes
        except UnsupportedExchangeError:
            return False

    def supported_exchanges(self) -> list[str]:
        return [name.value for name in self._adapter_classes]

    def requires_passphrase(self, exchange_name: str) -> bool:
        return resolve_exchange(exchange_name).requires_passphrase

    def display_name(self, exchange_name: str) -> str:
        """표시 이름 (예: gateio → Gate.io)"""
        return self._adapter_class(exchange_name).spec.display_name

    def get_adapter(self, exchange_name: str) -> IExchangeAdapter | None:
        """초기화된 어댑터 (없으면 None)"""
        return self._adapters.get(canonical_name(exchange_name))

    # -------------------------------------------------------------------------
    # 생성 / 초기화
    # -------------------------------------------------------------------------

    def _adapter_class(self, exchange_name: str) -> type[ExchangeAdapterBase]:
        exchange = resolve_exchange(exchange_name)
        try:
            return self._adapter_classes[exchange]
        except KeyError:
            raise UnsupportedExchangeError(exchange_name) from None

    def _sync_settings(self) -> SyncSettings:
        return self.settings.sync if self.settings else SyncSettings()

    def create_adapter(self, exchange_name: str, credentials: ExchangeCredentials) -> IExchangeAdapter:
        """어댑터 생성 (캐시하지 않음)

        Raises:
            UnsupportedExchangeError: 지원하지 않는 거래소
        """
        adapter_cls = self._adapter_class(exchange_name)
        sync = self._sync_settings()
        exchange_settings = self.settings.exchange(canonical_name(exchange_name)) if self.settings else None
        return adapter_cls(
            credentials,
            settings=exchange_settings,
            retry_policy=RetryPolicy(sync.max_retries, sync.retry_base_delay_sec),
            timeout=sync.request_timeout_sec,
        )

    async def initialize_exchange(self, exchange_name: str, credentials: ExchangeCredentials) -> bool:
        """어댑터 생성 + 연결 테스트, 성공 시에만 캐시

        Returns:
            연결 테스트 성공 여부 (지원하지 않는 거래소도 False)
        """
        try:
            adapter = self.create_adapter(exchange_name, credentials)
        except UnsupportedExchangeError as e:
            logger.warning("어댑터 생성 실패", extra={"exchange": exchange_name, "error": str(e)})
            return False

        if not await adapter.test_connection():
            await adapter.close()
            return False

        key = canonical_name(exchange_name)
        previous = self._adapters.pop(key, None)
        if previous is not None:
            await previous.close()
        self._adapters[key] = adapter
        logger.info(f"[{adapter.display_name}] 어댑터 초기화 완료", extra={"exchange": key})
        return True

    # -------------------------------------------------------------------------
    # 동기화
    # -------------------------------------------------------------------------

    async def sync_exchange(self, exchange_name: str, options: SyncOptions | None = None) -> SyncExchangeResult:
        """리소스 일괄 조회 (켜진 리소스를 동시에 조회)

        하나라도 실패하면 success=False + error. 심볼/마켓 단위 실패는
        warnings로만 전달되고 성공으로 취급.
        """
        options = options or SyncOptions()
        adapter = self.get_adapter(exchange_name)
        if adapter is None:
            return SyncExchangeResult(success=False, error=f"Exchange {exchange_name} not initialized")

        fetch_options = FetchOptions(start_time=options.start_date, end_time=options.end_date)
        tasks: dict[str, Any] = {}
        if options.sync_trades:
            tasks["trades"] = adapter.fetch_trades(fetch_options)
        if options.sync_balances:
            tasks["balances"] = adapter.fetch_balances()
        if options.sync_orders:
            tasks["orders"] = adapter.fetch_orders(fetch_options)
        if options.sync_deposits:
            tasks["deposits"] = adapter.fetch_deposits(fetch_options)
        if options.sync_withdrawals:
            tasks["withdrawals"] = adapter.fetch_withdrawals(fetch_options)

        results = await asyncio.gather(*tasks.values(), return_exceptions=True)

        result = SyncExchangeResult(success=True, warnings=fetch_options.warnings)
        for key, value in zip(tasks, results):
            if isinstance(value, Exception):
                logger.error(
                    f"[{adapter.display_name}] {key} 동기화 실패",
                    extra={"exchange": adapter.name, "resource": key, "error": str(value)},
                )
                result.success = False
                result.error = result.error or str(value)
                continue
            if isinstance(value, BaseException):
                raise value
            setattr(result, key, value)

        return result

    async def health_check(self, exchange_name: str) -> HealthCheckResult:
        adapter = self.get_adapter(exchange_name)
        if adapter is None:
            return HealthCheckResult(HealthStatus.DOWN, 0, f"Exchange {exchange_name} not initialized")
        return await adapter.health_check()

    async def remove(self, exchange_name: str) -> None:
        """캐시된 어댑터 제거 + 리소스 정리"""
        adapter = self._adapters.pop(canonical_name(exchange_name), None)
        if adapter is not None:
            await adapter.close()

    async def close(self) -> None:
        """캐시된 모든 어댑터 정리"""
        adapters = list(self._adapters.values())
        self._adapters.clear()
        for adapter in adapters:
            await adapter.close()
