"""
어댑터 공통 동작

거래소 어댑터들이 공유하는 동작:
- 연결 테스트 (예외 → False)
- 헬스 체크 (지연 측정)
- 마켓별 체결 조회 루틴 분배 (마켓 단위 실패 격리)
- 심볼 순회 (심볼 단위 실패 격리)

거래소별 차이(URL, 요청 간격, 서명, 응답 처리)는 생성자에 전달되는
ExchangeSpec으로만 주입되며, 하위 클래스는 _ping()과
마켓별 _fetch_<market>_trades()만 구현.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Sequence, TypeVar

from adapters.errors import AuthenticationError, ExchangeError, PermissionDeniedError
from adapters.exchange.client import ExchangeHttpClient, ExchangeSpec
from adapters.exchange.normalize import keep_latest
from adapters.exchange.retry import RetryPolicy
from adapters.models import (
    Balance,
    Deposit,
    ExchangeCredentials,
    FetchOptions,
    HealthCheckResult,
    Order,
    Trade,
    Withdrawal,
)
from core.config.loader import ExchangeSettings
from core.constants import SyncDefaults
from core.types import AdapterState, HealthStatus, MarketType

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 키 자체가 거부된 경우: 다른 마켓/심볼도 같은 결과이므로 격리하지 않음
FATAL_ERRORS = (AuthenticationError, PermissionDeniedError)


class ExchangeAdapterBase:
    """거래소 어댑터 공통 구현

    Args:
        spec: 거래소 고정 설정
        credentials: API 자격 증명 (인스턴스가 단독 소유)
        settings: 거래소별 설정 (seed 심볼 등)
        http: HTTP 클라이언트 (None이면 spec으로 생성)
        retry_policy: 재시도 정책
        timeout: 요청 타임아웃 (초)
    """

    # 설정에 seed 심볼이 없을 때 사용하는 기본 목록 (BASE/QUOTE)
    DEFAULT_SPOT_SYMBOLS: tuple[str, ...] = ()
    DEFAULT_FUTURES_SYMBOLS: tuple[str, ...] = ()

    # 하위 클래스가 지정하는 거래소 고정 설정 (레지스트리가 인스턴스 없이 참조)
    spec: ExchangeSpec

    def __init__(
        self,
        spec: ExchangeSpec,
        credentials: ExchangeCredentials,
        settings: ExchangeSettings | None = None,
        http: ExchangeHttpClient | None = None,
        retry_policy: RetryPolicy | None = None,
        timeout: float = SyncDefaults.REQUEST_TIMEOUT_SEC,
    ):
        self.spec = spec
        self.settings = settings or ExchangeSettings()
        self.credentials = credentials
        self.http = http or ExchangeHttpClient(
            spec,
            credentials,
            timeout=timeout,
            retry_policy=retry_policy,
            base_url=self.settings.base_url,
        )
        self.state = AdapterState.UNINITIALIZED

        # 생성은 허용하고 실제 API 호출 시점(서명)에서 실패
        if spec.requires_passphrase and not credentials.has_passphrase:
            logger.warning(
                f"[{spec.display_name}] passphrase 없이 어댑터 생성: 인증 호출은 실패합니다",
                extra={"exchange": spec.exchange_id},
            )

    # -------------------------------------------------------------------------
    # 식별 정보
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self.spec.exchange_id

    @property
    def display_name(self) -> str:
        return self.spec.display_name

    @property
    def markets(self) -> tuple[MarketType, ...]:
        return self.spec.markets

    # -------------------------------------------------------------------------
    # 연결 테스트 / 헬스 체크
    # -------------------------------------------------------------------------

    async def _ping(self) -> None:
        """인증이 필요한 가장 가벼운 호출 (하위 클래스 구현)"""
        raise NotImplementedError

    async def test_connection(self) -> bool:
        """연결 테스트 (예외를 던지지 않음)

        Returns:
            인증 호출 성공 시 True, 그 외 모든 경우 False
        """
        try:
            await self._ping()
        except Exception as e:
            logger.warning(
                f"[{self.display_name}] 연결 테스트 실패",
                extra={"exchange": self.name, "error": str(e), "error_type": type(e).__name__},
            )
            return False

        self.state = AdapterState.TESTED
        logger.info(f"[{self.display_name}] 연결 테스트 성공", extra={"exchange": self.name})
        return True

    async def health_check(self) -> HealthCheckResult:
        """헬스 체크

        Returns:
            healthy: 성공 + 지연 <= 3000ms
            degraded: 성공 + 지연 > 3000ms
            down: 실패
        """
        started = time.monotonic()
        try:
            await self._ping()
        except Exception as e:
            latency_ms = int((time.monotonic() - started) * 1000)
            return HealthCheckResult(HealthStatus.DOWN, latency_ms, str(e))

        latency_ms = int((time.monotonic() - started) * 1000)
        if latency_ms > SyncDefaults.DEGRADED_LATENCY_MS:
            return HealthCheckResult(HealthStatus.DEGRADED, latency_ms)
        return HealthCheckResult(HealthStatus.HEALTHY, latency_ms)

    async def close(self) -> None:
        """HTTP 리소스 정리"""
        await self.http.close()

    # -------------------------------------------------------------------------
    # 체결 조회 (마켓 분배)
    # -------------------------------------------------------------------------

    def _trade_routine(self, market: MarketType) -> Callable[[FetchOptions], Awaitable[list[Trade]]]:
        return getattr(self, f"_fetch_{market.value}_trades")

    async def fetch_trades(self, options: FetchOptions | None = None) -> list[Trade]:
        """체결 내역 조회 (지원 마켓 전체)

        마켓 단위 실패는 options.warnings에 기록하고 나머지 마켓은 계속 조회.
        인증/권한 에러, 또는 요청한 마켓이 모두 실패하면 마지막 에러를 전파.
        병합 결과는 options.limit 기준 최근 건만 반환.
        """
        options = options or FetchOptions()
        self.state = AdapterState.ACTIVE

        requested = [m for m in self.markets if options.includes_market(m)]
        trades: list[Trade] = []
        failures: list[ExchangeError] = []
        for market in requested:
            try:
                trades.extend(await self._trade_routine(market)(options))
            except FATAL_ERRORS:
                raise
            except ExchangeError as e:
                failures.append(e)
                logger.warning(
                    f"[{self.display_name}] {market.value} 체결 조회 실패, 건너뜀",
                    extra={"exchange": self.name, "market": market.value, "error": str(e)},
                )
                options.add_warning(self.name, str(e), market=market)

        if failures and len(failures) == len(requested):
            raise failures[-1]
        return keep_latest(trades, options.limit)

    async def fetch_balances(self) -> list[Balance]:
        raise NotImplementedError

    async def fetch_orders(self, options: FetchOptions | None = None) -> list[Order]:
        """주문 내역 (엔드포인트 없는 거래소는 빈 목록)"""
        return []

    async def fetch_deposits(self, options: FetchOptions | None = None) -> list[Deposit]:
        """입금 내역 (엔드포인트 없는 거래소는 빈 목록)"""
        return []

    async def fetch_withdrawals(self, options: FetchOptions | None = None) -> list[Withdrawal]:
        """출금 내역 (엔드포인트 없는 거래소는 빈 목록)"""
        return []

    # -------------------------------------------------------------------------
    # 심볼 순회
    # -------------------------------------------------------------------------

    def symbols_for(self, market: MarketType, options: FetchOptions) -> list[str]:
        """조회할 심볼 목록 (BASE/QUOTE)

        우선순위: options.symbol > 설정 seed 심볼 > 어댑터 기본 목록.
        전체 페어 순회는 비용 때문에 하지 않음 (seed 목록 밖의 체결은 누락).
        """
        if options.symbol:
            return [options.symbol.upper()]
        if market == MarketType.FUTURES:
            configured = self.settings.futures_symbols or self.DEFAULT_FUTURES_SYMBOLS
        else:
            configured = self.settings.spot_symbols or self.DEFAULT_SPOT_SYMBOLS
        return [s.upper() for s in configured]

    async def gather_symbols(
        self,
        market: MarketType,
        symbols: Sequence[str],
        fetch_one: Callable[[str], Awaitable[list[T]]],
        options: FetchOptions,
    ) -> list[T]:
        """심볼별 조회를 동시에 실행하고 결과 병합

        요청은 어댑터의 RateLimiter가 직렬화.
        ExchangeError는 심볼 단위로 격리 (로그 + warnings).
        인증/권한 에러와 그 외 예외는 전파.
        병합 결과는 options.limit 기준 최근 건만 반환.
        """
        results = await asyncio.gather(
            *(fetch_one(symbol) for symbol in symbols),
            return_exceptions=True,
        )

        merged: list[T] = []
        for symbol, result in zip(symbols, results):
            if isinstance(result, FATAL_ERRORS):
                raise result
            if isinstance(result, ExchangeError):
                logger.warning(
                    f"[{self.display_name}] {symbol} 조회 실패, 건너뜀",
                    extra={
                        "exchange": self.name,
                        "market": market.value,
                        "symbol": symbol,
                        "error": str(result),
                    },
                )
                options.add_warning(self.name, str(result), market=market, symbol=symbol)
                continue
            if isinstance(result, BaseException):
                raise result
            merged.extend(result)

        return keep_latest(merged, options.limit)

    def _log_fetched(self, kind: str, items: Sequence[Any], **extra: Any) -> None:
        logger.info(
            f"[{self.display_name}] {kind} {len(items)}건 조회",
            extra={"exchange": self.name, **extra},
        )
