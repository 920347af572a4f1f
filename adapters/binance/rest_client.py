"""
Binance REST 어댑터

HMAC-SHA256 쿼리 서명, Spot + USDT-M Futures 체결 조회.
Binance는 전체 체결 조회 엔드포인트가 없어 seed 심볼을 순회.
"""

import logging
from datetime import datetime, timedelta
from typing import Any

import httpx

from adapters.binance.models import (
    ERROR_CODES,
    parse_balances,
    parse_deposit,
    parse_futures_trade,
    parse_order,
    parse_spot_trade,
    parse_withdrawal,
)
from adapters.exchange.base import ExchangeAdapterBase
from adapters.exchange.client import ExchangeSpec, raise_for_http_status, raise_mapped_error, read_json
from adapters.exchange.normalize import join_symbol, split_window
from adapters.exchange.signing import RequestSpec, SignedRequest, build_query, hmac_sign
from adapters.models import (
    Balance,
    Deposit,
    ExchangeCredentials,
    FetchOptions,
    Order,
    Trade,
    Withdrawal,
)
from core.types import MarketType
from core.utils.timezone import to_timestamp_ms

logger = logging.getLogger(__name__)

FUTURES_BASE_URL = "https://fapi.binance.com"

# 조회 기간 최대 구간 (myTrades/allOrders 24시간, userTrades 7일)
SPOT_WINDOW = timedelta(hours=24)
FUTURES_WINDOW = timedelta(days=7)
TRADE_LIMIT = 1000
ORDER_LIMIT = 500


def sign_request(
    credentials: ExchangeCredentials,
    request: RequestSpec,
    timestamp_ms: int,
) -> SignedRequest:
    """Binance 서명

    signature = HMAC-SHA256(secret, 쿼리 문자열) hex,
    쿼리 끝에 signature 파라미터로 추가.
    """
    params = {**request.params, "timestamp": timestamp_ms}
    query = build_query(params)
    signature = hmac_sign(credentials.api_secret, query)
    return SignedRequest(
        method=request.method,
        path=request.path,
        query=f"{query}&signature={signature}",
        headers={"X-MBX-APIKEY": credentials.api_key},
    )


def handle_response(exchange: str, response: httpx.Response) -> Any:
    """Binance 응답 처리

    에러 응답: {"code": -2015, "msg": "Invalid API-key, IP, or permissions for action."}
    """
    if response.status_code < 400:
        return read_json(exchange, response)

    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict) and "code" in data:
        raise_mapped_error(exchange, data.get("code"), data.get("msg"), ERROR_CODES, response)
    raise_for_http_status(exchange, response)


SPEC = ExchangeSpec(
    exchange_id="binance",
    display_name="Binance",
    base_url="https://api.binance.com",
    min_delay=0.05,
    signer=sign_request,
    response_handler=handle_response,
    markets=(MarketType.SPOT, MarketType.FUTURES),
)


def _window_params(start: datetime | None, end: datetime | None) -> dict[str, Any]:
    return {
        "startTime": to_timestamp_ms(start) if start else None,
        "endTime": to_timestamp_ms(end) if end else None,
    }


class BinanceAdapter(ExchangeAdapterBase):
    """Binance 어댑터 (Spot + USDT-M Futures)"""

    spec = SPEC

    DEFAULT_SPOT_SYMBOLS = ("BTC/USDT", "ETH/USDT", "BNB/USDT", "SOL/USDT", "XRP/USDT")
    DEFAULT_FUTURES_SYMBOLS = ("BTC/USDT", "ETH/USDT")

    def __init__(self, credentials: ExchangeCredentials, **kwargs: Any):
        super().__init__(SPEC, credentials, **kwargs)

    async def _ping(self) -> None:
        await self.http.request("GET", "/api/v3/account", {"omitZeroBalances": "true"})

    # -------------------------------------------------------------------------
    # 체결
    # -------------------------------------------------------------------------

    async def _paged_trades(
        self,
        path: str,
        symbol: str,
        start: datetime | None,
        end: datetime | None,
        options: FetchOptions,
        base_url: str | None = None,
    ) -> list[dict[str, Any]]:
        """한 구간의 체결을 페이지 단위로 조회

        응답이 limit건으로 가득 차면 fromId = 마지막 id + 1로 이어서 조회.
        fromId는 startTime/endTime과 함께 보낼 수 없어 이어지는 요청은
        구간 종료 시각 이후 체결이 나오면 중단.
        """
        limit = min(options.limit or TRADE_LIMIT, TRADE_LIMIT)
        end_ms = to_timestamp_ms(end) if end else None
        params: dict[str, Any] = {"symbol": join_symbol(symbol), **_window_params(start, end), "limit": limit}
        rows: list[dict[str, Any]] = []
        while True:
            data = await self.http.request("GET", path, params, base_url=base_url)
            page = [row for row in data if end_ms is None or int(row["time"]) <= end_ms]
            rows.extend(page)
            if len(data) < limit or len(page) < len(data):
                return rows
            if options.limit is not None and len(rows) >= options.limit:
                return rows
            params = {"symbol": join_symbol(symbol), "fromId": int(data[-1]["id"]) + 1, "limit": limit}

    async def _fetch_spot_trades(self, options: FetchOptions) -> list[Trade]:
        async def fetch_symbol(symbol: str) -> list[Trade]:
            trades: list[Trade] = []
            for start, end in split_window(options.start_time, options.end_time, SPOT_WINDOW):
                data = await self._paged_trades("/api/v3/myTrades", symbol, start, end, options)
                trades.extend(parse_spot_trade(item) for item in data)
            return trades

        symbols = self.symbols_for(MarketType.SPOT, options)
        trades = await self.gather_symbols(MarketType.SPOT, symbols, fetch_symbol, options)
        self._log_fetched("spot 체결", trades, symbols=len(symbols))
        return trades

    async def _fetch_futures_trades(self, options: FetchOptions) -> list[Trade]:
        async def fetch_symbol(symbol: str) -> list[Trade]:
            trades: list[Trade] = []
            for start, end in split_window(options.start_time, options.end_time, FUTURES_WINDOW):
                data = await self._paged_trades(
                    "/fapi/v1/userTrades", symbol, start, end, options, base_url=FUTURES_BASE_URL
                )
                trades.extend(parse_futures_trade(item) for item in data)
            return trades

        symbols = self.symbols_for(MarketType.FUTURES, options)
        trades = await self.gather_symbols(MarketType.FUTURES, symbols, fetch_symbol, options)
        self._log_fetched("futures 체결", trades, symbols=len(symbols))
        return trades

    # -------------------------------------------------------------------------
    # 잔고 / 주문 / 입출금
    # -------------------------------------------------------------------------

    async def fetch_balances(self) -> list[Balance]:
        data = await self.http.request("GET", "/api/v3/account")
        return parse_balances(data)

    async def fetch_orders(self, options: FetchOptions | None = None) -> list[Order]:
        options = options or FetchOptions()

        async def fetch_symbol(symbol: str) -> list[Order]:
            orders: list[Order] = []
            for start, end in split_window(options.start_time, options.end_time, SPOT_WINDOW):
                data = await self.http.request(
                    "GET",
                    "/api/v3/allOrders",
                    {
                        "symbol": join_symbol(symbol),
                        **_window_params(start, end),
                        "limit": options.limit or ORDER_LIMIT,
                    },
                )
                orders.extend(parse_order(item) for item in data)
            return orders

        symbols = self.symbols_for(MarketType.SPOT, options)
        orders = await self.gather_symbols(MarketType.SPOT, symbols, fetch_symbol, options)
        self._log_fetched("주문", orders)
        return orders

    async def fetch_deposits(self, options: FetchOptions | None = None) -> list[Deposit]:
        options = options or FetchOptions()
        data = await self.http.request(
            "GET",
            "/sapi/v1/capital/deposit/hisrec",
            {
                "startTime": options.start_ms,
                "endTime": options.end_ms,
                "limit": options.limit or TRADE_LIMIT,
            },
        )
        deposits = [parse_deposit(item) for item in data]
        self._log_fetched("입금", deposits)
        return deposits

    async def fetch_withdrawals(self, options: FetchOptions | None = None) -> list[Withdrawal]:
        options = options or FetchOptions()
        data = await self.http.request(
            "GET",
            "/sapi/v1/capital/withdraw/history",
            {
                "startTime": options.start_ms,
                "endTime": options.end_ms,
                "limit": options.limit or TRADE_LIMIT,
            },
        )
        withdrawals = [parse_withdrawal(item) for item in data]
        self._log_fetched("출금", withdrawals)
        return withdrawals
