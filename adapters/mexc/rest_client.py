"""
MEXC Spot v3 REST 어댑터

서명: HMAC-SHA256(secret, 쿼리 문자열) hex, signature 파라미터 + X-MEXC-APIKEY.
myTrades/allOrders는 심볼 필수라 seed 심볼을 순회.
"""

from datetime import timedelta
from typing import Any

from adapters.exchange.base import ExchangeAdapterBase
from adapters.exchange.client import ExchangeSpec, body_code_handler
from adapters.exchange.normalize import join_symbol, split_window
from adapters.exchange.signing import RequestSpec, SignedRequest, build_query, hmac_sign
from adapters.mexc.models import (
    ERROR_CODES,
    parse_balances,
    parse_deposit,
    parse_order,
    parse_trade,
    parse_withdrawal,
)
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

TRADE_WINDOW = timedelta(days=30)
ORDER_WINDOW = timedelta(days=7)
TRADE_LIMIT = 100
ORDER_LIMIT = 1000


def sign_request(
    credentials: ExchangeCredentials,
    request: RequestSpec,
    timestamp_ms: int,
) -> SignedRequest:
    """MEXC 서명"""
    query = build_query({**request.params, "timestamp": timestamp_ms})
    signature = hmac_sign(credentials.api_secret, query)
    return SignedRequest(
        method=request.method,
        path=request.path,
        query=f"{query}&signature={signature}",
        headers={"X-MEXC-APIKEY": credentials.api_key, "Content-Type": "application/json"},
    )


SPEC = ExchangeSpec(
    exchange_id="mexc",
    display_name="MEXC",
    base_url="https://api.mexc.com",
    min_delay=0.1,
    signer=sign_request,
    # 성공 응답에는 code가 없고 에러 응답에만 {"code": 700002, "msg": "..."}
    response_handler=body_code_handler(ERROR_CODES, "code", "msg", (0, 200)),
)


class MEXCAdapter(ExchangeAdapterBase):
    """MEXC 어댑터 (spot)"""

    spec = SPEC

    DEFAULT_SPOT_SYMBOLS = ("BTC/USDT", "ETH/USDT", "MX/USDT", "SOL/USDT")

    def __init__(self, credentials: ExchangeCredentials, **kwargs: Any):
        super().__init__(SPEC, credentials, **kwargs)

    async def _ping(self) -> None:
        await self.http.request("GET", "/api/v3/account")

    async def _fetch_symbol_windows(
        self,
        path: str,
        symbol: str,
        options: FetchOptions,
        span: timedelta,
        limit: int,
    ) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        for start, end in split_window(options.start_time, options.end_time, span):
            data = await self.http.request(
                "GET",
                path,
                {
                    "symbol": join_symbol(symbol),
                    "startTime": to_timestamp_ms(start) if start else None,
                    "endTime": to_timestamp_ms(end) if end else None,
                    "limit": min(options.limit or limit, limit),
                },
            )
            rows.extend(data or [])
        return rows

    async def _fetch_spot_trades(self, options: FetchOptions) -> list[Trade]:
        async def fetch_symbol(symbol: str) -> list[Trade]:
            rows = await self._fetch_symbol_windows("/api/v3/myTrades", symbol, options, TRADE_WINDOW, TRADE_LIMIT)
            return [parse_trade(row) for row in rows]

        symbols = self.symbols_for(MarketType.SPOT, options)
        trades = await self.gather_symbols(MarketType.SPOT, symbols, fetch_symbol, options)
        self._log_fetched("spot 체결", trades, symbols=len(symbols))
        return trades

    async def fetch_balances(self) -> list[Balance]:
        data = await self.http.request("GET", "/api/v3/account")
        return parse_balances(data)

    async def fetch_orders(self, options: FetchOptions | None = None) -> list[Order]:
        options = options or FetchOptions()

        async def fetch_symbol(symbol: str) -> list[Order]:
            rows = await self._fetch_symbol_windows("/api/v3/allOrders", symbol, options, ORDER_WINDOW, ORDER_LIMIT)
            return [parse_order(row) for row in rows]

        symbols = self.symbols_for(MarketType.SPOT, options)
        orders = await self.gather_symbols(MarketType.SPOT, symbols, fetch_symbol, options)
        self._log_fetched("주문", orders)
        return orders

    async def fetch_deposits(self, options: FetchOptions | None = None) -> list[Deposit]:
        options = options or FetchOptions()
        data = await self.http.request(
            "GET",
            "/api/v3/capital/deposit/hisrec",
            {"startTime": options.start_ms, "endTime": options.end_ms, "limit": 1000},
        )
        deposits = [parse_deposit(item) for item in data or []]
        self._log_fetched("입금", deposits)
        return deposits

    async def fetch_withdrawals(self, options: FetchOptions | None = None) -> list[Withdrawal]:
        options = options or FetchOptions()
        data = await self.http.request(
            "GET",
            "/api/v3/capital/withdraw/history",
            {"startTime": options.start_ms, "endTime": options.end_ms, "limit": 1000},
        )
        withdrawals = [parse_withdrawal(item) for item in data or []]
        self._log_fetched("출금", withdrawals)
        return withdrawals
