"""
BingX REST 어댑터

서명: HMAC-SHA256(secret, 쿼리 문자열) hex, signature 파라미터 + X-BX-APIKEY.
현물은 심볼별 myTrades, 무기한 선물은 allFillOrders를 우선 사용하고
결과가 없거나 실패하면 fillHistory로 재조회.
"""

import logging
from datetime import datetime, timedelta
from typing import Any

from adapters.bingx.models import (
    ERROR_CODES,
    extract_fill_list,
    parse_balances,
    parse_deposit,
    parse_futures_fill,
    parse_order,
    parse_spot_trade,
    parse_withdrawal,
)
from adapters.errors import ExchangeError
from adapters.exchange.base import ExchangeAdapterBase
from adapters.exchange.client import ExchangeSpec, body_code_handler
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

HISTORY_WINDOW = timedelta(days=7)
SPOT_LIMIT = 1000
FUTURES_LIMIT = 500


def sign_request(
    credentials: ExchangeCredentials,
    request: RequestSpec,
    timestamp_ms: int,
) -> SignedRequest:
    """BingX 서명"""
    query = build_query({**request.params, "timestamp": timestamp_ms})
    signature = hmac_sign(credentials.api_secret, query)
    return SignedRequest(
        method=request.method,
        path=request.path,
        query=f"{query}&signature={signature}",
        headers={"X-BX-APIKEY": credentials.api_key},
    )


SPEC = ExchangeSpec(
    exchange_id="bingx",
    display_name="BingX",
    base_url="https://open-api.bingx.com",
    min_delay=0.15,
    signer=sign_request,
    response_handler=body_code_handler(ERROR_CODES, "code", "msg", (0,), "data"),
    markets=(MarketType.SPOT, MarketType.FUTURES),
)


def _ms(value: datetime | None) -> int | None:
    return to_timestamp_ms(value) if value else None


class BingXAdapter(ExchangeAdapterBase):
    """BingX 어댑터 (spot + perpetual swap)"""

    spec = SPEC

    DEFAULT_SPOT_SYMBOLS = ("BTC/USDT", "ETH/USDT", "SOL/USDT", "XRP/USDT")

    def __init__(self, credentials: ExchangeCredentials, **kwargs: Any):
        super().__init__(SPEC, credentials, **kwargs)

    async def _ping(self) -> None:
        await self.http.request("GET", "/openApi/spot/v1/account/balance")

    async def _fetch_spot_trades(self, options: FetchOptions) -> list[Trade]:
        async def fetch_symbol(symbol: str) -> list[Trade]:
            trades: list[Trade] = []
            for start, end in split_window(options.start_time, options.end_time, HISTORY_WINDOW):
                data = await self.http.request(
                    "GET",
                    "/openApi/spot/v1/trade/myTrades",
                    {
                        "symbol": join_symbol(symbol, "-"),
                        "startTime": _ms(start),
                        "endTime": _ms(end),
                        "limit": min(options.limit or SPOT_LIMIT, SPOT_LIMIT),
                    },
                )
                trades.extend(parse_spot_trade(item) for item in (data or {}).get("fills") or [])
            return trades

        symbols = self.symbols_for(MarketType.SPOT, options)
        trades = await self.gather_symbols(MarketType.SPOT, symbols, fetch_symbol, options)
        self._log_fetched("spot 체결", trades, symbols=len(symbols))
        return trades

    async def _fetch_fills(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        """allFillOrders → (실패 또는 0건) → fillHistory"""
        try:
            data = await self.http.request("GET", "/openApi/swap/v2/trade/allFillOrders", params)
            items = extract_fill_list(data)
        except ExchangeError as e:
            logger.warning(
                "[BingX] allFillOrders 실패, fillHistory로 재조회",
                extra={"exchange": self.name, "error": str(e)},
            )
            items = []

        if items:
            return items

        data = await self.http.request("GET", "/openApi/swap/v2/trade/fillHistory", params)
        return extract_fill_list(data)

    async def _fetch_futures_trades(self, options: FetchOptions) -> list[Trade]:
        trades: list[Trade] = []
        for start, end in split_window(options.start_time, options.end_time, HISTORY_WINDOW):
            params = {
                "symbol": join_symbol(options.symbol, "-") if options.symbol else None,
                "tradingUnit": "COIN",
                "startTs": _ms(start),
                "endTs": _ms(end),
                "pageSize": min(options.limit or FUTURES_LIMIT, FUTURES_LIMIT),
            }
            items = await self._fetch_fills(params)
            trades.extend(parse_futures_fill(item) for item in items)

        self._log_fetched("futures 체결", trades)
        return trades

    async def fetch_balances(self) -> list[Balance]:
        data = await self.http.request("GET", "/openApi/spot/v1/account/balance")
        return parse_balances(data or {})

    async def fetch_orders(self, options: FetchOptions | None = None) -> list[Order]:
        options = options or FetchOptions()

        async def fetch_symbol(symbol: str) -> list[Order]:
            data = await self.http.request(
                "GET",
                "/openApi/spot/v1/trade/historyOrders",
                {
                    "symbol": join_symbol(symbol, "-"),
                    "startTime": options.start_ms,
                    "endTime": options.end_ms,
                    "pageIndex": 1,
                    "pageSize": 100,
                },
            )
            return [parse_order(item) for item in (data or {}).get("orders") or []]

        symbols = self.symbols_for(MarketType.SPOT, options)
        orders = await self.gather_symbols(MarketType.SPOT, symbols, fetch_symbol, options)
        self._log_fetched("주문", orders)
        return orders

    async def fetch_deposits(self, options: FetchOptions | None = None) -> list[Deposit]:
        options = options or FetchOptions()
        data = await self.http.request(
            "GET",
            "/openApi/api/v3/capital/deposit/hisrec",
            {"startTime": options.start_ms, "endTime": options.end_ms, "limit": 1000},
        )
        deposits = [parse_deposit(item) for item in data or []]
        self._log_fetched("입금", deposits)
        return deposits

    async def fetch_withdrawals(self, options: FetchOptions | None = None) -> list[Withdrawal]:
        options = options or FetchOptions()
        data = await self.http.request(
            "GET",
            "/openApi/api/v3/capital/withdraw/history",
            {"startTime": options.start_ms, "endTime": options.end_ms, "limit": 1000},
        )
        withdrawals = [parse_withdrawal(item) for item in data or []]
        self._log_fetched("출금", withdrawals)
        return withdrawals
