"""
Bybit V5 REST 어댑터

서명: HMAC-SHA256(secret, timestamp + apiKey + recvWindow + queryString) hex.
/v5/execution/list는 심볼 없이 전체 체결을 반환하므로 심볼 순회 없음.
조회 기간은 최대 7일 단위로 분할하고 nextPageCursor로 페이지 순회.
"""

from datetime import timedelta
from typing import Any, Callable

from adapters.bybit.models import (
    ERROR_CODES,
    market_category,
    parse_deposit,
    parse_execution,
    parse_order,
    parse_wallet_balances,
    parse_withdrawal,
)
from adapters.exchange.base import ExchangeAdapterBase
from adapters.exchange.client import ExchangeSpec, body_code_handler
from adapters.exchange.normalize import join_symbol, keep_latest, split_window
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

RECV_WINDOW = "5000"
PAGE_LIMIT = 100
MAX_PAGES = 50

EXECUTION_WINDOW = timedelta(days=7)
TRANSFER_WINDOW = timedelta(days=30)


def sign_request(
    credentials: ExchangeCredentials,
    request: RequestSpec,
    timestamp_ms: int,
) -> SignedRequest:
    """Bybit V5 서명 (GET 쿼리 기준)"""
    timestamp = str(timestamp_ms)
    query = build_query(request.params)
    signature = hmac_sign(
        credentials.api_secret,
        timestamp + credentials.api_key + RECV_WINDOW + query,
    )
    return SignedRequest(
        method=request.method,
        path=request.path,
        query=query,
        headers={
            "X-BAPI-API-KEY": credentials.api_key,
            "X-BAPI-SIGN": signature,
            "X-BAPI-TIMESTAMP": timestamp,
            "X-BAPI-RECV-WINDOW": RECV_WINDOW,
        },
    )


SPEC = ExchangeSpec(
    exchange_id="bybit",
    display_name="Bybit",
    base_url="https://api.bybit.com",
    min_delay=0.1,
    signer=sign_request,
    response_handler=body_code_handler(ERROR_CODES, "retCode", "retMsg", (0,), "result"),
    markets=(MarketType.SPOT, MarketType.FUTURES),
)


class BybitAdapter(ExchangeAdapterBase):
    """Bybit 어댑터 (spot + linear)"""

    spec = SPEC

    def __init__(self, credentials: ExchangeCredentials, **kwargs: Any):
        super().__init__(SPEC, credentials, **kwargs)

    async def _ping(self) -> None:
        await self.http.request("GET", "/v5/account/wallet-balance", {"accountType": "UNIFIED"})

    async def _paginate(
        self,
        path: str,
        params: dict[str, Any],
        list_field: str = "list",
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """cursor 페이지 순회 (limit 도달 또는 cursor 소진까지)"""
        rows: list[dict[str, Any]] = []
        cursor: str | None = None
        for _ in range(MAX_PAGES):
            result = await self.http.request("GET", path, {**params, "cursor": cursor})
            rows.extend(result.get(list_field) or [])
            cursor = result.get("nextPageCursor") or None
            if not cursor or (limit is not None and len(rows) >= limit):
                break
        return rows[:limit] if limit is not None else rows

    async def _fetch_windows(
        self,
        path: str,
        params: dict[str, Any],
        options: FetchOptions,
        span: timedelta,
        parse: Callable[[dict[str, Any]], Any],
        list_field: str = "list",
    ) -> list[Any]:
        items: list[Any] = []
        for start, end in split_window(options.start_time, options.end_time, span):
            window_params = {
                **params,
                "startTime": to_timestamp_ms(start) if start else None,
                "endTime": to_timestamp_ms(end) if end else None,
            }
            rows = await self._paginate(path, window_params, list_field, options.limit)
            items.extend(parse(row) for row in rows)
        return keep_latest(items, options.limit)

    async def _fetch_market_trades(self, market: MarketType, options: FetchOptions) -> list[Trade]:
        params = {
            "category": market_category(market),
            "symbol": join_symbol(options.symbol) if options.symbol else None,
            "limit": min(options.limit or PAGE_LIMIT, PAGE_LIMIT),
        }
        trades = await self._fetch_windows(
            "/v5/execution/list",
            params,
            options,
            EXECUTION_WINDOW,
            lambda row: parse_execution(row, market),
        )
        self._log_fetched(f"{market.value} 체결", trades)
        return trades

    async def _fetch_spot_trades(self, options: FetchOptions) -> list[Trade]:
        return await self._fetch_market_trades(MarketType.SPOT, options)

    async def _fetch_futures_trades(self, options: FetchOptions) -> list[Trade]:
        return await self._fetch_market_trades(MarketType.FUTURES, options)

    async def fetch_balances(self) -> list[Balance]:
        result = await self.http.request("GET", "/v5/account/wallet-balance", {"accountType": "UNIFIED"})
        return parse_wallet_balances(result)

    async def fetch_orders(self, options: FetchOptions | None = None) -> list[Order]:
        options = options or FetchOptions()
        params = {
            "category": "spot",
            "symbol": join_symbol(options.symbol) if options.symbol else None,
            "limit": 50,
        }
        orders = await self._fetch_windows(
            "/v5/order/history", params, options, EXECUTION_WINDOW, parse_order
        )
        self._log_fetched("주문", orders)
        return orders

    async def fetch_deposits(self, options: FetchOptions | None = None) -> list[Deposit]:
        options = options or FetchOptions()
        deposits = await self._fetch_windows(
            "/v5/asset/deposit/query-record",
            {"limit": 50},
            options,
            TRANSFER_WINDOW,
            parse_deposit,
            list_field="rows",
        )
        self._log_fetched("입금", deposits)
        return deposits

    async def fetch_withdrawals(self, options: FetchOptions | None = None) -> list[Withdrawal]:
        options = options or FetchOptions()
        withdrawals = await self._fetch_windows(
            "/v5/asset/withdraw/query-record",
            {"limit": 50},
            options,
            TRANSFER_WINDOW,
            parse_withdrawal,
            list_field="rows",
        )
        self._log_fetched("출금", withdrawals)
        return withdrawals
