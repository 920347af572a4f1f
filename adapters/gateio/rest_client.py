"""
Gate.io v4 REST 어댑터

서명: HMAC-SHA512 hex of
    method \\n /api/v4{path} \\n query \\n SHA512(body) hex \\n timestamp(초)
헤더: KEY / SIGN / Timestamp

전체 체결 조회 엔드포인트가 없어 seed 심볼 + 보유 잔고에서 파생한
USDT 페어를 순회.
"""

import json
from datetime import timedelta
from typing import Any, Callable

from adapters.exchange.base import ExchangeAdapterBase
from adapters.exchange.client import ExchangeSpec, body_code_handler
from adapters.exchange.normalize import join_symbol, keep_latest, split_window
from adapters.exchange.signing import RequestSpec, SignedRequest, build_query, hmac_sign, sha_hex
from adapters.gateio.models import (
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
from core.utils.timezone import to_timestamp_s

API_PREFIX = "/api/v4"

# my_trades / wallet 조회 기간 최대 30일
HISTORY_WINDOW = timedelta(days=30)
TRADE_LIMIT = 1000
# 잔고에서 파생하는 페어 수 상한 (rate limit 보호)
MAX_DERIVED_PAIRS = 10


def sign_request(
    credentials: ExchangeCredentials,
    request: RequestSpec,
    timestamp_ms: int,
) -> SignedRequest:
    """Gate.io 서명

    path는 /api/v4 접두사를 포함한 전체 경로로 서명.
    """
    timestamp = str(timestamp_ms // 1000)
    query = build_query(request.params)
    body = json.dumps(request.body) if request.body else ""
    full_path = API_PREFIX + request.path

    message = "\n".join([request.method, full_path, query, sha_hex(body, "sha512"), timestamp])
    signature = hmac_sign(credentials.api_secret, message, "sha512")
    return SignedRequest(
        method=request.method,
        path=full_path,
        query=query,
        headers={
            "KEY": credentials.api_key,
            "SIGN": signature,
            "Timestamp": timestamp,
            "Content-Type": "application/json",
            "Accept": "application/json",
        },
        content=body or None,
    )


SPEC = ExchangeSpec(
    exchange_id="gateio",
    display_name="Gate.io",
    base_url="https://api.gateio.ws",
    min_delay=0.15,
    signer=sign_request,
    # 성공 응답에는 label이 없으므로 label 존재 자체가 실패
    response_handler=body_code_handler(ERROR_CODES, "label", "message", ()),
)


class GateioAdapter(ExchangeAdapterBase):
    """Gate.io 어댑터 (spot)"""

    spec = SPEC

    DEFAULT_SPOT_SYMBOLS = ("BTC/USDT", "ETH/USDT")

    def __init__(self, credentials: ExchangeCredentials, **kwargs: Any):
        super().__init__(SPEC, credentials, **kwargs)

    async def _ping(self) -> None:
        await self.http.request("GET", "/spot/accounts")

    async def _trading_pairs(self, options: FetchOptions) -> list[str]:
        """조회 대상 페어 (seed 심볼 + 보유 자산의 USDT 페어)"""
        pairs = self.symbols_for(MarketType.SPOT, options)
        if options.symbol:
            return pairs

        derived = [
            f"{balance.currency.upper()}/USDT"
            for balance in await self.fetch_balances()
            if balance.currency.upper() != "USDT"
        ]
        for pair in derived[:MAX_DERIVED_PAIRS]:
            if pair not in pairs:
                pairs.append(pair)
        return pairs

    def _window_params(self, start: Any, end: Any) -> dict[str, Any]:
        return {
            "from": to_timestamp_s(start) if start else None,
            "to": to_timestamp_s(end) if end else None,
        }

    async def _paged(self, path: str, params: dict[str, Any], options: FetchOptions) -> list[dict[str, Any]]:
        """page 파라미터(1부터)로 limit건이 가득 찬 동안 이어서 조회"""
        limit = min(options.limit or TRADE_LIMIT, TRADE_LIMIT)
        rows: list[dict[str, Any]] = []
        page = 1
        while True:
            data = await self.http.request("GET", path, {**params, "limit": limit, "page": page})
            rows.extend(data)
            if len(data) < limit or (options.limit is not None and len(rows) >= options.limit):
                return rows
            page += 1

    async def _fetch_spot_trades(self, options: FetchOptions) -> list[Trade]:
        async def fetch_pair(symbol: str) -> list[Trade]:
            trades: list[Trade] = []
            for start, end in split_window(options.start_time, options.end_time, HISTORY_WINDOW):
                data = await self._paged(
                    "/spot/my_trades",
                    {"currency_pair": join_symbol(symbol, "_"), **self._window_params(start, end)},
                    options,
                )
                trades.extend(parse_trade(item) for item in data)
            return trades

        pairs = await self._trading_pairs(options)
        trades = await self.gather_symbols(MarketType.SPOT, pairs, fetch_pair, options)
        self._log_fetched("spot 체결", trades, symbols=len(pairs))
        return trades

    async def fetch_balances(self) -> list[Balance]:
        data = await self.http.request("GET", "/spot/accounts")
        return parse_balances(data or [])

    async def fetch_orders(self, options: FetchOptions | None = None) -> list[Order]:
        options = options or FetchOptions()

        async def fetch_pair(symbol: str) -> list[Order]:
            data = await self._paged(
                "/spot/orders",
                {
                    "currency_pair": join_symbol(symbol, "_"),
                    "status": "finished",
                    **self._window_params(options.start_time, options.end_time),
                },
                options,
            )
            return [parse_order(item) for item in data]

        symbols = self.symbols_for(MarketType.SPOT, options)
        orders = await self.gather_symbols(MarketType.SPOT, symbols, fetch_pair, options)
        self._log_fetched("주문", orders)
        return orders

    async def _fetch_wallet(
        self,
        path: str,
        options: FetchOptions,
        parse: Callable[[dict[str, Any]], Any],
    ) -> list[Any]:
        results: list[Any] = []
        for start, end in split_window(options.start_time, options.end_time, HISTORY_WINDOW):
            data = await self.http.request(
                "GET",
                path,
                {"limit": options.limit or TRADE_LIMIT, **self._window_params(start, end)},
            )
            results.extend(parse(item) for item in data)
        return keep_latest(results, options.limit)

    async def fetch_deposits(self, options: FetchOptions | None = None) -> list[Deposit]:
        deposits = await self._fetch_wallet("/wallet/deposits", options or FetchOptions(), parse_deposit)
        self._log_fetched("입금", deposits)
        return deposits

    async def fetch_withdrawals(self, options: FetchOptions | None = None) -> list[Withdrawal]:
        withdrawals = await self._fetch_wallet("/wallet/withdrawals", options or FetchOptions(), parse_withdrawal)
        self._log_fetched("출금", withdrawals)
        return withdrawals
