"""
Bitfinex v2 REST 어댑터

인증 호출은 POST JSON.
서명: HMAC-SHA384(secret, "/api" + path + nonce + body) hex, bfx-* 헤더.
"""

import json
from typing import Any

import httpx

from adapters.bitfinex.models import (
    ERROR_CODES,
    is_deposit,
    join_pair,
    parse_deposit,
    parse_order,
    parse_trade,
    parse_wallets,
    parse_withdrawal,
)
from adapters.exchange.base import ExchangeAdapterBase
from adapters.exchange.client import ExchangeSpec, raise_for_http_status, raise_mapped_error, read_json
from adapters.exchange.signing import RequestSpec, SignedRequest, hmac_sign
from adapters.models import (
    Balance,
    Deposit,
    ExchangeCredentials,
    FetchOptions,
    Order,
    Trade,
    Withdrawal,
)

MAX_LIMIT = 2500


def sign_request(
    credentials: ExchangeCredentials,
    request: RequestSpec,
    timestamp_ms: int,
) -> SignedRequest:
    """Bitfinex 서명"""
    nonce = str(timestamp_ms)
    body = json.dumps(request.body or {}, separators=(",", ":"))
    signature = hmac_sign(credentials.api_secret, f"/api{request.path}{nonce}{body}", "sha384")
    return SignedRequest(
        method="POST",
        path=request.path,
        headers={
            "bfx-nonce": nonce,
            "bfx-apikey": credentials.api_key,
            "bfx-signature": signature,
            "Content-Type": "application/json",
        },
        content=body,
    )


def handle_response(exchange: str, response: httpx.Response) -> Any:
    """Bitfinex 응답 처리

    에러 응답: ["error", 10100, "apikey: invalid"] (HTTP 500 등과 함께)
    """
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, list) and len(data) >= 3 and data[0] == "error":
        raise_mapped_error(exchange, data[1], data[2], ERROR_CODES, response)

    raise_for_http_status(exchange, response)
    return data if data is not None else read_json(exchange, response)


SPEC = ExchangeSpec(
    exchange_id="bitfinex",
    display_name="Bitfinex",
    base_url="https://api.bitfinex.com",
    min_delay=0.1,
    signer=sign_request,
    response_handler=handle_response,
)


class BitfinexAdapter(ExchangeAdapterBase):
    """Bitfinex 어댑터 (spot)"""

    spec = SPEC

    def __init__(self, credentials: ExchangeCredentials, **kwargs: Any):
        super().__init__(SPEC, credentials, **kwargs)

    async def _ping(self) -> None:
        await self.http.request("POST", "/v2/auth/r/wallets")

    def _history_body(self, options: FetchOptions) -> dict[str, Any]:
        return {
            "start": options.start_ms,
            "end": options.end_ms,
            "limit": min(options.limit or MAX_LIMIT, MAX_LIMIT),
        }

    async def _fetch_spot_trades(self, options: FetchOptions) -> list[Trade]:
        # 심볼 필터가 있으면 경로에 포함 (/trades/tBTCUSD/hist)
        path = (
            f"/v2/auth/r/trades/{join_pair(options.symbol)}/hist"
            if options.symbol
            else "/v2/auth/r/trades/hist"
        )
        body = {k: v for k, v in self._history_body(options).items() if v is not None}
        rows = await self.http.request("POST", path, body=body)
        trades = [parse_trade(row) for row in rows]
        self._log_fetched("spot 체결", trades)
        return trades

    async def fetch_balances(self) -> list[Balance]:
        rows = await self.http.request("POST", "/v2/auth/r/wallets")
        return parse_wallets(rows)

    async def fetch_orders(self, options: FetchOptions | None = None) -> list[Order]:
        options = options or FetchOptions()
        body = {k: v for k, v in self._history_body(options).items() if v is not None}
        rows = await self.http.request("POST", "/v2/auth/r/orders/hist", body=body)
        orders = [parse_order(row) for row in rows]
        self._log_fetched("주문", orders)
        return orders

    async def _fetch_movements(self, options: FetchOptions) -> list[list[Any]]:
        body = {k: v for k, v in self._history_body(options).items() if v is not None}
        return await self.http.request("POST", "/v2/auth/r/movements/hist", body=body)

    async def fetch_deposits(self, options: FetchOptions | None = None) -> list[Deposit]:
        rows = await self._fetch_movements(options or FetchOptions())
        deposits = [parse_deposit(row) for row in rows if is_deposit(row)]
        self._log_fetched("입금", deposits)
        return deposits

    async def fetch_withdrawals(self, options: FetchOptions | None = None) -> list[Withdrawal]:
        rows = await self._fetch_movements(options or FetchOptions())
        withdrawals = [parse_withdrawal(row) for row in rows if not is_deposit(row)]
        self._log_fetched("출금", withdrawals)
        return withdrawals
