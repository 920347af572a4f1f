"""
Kraken REST 어댑터

모든 private 호출은 POST form.
서명: base64(HMAC-SHA512(base64decode(secret), path + SHA256(nonce + postData)))
nonce는 밀리초 + "000" (단조 증가).
"""

import base64
import binascii
import hashlib
from typing import Any

import httpx

from adapters.errors import AuthenticationError
from adapters.exchange.base import ExchangeAdapterBase
from adapters.exchange.client import ExchangeSpec, raise_for_http_status, raise_mapped_error, read_json
from adapters.exchange.signing import DigestEncoding, RequestSpec, SignedRequest, build_query, encode_digest, hmac_digest
from adapters.kraken.models import (
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
from core.utils.timezone import to_timestamp_s

PAGE_SIZE = 50
MAX_PAGES = 40


def api_sign(secret: bytes, path: str, nonce: str, post_data: str) -> str:
    """API-Sign 헤더 값 계산 (secret은 base64 디코딩된 바이트)"""
    message = path.encode("utf-8") + hashlib.sha256((nonce + post_data).encode("utf-8")).digest()
    return encode_digest(hmac_digest(secret, message, "sha512"), DigestEncoding.BASE64)


def sign_request(
    credentials: ExchangeCredentials,
    request: RequestSpec,
    timestamp_ms: int,
) -> SignedRequest:
    """Kraken 서명

    Raises:
        AuthenticationError: 시크릿이 base64가 아님
    """
    nonce = f"{timestamp_ms}000"
    post_data = build_query({"nonce": nonce, **(request.body or {})})

    try:
        secret = base64.b64decode(credentials.api_secret, validate=True)
    except (binascii.Error, ValueError) as e:
        raise AuthenticationError("API secret is not valid base64", exchange="kraken") from e

    signature = api_sign(secret, request.path, nonce, post_data)

    return SignedRequest(
        method="POST",
        path=request.path,
        headers={
            "API-Key": credentials.api_key,
            "API-Sign": signature,
            "Content-Type": "application/x-www-form-urlencoded",
        },
        content=post_data,
    )


def handle_response(exchange: str, response: httpx.Response) -> Any:
    """Kraken 응답 처리

    {"error": ["EAPI:Invalid key"], "result": {...}}
    HTTP 200이어도 error 목록이 비어 있지 않으면 실패.
    """
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict) and data.get("error"):
        errors = data["error"]
        raise_mapped_error(exchange, errors[0], ", ".join(errors), ERROR_CODES, response)

    raise_for_http_status(exchange, response)
    if data is None:
        data = read_json(exchange, response)
    return data.get("result") if isinstance(data, dict) else data


SPEC = ExchangeSpec(
    exchange_id="kraken",
    display_name="Kraken",
    base_url="https://api.kraken.com",
    min_delay=0.1,
    signer=sign_request,
    response_handler=handle_response,
)


class KrakenAdapter(ExchangeAdapterBase):
    """Kraken 어댑터 (spot)"""

    spec = SPEC

    def __init__(self, credentials: ExchangeCredentials, **kwargs: Any):
        super().__init__(SPEC, credentials, **kwargs)

    async def _private(self, method: str, fields: dict[str, Any] | None = None) -> Any:
        return await self.http.request("POST", f"/0/private/{method}", body=fields or {})

    async def _ping(self) -> None:
        await self._private("Balance")

    def _range_fields(self, options: FetchOptions) -> dict[str, Any]:
        return {
            "start": to_timestamp_s(options.start_time) if options.start_time else None,
            "end": to_timestamp_s(options.end_time) if options.end_time else None,
        }

    async def _fetch_spot_trades(self, options: FetchOptions) -> list[Trade]:
        trades: list[Trade] = []
        offset = 0
        for _ in range(MAX_PAGES):
            result = await self._private("TradesHistory", {**self._range_fields(options), "ofs": offset})
            page = result.get("trades") or {}
            trades.extend(parse_trade(trade_id, item) for trade_id, item in page.items())
            offset += len(page)
            if not page or offset >= int(result.get("count", 0)):
                break
            if options.limit is not None and len(trades) >= options.limit:
                break

        if options.symbol:
            trades = [t for t in trades if t.symbol == options.symbol.upper()]
        if options.limit is not None:
            trades = trades[:options.limit]
        self._log_fetched("spot 체결", trades)
        return trades

    async def fetch_balances(self) -> list[Balance]:
        result = await self._private("BalanceEx")
        return parse_balances(result)

    async def fetch_orders(self, options: FetchOptions | None = None) -> list[Order]:
        options = options or FetchOptions()
        open_result = await self._private("OpenOrders")
        closed_result = await self._private("ClosedOrders", self._range_fields(options))

        orders = [parse_order(order_id, item) for order_id, item in (open_result.get("open") or {}).items()]
        orders.extend(
            parse_order(order_id, item) for order_id, item in (closed_result.get("closed") or {}).items()
        )
        self._log_fetched("주문", orders)
        return orders

    async def fetch_deposits(self, options: FetchOptions | None = None) -> list[Deposit]:
        options = options or FetchOptions()
        result = await self._private("DepositStatus", self._range_fields(options))
        deposits = [parse_deposit(item) for item in result or []]
        self._log_fetched("입금", deposits)
        return deposits

    async def fetch_withdrawals(self, options: FetchOptions | None = None) -> list[Withdrawal]:
        options = options or FetchOptions()
        result = await self._private("WithdrawStatus", self._range_fields(options))
        withdrawals = [parse_withdrawal(item) for item in result or []]
        self._log_fetched("출금", withdrawals)
        return withdrawals
