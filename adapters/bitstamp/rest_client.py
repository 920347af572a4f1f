"""
Bitstamp v2 REST 어댑터

모든 private 호출은 POST form (key / signature / nonce).
서명: upper hex HMAC-SHA256(secret, nonce + customerId + apiKey)
customerId는 passphrase 필드로 전달 (없으면 AuthenticationError).
"""

from typing import Any

import httpx

from adapters.bitstamp.models import (
    ERROR_CODES,
    is_deposit,
    is_trade,
    is_withdrawal,
    parse_balances,
    parse_deposit,
    parse_open_order,
    parse_trade,
    parse_withdrawal,
)
from adapters.exchange.base import ExchangeAdapterBase
from adapters.exchange.client import ExchangeSpec, raise_for_http_status, raise_mapped_error, read_json
from adapters.exchange.signing import (
    DigestEncoding,
    RequestSpec,
    SignedRequest,
    build_query,
    hmac_sign,
    require_passphrase,
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

PAGE_SIZE = 1000
MAX_PAGES = 20


def sign_request(
    credentials: ExchangeCredentials,
    request: RequestSpec,
    timestamp_ms: int,
) -> SignedRequest:
    """Bitstamp 서명

    Raises:
        AuthenticationError: Customer ID(passphrase) 없음
    """
    customer_id = require_passphrase(credentials, "bitstamp", label="customer ID")
    nonce = str(timestamp_ms)
    signature = hmac_sign(
        credentials.api_secret,
        nonce + customer_id + credentials.api_key,
        encoding=DigestEncoding.UPPER_HEX,
    )
    form = {
        "key": credentials.api_key,
        "signature": signature,
        "nonce": nonce,
        **(request.body or {}),
    }
    return SignedRequest(
        method="POST",
        path=request.path,
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        content=build_query(form),
    )


def handle_response(exchange: str, response: httpx.Response) -> Any:
    """Bitstamp 응답 처리

    에러 응답 (HTTP 200 포함):
    {"status": "error", "reason": "Invalid signature", "code": "API0005"}
    구형: {"error": "Invalid nonce"}
    """
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict) and (data.get("status") == "error" or "error" in data):
        reason = data.get("reason") or data.get("error")
        raise_mapped_error(exchange, data.get("code"), str(reason), ERROR_CODES, response)

    raise_for_http_status(exchange, response)
    return data if data is not None else read_json(exchange, response)


SPEC = ExchangeSpec(
    exchange_id="bitstamp",
    display_name="Bitstamp",
    base_url="https://www.bitstamp.net",
    min_delay=0.1,
    signer=sign_request,
    response_handler=handle_response,
    requires_passphrase=True,
)


class BitstampAdapter(ExchangeAdapterBase):
    """Bitstamp 어댑터 (spot)

    체결/입출금은 모두 user_transactions 원장에서 type으로 구분.
    """

    spec = SPEC

    def __init__(self, credentials: ExchangeCredentials, **kwargs: Any):
        super().__init__(SPEC, credentials, **kwargs)

    async def _ping(self) -> None:
        await self.http.request("POST", "/api/v2/balance/")

    async def _user_transactions(self, options: FetchOptions) -> list[dict[str, Any]]:
        """원장 전체 조회 (offset 페이지 순회, 오래된 순)"""
        base = {
            "sort": "asc",
            "since_timestamp": to_timestamp_s(options.start_time) if options.start_time else None,
            "until_timestamp": to_timestamp_s(options.end_time) if options.end_time else None,
        }
        rows: list[dict[str, Any]] = []
        for page in range(MAX_PAGES):
            form = {**base, "offset": page * PAGE_SIZE, "limit": PAGE_SIZE}
            data = await self.http.request(
                "POST",
                "/api/v2/user_transactions/",
                body={k: v for k, v in form.items() if v is not None},
            )
            rows.extend(data or [])
            if not data or len(data) < PAGE_SIZE:
                break
        return rows

    async def _fetch_spot_trades(self, options: FetchOptions) -> list[Trade]:
        rows = await self._user_transactions(options)
        trades = [parse_trade(row) for row in rows if is_trade(row)]
        if options.symbol:
            trades = [t for t in trades if t.symbol == options.symbol.upper()]
        if options.limit is not None:
            trades = trades[:options.limit]
        self._log_fetched("spot 체결", trades)
        return trades

    async def fetch_balances(self) -> list[Balance]:
        data = await self.http.request("POST", "/api/v2/balance/")
        return parse_balances(data)

    async def fetch_orders(self, options: FetchOptions | None = None) -> list[Order]:
        """미체결 주문만 조회 (종료 주문 목록 엔드포인트 없음)"""
        options = options or FetchOptions()
        data = await self.http.request("POST", "/api/v2/open_orders/all/")
        orders = [parse_open_order(item) for item in data or []]
        if options.symbol:
            orders = [o for o in orders if o.symbol == options.symbol.upper()]
        self._log_fetched("주문", orders)
        return orders

    async def fetch_deposits(self, options: FetchOptions | None = None) -> list[Deposit]:
        rows = await self._user_transactions(options or FetchOptions())
        deposits = [parse_deposit(row) for row in rows if is_deposit(row)]
        self._log_fetched("입금", deposits)
        return deposits

    async def fetch_withdrawals(self, options: FetchOptions | None = None) -> list[Withdrawal]:
        rows = await self._user_transactions(options or FetchOptions())
        withdrawals = [parse_withdrawal(row) for row in rows if is_withdrawal(row)]
        self._log_fetched("출금", withdrawals)
        return withdrawals
