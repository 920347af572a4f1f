"""
OKX v5 REST 어댑터

서명: base64(HMAC-SHA256(secret, isoTimestamp + method + requestPath + body))
requestPath는 쿼리 문자열 포함. passphrase는 평문 헤더로 전송 (없으면 AuthenticationError).
"""

import json
from typing import Any, Callable

from adapters.exchange.base import ExchangeAdapterBase
from adapters.exchange.client import ExchangeSpec, body_code_handler
from adapters.exchange.normalize import join_symbol
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
from adapters.okx.models import (
    ERROR_CODES,
    parse_balances,
    parse_deposit,
    parse_fill,
    parse_order,
    parse_withdrawal,
)
from core.utils.timezone import format_iso, utc_from_timestamp_ms

PAGE_LIMIT = 100
MAX_PAGES = 30


def sign_request(
    credentials: ExchangeCredentials,
    request: RequestSpec,
    timestamp_ms: int,
) -> SignedRequest:
    """OKX 서명

    Raises:
        AuthenticationError: passphrase 없음
    """
    passphrase = require_passphrase(credentials, "okx")
    timestamp = format_iso(utc_from_timestamp_ms(timestamp_ms))
    query = build_query(request.params)
    request_path = f"{request.path}?{query}" if query else request.path
    body = json.dumps(request.body) if request.body else ""

    signature = hmac_sign(
        credentials.api_secret,
        timestamp + request.method + request_path + body,
        encoding=DigestEncoding.BASE64,
    )
    return SignedRequest(
        method=request.method,
        path=request.path,
        query=query,
        headers={
            "OK-ACCESS-KEY": credentials.api_key,
            "OK-ACCESS-SIGN": signature,
            "OK-ACCESS-TIMESTAMP": timestamp,
            "OK-ACCESS-PASSPHRASE": passphrase,
            "Content-Type": "application/json",
        },
        content=body or None,
    )


SPEC = ExchangeSpec(
    exchange_id="okx",
    display_name="OKX",
    base_url="https://www.okx.com",
    min_delay=0.1,
    signer=sign_request,
    response_handler=body_code_handler(ERROR_CODES, "code", "msg", ("0",), "data"),
    requires_passphrase=True,
)


class OKXAdapter(ExchangeAdapterBase):
    """OKX 어댑터 (spot)"""

    spec = SPEC

    def __init__(self, credentials: ExchangeCredentials, **kwargs: Any):
        super().__init__(SPEC, credentials, **kwargs)

    async def _ping(self) -> None:
        await self.http.request("GET", "/api/v5/account/balance")

    async def _paginate(
        self,
        path: str,
        params: dict[str, Any],
        cursor_field: str,
        limit: int | None,
    ) -> list[dict[str, Any]]:
        """after 커서 페이지 순회 (최신순, 이전 페이지 마지막 항목의 cursor_field 이후)"""
        rows: list[dict[str, Any]] = []
        after: str | None = None
        for _ in range(MAX_PAGES):
            page = await self.http.request("GET", path, {**params, "after": after, "limit": PAGE_LIMIT})
            rows.extend(page or [])
            if not page or len(page) < PAGE_LIMIT:
                break
            if limit is not None and len(rows) >= limit:
                break
            after = page[-1].get(cursor_field)
            if not after:
                break
        return rows[:limit] if limit is not None else rows

    def _range_params(self, options: FetchOptions) -> dict[str, Any]:
        return {"begin": options.start_ms, "end": options.end_ms}

    async def _fetch(
        self,
        path: str,
        params: dict[str, Any],
        cursor_field: str,
        options: FetchOptions,
        parse: Callable[[dict[str, Any]], Any],
    ) -> list[Any]:
        rows = await self._paginate(path, {**params, **self._range_params(options)}, cursor_field, options.limit)
        return [parse(row) for row in rows]

    async def _fetch_spot_trades(self, options: FetchOptions) -> list[Trade]:
        params = {
            "instType": "SPOT",
            "instId": join_symbol(options.symbol, "-") if options.symbol else None,
        }
        trades = await self._fetch("/api/v5/trade/fills-history", params, "billId", options, parse_fill)
        self._log_fetched("spot 체결", trades)
        return trades

    async def fetch_balances(self) -> list[Balance]:
        data = await self.http.request("GET", "/api/v5/account/balance")
        return parse_balances(data or [])

    async def fetch_orders(self, options: FetchOptions | None = None) -> list[Order]:
        options = options or FetchOptions()
        params = {
            "instType": "SPOT",
            "instId": join_symbol(options.symbol, "-") if options.symbol else None,
        }
        orders = await self._fetch("/api/v5/trade/orders-history", params, "ordId", options, parse_order)
        self._log_fetched("주문", orders)
        return orders

    async def fetch_deposits(self, options: FetchOptions | None = None) -> list[Deposit]:
        options = options or FetchOptions()
        deposits = await self._fetch("/api/v5/asset/deposit-history", {}, "ts", options, parse_deposit)
        self._log_fetched("입금", deposits)
        return deposits

    async def fetch_withdrawals(self, options: FetchOptions | None = None) -> list[Withdrawal]:
        options = options or FetchOptions()
        withdrawals = await self._fetch("/api/v5/asset/withdrawal-history", {}, "ts", options, parse_withdrawal)
        self._log_fetched("출금", withdrawals)
        return withdrawals
