"""
KuCoin REST 어댑터

서명 (API 키 버전 2):
    KC-API-SIGN = base64(HMAC-SHA256(secret, timestamp + method + endpoint + body))
    KC-API-PASSPHRASE = base64(HMAC-SHA256(secret, passphrase))
endpoint는 쿼리 문자열 포함. passphrase가 없으면 AuthenticationError.
"""

import json
from datetime import timedelta
from typing import Any, Callable

from adapters.exchange.base import ExchangeAdapterBase
from adapters.exchange.client import ExchangeSpec, body_code_handler
from adapters.exchange.normalize import join_symbol, split_window
from adapters.exchange.signing import (
    DigestEncoding,
    RequestSpec,
    SignedRequest,
    build_query,
    hmac_sign,
    require_passphrase,
)
from adapters.kucoin.models import (
    ERROR_CODES,
    parse_accounts,
    parse_deposit,
    parse_fill,
    parse_order,
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
from core.utils.timezone import to_timestamp_ms

# fills/orders 조회 기간 최대 7일
HISTORY_WINDOW = timedelta(days=7)
PAGE_SIZE = 500
MAX_PAGES = 20


def sign_request(
    credentials: ExchangeCredentials,
    request: RequestSpec,
    timestamp_ms: int,
) -> SignedRequest:
    """KuCoin 서명

    Raises:
        AuthenticationError: passphrase 없음
    """
    passphrase = require_passphrase(credentials, "kucoin")
    timestamp = str(timestamp_ms)
    query = build_query(request.params)
    endpoint = f"{request.path}?{query}" if query else request.path
    body = json.dumps(request.body) if request.body else ""

    signature = hmac_sign(
        credentials.api_secret,
        timestamp + request.method + endpoint + body,
        encoding=DigestEncoding.BASE64,
    )
    return SignedRequest(
        method=request.method,
        path=request.path,
        query=query,
        headers={
            "KC-API-KEY": credentials.api_key,
            "KC-API-SIGN": signature,
            "KC-API-TIMESTAMP": timestamp,
            "KC-API-PASSPHRASE": hmac_sign(credentials.api_secret, passphrase, encoding=DigestEncoding.BASE64),
            "KC-API-KEY-VERSION": "2",
            "Content-Type": "application/json",
        },
        content=body or None,
    )


SPEC = ExchangeSpec(
    exchange_id="kucoin",
    display_name="KuCoin",
    base_url="https://api.kucoin.com",
    min_delay=0.2,
    signer=sign_request,
    response_handler=body_code_handler(ERROR_CODES, "code", "msg", ("200000",), "data"),
    requires_passphrase=True,
)


class KuCoinAdapter(ExchangeAdapterBase):
    """KuCoin 어댑터 (spot)"""

    spec = SPEC

    def __init__(self, credentials: ExchangeCredentials, **kwargs: Any):
        super().__init__(SPEC, credentials, **kwargs)

    async def _ping(self) -> None:
        await self.http.request("GET", "/api/v1/accounts")

    async def _paged_items(self, path: str, params: dict[str, Any], limit: int | None) -> list[dict[str, Any]]:
        """currentPage 순회 (totalPage 도달까지)"""
        items: list[dict[str, Any]] = []
        for page in range(1, MAX_PAGES + 1):
            data = await self.http.request("GET", path, {**params, "currentPage": page, "pageSize": PAGE_SIZE})
            items.extend(data.get("items") or [])
            if page >= int(data.get("totalPage") or 0):
                break
            if limit is not None and len(items) >= limit:
                break
        return items

    async def _fetch_history(
        self,
        path: str,
        params: dict[str, Any],
        options: FetchOptions,
        parse: Callable[[dict[str, Any]], Any],
    ) -> list[Any]:
        results: list[Any] = []
        for start, end in split_window(options.start_time, options.end_time, HISTORY_WINDOW):
            window = {
                **params,
                "startAt": to_timestamp_ms(start) if start else None,
                "endAt": to_timestamp_ms(end) if end else None,
            }
            results.extend(parse(item) for item in await self._paged_items(path, window, options.limit))
        return results[:options.limit] if options.limit is not None else results

    async def _fetch_spot_trades(self, options: FetchOptions) -> list[Trade]:
        params = {
            "tradeType": "TRADE",
            "symbol": join_symbol(options.symbol, "-") if options.symbol else None,
        }
        trades = await self._fetch_history("/api/v1/fills", params, options, parse_fill)
        self._log_fetched("spot 체결", trades)
        return trades

    async def fetch_balances(self) -> list[Balance]:
        rows = await self.http.request("GET", "/api/v1/accounts")
        return parse_accounts(rows or [])

    async def fetch_orders(self, options: FetchOptions | None = None) -> list[Order]:
        options = options or FetchOptions()
        params = {
            "tradeType": "TRADE",
            "symbol": join_symbol(options.symbol, "-") if options.symbol else None,
        }
        orders = await self._fetch_history("/api/v1/orders", params, options, parse_order)
        self._log_fetched("주문", orders)
        return orders

    async def fetch_deposits(self, options: FetchOptions | None = None) -> list[Deposit]:
        options = options or FetchOptions()
        deposits = await self._fetch_history("/api/v1/deposits", {}, options, parse_deposit)
        self._log_fetched("입금", deposits)
        return deposits

    async def fetch_withdrawals(self, options: FetchOptions | None = None) -> list[Withdrawal]:
        options = options or FetchOptions()
        withdrawals = await self._fetch_history("/api/v1/withdrawals", {}, options, parse_withdrawal)
        self._log_fetched("출금", withdrawals)
        return withdrawals
