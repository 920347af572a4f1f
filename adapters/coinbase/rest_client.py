"""
Coinbase Advanced Trade REST 어댑터

서명 방식 두 가지 (시크릿 형식으로 자동 선택):
- CDP API 키 (EC PEM 시크릿): ES256 JWT, Authorization: Bearer
- 레거시 API 키: HMAC-SHA256(secret, ts + method + requestPath + body) hex, CB-ACCESS-* 헤더

/orders/historical/fills는 심볼 없이 전체 체결 반환 (cursor 페이지).
"""

import json
import uuid
from typing import Any

import httpx
import jwt

from adapters.coinbase.models import ERROR_CODES, parse_account, parse_fill, parse_order
from adapters.exchange.base import ExchangeAdapterBase
from adapters.exchange.client import (
    ExchangeSpec,
    raise_for_http_status,
    raise_mapped_error,
    read_json,
)
from adapters.exchange.normalize import join_symbol
from adapters.exchange.signing import RequestSpec, SignedRequest, build_query, hmac_sign
from adapters.models import Balance, ExchangeCredentials, FetchOptions, Order, Trade
from core.utils.timezone import format_iso

API_HOST = "api.coinbase.com"
JWT_TTL_SEC = 120
PAGE_LIMIT = 100
MAX_PAGES = 50


def is_pem_secret(secret: str) -> bool:
    """CDP 키(EC PEM) 여부"""
    return "-----BEGIN" in secret


def _normalize_pem(secret: str) -> str:
    # 환경 변수/설정 파일에서 줄바꿈이 "\n" 문자로 들어오는 경우
    return secret.replace("\\n", "\n")


def build_jwt(credentials: ExchangeCredentials, method: str, path: str, timestamp_s: int) -> str:
    """CDP API용 ES256 JWT 생성

    uri 클레임은 "METHOD host+path" (쿼리 제외).
    """
    payload = {
        "sub": credentials.api_key,
        "iss": "cdp",
        "nbf": timestamp_s,
        "exp": timestamp_s + JWT_TTL_SEC,
        "uri": f"{method} {API_HOST}{path}",
    }
    return jwt.encode(
        payload,
        _normalize_pem(credentials.api_secret),
        algorithm="ES256",
        headers={"kid": credentials.api_key, "nonce": uuid.uuid4().hex},
    )


def sign_request(
    credentials: ExchangeCredentials,
    request: RequestSpec,
    timestamp_ms: int,
) -> SignedRequest:
    """Coinbase 서명 (JWT 또는 레거시 HMAC)"""
    timestamp_s = timestamp_ms // 1000
    query = build_query(request.params)
    content = json.dumps(request.body) if request.body else None
    headers = {"Content-Type": "application/json"}

    if is_pem_secret(credentials.api_secret):
        token = build_jwt(credentials, request.method, request.path, timestamp_s)
        headers["Authorization"] = f"Bearer {token}"
    else:
        request_path = f"{request.path}?{query}" if query else request.path
        message = f"{timestamp_s}{request.method}{request_path}{content or ''}"
        headers.update({
            "CB-ACCESS-KEY": credentials.api_key,
            "CB-ACCESS-SIGN": hmac_sign(credentials.api_secret, message),
            "CB-ACCESS-TIMESTAMP": str(timestamp_s),
        })

    return SignedRequest(
        method=request.method,
        path=request.path,
        query=query,
        headers=headers,
        content=content,
    )


def handle_response(exchange: str, response: httpx.Response) -> Any:
    """Coinbase 응답 처리

    에러 응답: {"error": "PERMISSION_DENIED", "message": "..."}
    """
    if response.status_code < 400:
        return read_json(exchange, response)

    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict) and data.get("error"):
        raise_mapped_error(exchange, data["error"], data.get("message"), ERROR_CODES, response)
    raise_for_http_status(exchange, response)


SPEC = ExchangeSpec(
    exchange_id="coinbase",
    display_name="Coinbase",
    base_url=f"https://{API_HOST}",
    min_delay=0.15,
    signer=sign_request,
    response_handler=handle_response,
)


class CoinbaseAdapter(ExchangeAdapterBase):
    """Coinbase Advanced Trade 어댑터 (spot)"""

    spec = SPEC

    def __init__(self, credentials: ExchangeCredentials, **kwargs: Any):
        super().__init__(SPEC, credentials, **kwargs)

    async def _ping(self) -> None:
        await self.http.request("GET", "/api/v3/brokerage/accounts", {"limit": 1})

    async def _paginate(self, path: str, params: dict[str, Any], list_field: str, limit: int | None) -> list[dict]:
        rows: list[dict] = []
        cursor: str | None = None
        for _ in range(MAX_PAGES):
            data = await self.http.request("GET", path, {**params, "cursor": cursor})
            rows.extend(data.get(list_field) or [])
            cursor = data.get("cursor") or None
            if not cursor or (limit is not None and len(rows) >= limit):
                break
            # accounts/orders는 has_next로 마지막 페이지 표시
            if data.get("has_next") is False:
                break
        return rows[:limit] if limit is not None else rows

    async def _fetch_spot_trades(self, options: FetchOptions) -> list[Trade]:
        params = {
            "product_ids": join_symbol(options.symbol, "-") if options.symbol else None,
            "start_sequence_timestamp": format_iso(options.start_time) if options.start_time else None,
            "end_sequence_timestamp": format_iso(options.end_time) if options.end_time else None,
            "limit": min(options.limit or PAGE_LIMIT, PAGE_LIMIT),
        }
        rows = await self._paginate("/api/v3/brokerage/orders/historical/fills", params, "fills", options.limit)
        trades = [parse_fill(row) for row in rows]
        self._log_fetched("spot 체결", trades)
        return trades

    async def fetch_balances(self) -> list[Balance]:
        rows = await self._paginate("/api/v3/brokerage/accounts", {"limit": 250}, "accounts", None)
        balances = [parse_account(row) for row in rows]
        return [b for b in balances if not b.is_zero]

    async def fetch_orders(self, options: FetchOptions | None = None) -> list[Order]:
        options = options or FetchOptions()
        params = {
            "product_ids": join_symbol(options.symbol, "-") if options.symbol else None,
            "start_date": format_iso(options.start_time) if options.start_time else None,
            "end_date": format_iso(options.end_time) if options.end_time else None,
            "limit": min(options.limit or PAGE_LIMIT, PAGE_LIMIT),
        }
        rows = await self._paginate("/api/v3/brokerage/orders/historical/batch", params, "orders", options.limit)
        orders = [parse_order(row) for row in rows]
        self._log_fetched("주문", orders)
        return orders
