"""
정규화 공통 헬퍼

거래소 응답 필드 → 정규 모델 값 변환.
- 필수 필드 검증 (누락 시 ValidationError, None 역참조 방지)
- 문자열/숫자 → Decimal
- 거래소 심볼 → BASE/QUOTE
- 시간 값 → UTC datetime
"""

from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Sequence

from adapters.errors import ValidationError
from core.types import TradeRole, TradeSide
from core.utils.timezone import now_utc, parse_timestamp

# 심볼 접미사 매칭용 견적 통화 (긴 것부터 매칭)
DEFAULT_QUOTES: tuple[str, ...] = tuple(sorted(
    (
        "USDT", "USDC", "BUSD", "FDUSD", "TUSD", "DAI",
        "BTC", "ETH", "BNB",
        "USD", "EUR", "GBP", "JPY", "TRY", "KRW", "AUD",
    ),
    key=len,
    reverse=True,
))

_SEPARATORS = ("/", "-", "_", ":")


def require_fields(
    data: Mapping[str, Any],
    fields: Sequence[str],
    exchange: str,
    kind: str,
) -> None:
    """필수 필드 존재 검증

    Args:
        data: 거래소 응답 항목
        fields: 필수 필드 이름 목록
        exchange: 거래소 이름 (에러 메시지용)
        kind: 항목 종류 (trade, order 등)

    Raises:
        ValidationError: 필드 누락 또는 dict가 아님
    """
    if not isinstance(data, Mapping):
        raise ValidationError(
            f"Malformed {kind} payload: expected object, got {type(data).__name__}",
            exchange=exchange,
        )
    missing = [f for f in fields if data.get(f) is None]
    if missing:
        raise ValidationError(
            f"Malformed {kind} payload: missing {', '.join(missing)}",
            exchange=exchange,
        )


def require_length(row: Sequence[Any], length: int, exchange: str, kind: str) -> None:
    """배열형 응답(Bitfinex 등) 길이 검증"""
    if not isinstance(row, (list, tuple)) or len(row) < length:
        raise ValidationError(
            f"Malformed {kind} payload: expected array of >= {length} items",
            exchange=exchange,
        )


def to_decimal(value: Any, default: str = "0") -> Decimal:
    """Decimal 변환 (None/빈 문자열은 default)

    Raises:
        ValidationError: 숫자로 해석할 수 없는 값
    """
    if value is None or value == "":
        return Decimal(default)
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValidationError(f"Invalid numeric value: {value!r}") from e


def to_timestamp(value: Any, exchange: str) -> datetime:
    """시간 값 → UTC datetime (초/밀리초/마이크로초/ISO 자동 판별)

    Raises:
        ValidationError: 변환 불가
    """
    try:
        return parse_timestamp(value)
    except ValueError as e:
        raise ValidationError(str(e), exchange=exchange) from e


def to_side(value: Any, exchange: str) -> TradeSide:
    """체결/주문 방향 정규화 (BUY, Buy, buy, b → buy)

    Raises:
        ValidationError: 알 수 없는 방향
    """
    text = str(value).strip().lower()
    if text in ("buy", "b", "bid"):
        return TradeSide.BUY
    if text in ("sell", "s", "ask"):
        return TradeSide.SELL
    raise ValidationError(f"Unknown side: {value!r}", exchange=exchange)


def to_role(is_maker: Any) -> TradeRole | None:
    """maker 여부 → TradeRole (None이면 None)"""
    if is_maker is None:
        return None
    if isinstance(is_maker, str):
        text = is_maker.strip().lower()
        if text in ("maker", "m", "true"):
            return TradeRole.MAKER
        if text in ("taker", "t", "false"):
            return TradeRole.TAKER
        return None
    return TradeRole.MAKER if is_maker else TradeRole.TAKER


def split_symbol(raw: str, quotes: Sequence[str] = DEFAULT_QUOTES) -> str:
    """거래소 심볼 → BASE/QUOTE

    구분자가 있으면 구분자 기준, 없으면 견적 통화 접미사 매칭.
    매칭 실패 시 원본(대문자) 반환.

    Example:
        >>> split_symbol("BTCUSDT")
        'BTC/USDT'
        >>> split_symbol("eth_btc")
        'ETH/BTC'
    """
    text = raw.strip().upper()
    for sep in _SEPARATORS:
        if sep in text:
            base, _, quote = text.partition(sep)
            if base and quote:
                return f"{base}/{quote}"

    for quote in quotes:
        if text.endswith(quote) and len(text) > len(quote):
            return f"{text[:-len(quote)]}/{quote}"

    return text


def join_symbol(symbol: str, sep: str = "", lower: bool = False) -> str:
    """BASE/QUOTE → 거래소 심볼

    Example:
        >>> join_symbol("BTC/USDT")
        'BTCUSDT'
        >>> join_symbol("BTC/USDT", "_")
        'BTC_USDT'
    """
    base, _, quote = symbol.upper().partition("/")
    joined = f"{base}{sep}{quote}" if quote else base
    return joined.lower() if lower else joined


def map_status(table: Mapping[Any, Any], value: Any, default: Any) -> Any:
    """상태 매핑 테이블 조회 (없으면 default)"""
    key = value.upper() if isinstance(value, str) else value
    return table.get(key, default)


def split_window(
    start: datetime | None,
    end: datetime | None,
    span: timedelta,
) -> list[tuple[datetime | None, datetime | None]]:
    """조회 기간을 거래소 최대 구간(span) 단위로 분할

    시작 시각이 없으면 분할하지 않음 (거래소 기본 기간).

    Example:
        3일 기간, span=1일 → 3개 구간
    """
    if start is None:
        return [(None, end)]

    end = end or now_utc()
    windows: list[tuple[datetime | None, datetime | None]] = []
    cursor = start
    while cursor < end:
        window_end = min(cursor + span, end)
        windows.append((cursor, window_end))
        cursor = window_end
    return windows or [(start, end)]


def keep_latest(items: list[Any], limit: int | None) -> list[Any]:
    """병합 결과를 최근 limit건으로 제한

    구간/심볼/마켓별로 나눠 받은 결과를 합친 뒤 적용.
    limit 이하이면 원래 순서 유지.
    """
    if limit is None or len(items) <= limit:
        return items
    return sorted(items, key=lambda item: item.timestamp, reverse=True)[:limit]
