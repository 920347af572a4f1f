"""
타임존/타임스탬프 유틸리티

내부 저장은 항상 UTC.
거래소마다 시간 단위가 달라(초/밀리초/마이크로초/ISO 문자열)
모든 입력을 절대 시각(UTC datetime)으로 변환하는 헬퍼 제공.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

# 자릿수 기준 단위 판별 경계
# 1e11초 = 5138년 / 1e14밀리초 = 5138년 / 1e17마이크로초 = 5138년
_SECONDS_LIMIT = 10**11
_MILLIS_LIMIT = 10**14
_MICROS_LIMIT = 10**17

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def now_utc() -> datetime:
    """현재 UTC 시간 반환 (타임존 명시)

    Returns:
        현재 UTC 시간 (tzinfo=timezone.utc)
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """datetime을 UTC로 정규화 (naive면 UTC로 간주)"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_from_timestamp_ms(ts_ms: int) -> datetime:
    """밀리초 타임스탬프를 UTC datetime으로 변환

    Example:
        >>> utc_from_timestamp_ms(1708444800000)
        datetime(2024, 2, 20, 16, 0, 0, tzinfo=timezone.utc)
    """
    return datetime.fromtimestamp(ts_ms / 1000, tz=timezone.utc)


def to_timestamp_ms(dt: datetime) -> int:
    """datetime을 밀리초 타임스탬프로 변환"""
    return int(ensure_utc(dt).timestamp() * 1000)


def to_timestamp_s(dt: datetime) -> int:
    """datetime을 초 단위 타임스탬프로 변환"""
    return int(ensure_utc(dt).timestamp())


def _from_number(value: Decimal) -> datetime:
    """숫자 타임스탬프 → UTC datetime (크기로 단위 판별)"""
    magnitude = abs(value)
    if magnitude < _SECONDS_LIMIT:
        seconds = value
    elif magnitude < _MILLIS_LIMIT:
        seconds = value / 1000
    elif magnitude < _MICROS_LIMIT:
        seconds = value / 1_000_000
    else:
        seconds = value / 1_000_000_000
    # Decimal 연산으로 float 반올림 오차 없이 마이크로초까지 보존
    return EPOCH + timedelta(microseconds=int(seconds * 1_000_000))


def parse_timestamp(value: Any) -> datetime:
    """거래소 타임스탬프를 UTC datetime으로 변환

    지원 형식:
    - datetime (naive면 UTC)
    - 숫자/숫자 문자열: 초, 밀리초, 마이크로초, 나노초 (크기로 판별)
      Kraken의 "1688667796.3578" 같은 소수 초 포함
    - ISO-8601 문자열 ("2024-01-15T10:30:00Z", "2024-01-15 10:30:00.123456")

    Args:
        value: 거래소 응답의 시간 값

    Returns:
        UTC datetime

    Raises:
        ValueError: 변환할 수 없는 값
    """
    if isinstance(value, datetime):
        return ensure_utc(value)

    if isinstance(value, bool) or value is None:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if isinstance(value, (int, float, Decimal)):
        return _from_number(Decimal(str(value)))

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("Empty timestamp")

        try:
            return _from_number(Decimal(text))
        except InvalidOperation:
            pass

        # fromisoformat은 'Z' 접미사를 3.11부터 지원 → 직접 치환
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return ensure_utc(datetime.fromisoformat(text))
        except ValueError as e:
            raise ValueError(f"Invalid timestamp: {value!r}") from e

    raise ValueError(f"Invalid timestamp type: {type(value).__name__}")


def format_iso(dt: datetime) -> str:
    """UTC ISO-8601 문자열 (밀리초, 'Z' 접미사)

    Example:
        >>> format_iso(datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc))
        '2024-01-15T10:30:00.000Z'
    """
    dt = ensure_utc(dt)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"
