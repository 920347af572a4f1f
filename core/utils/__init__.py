"""
유틸리티 패키지

외부 ID(중복 제거 키) 생성, 타임스탬프 처리 등 공통 유틸리티
"""

from core.utils.timezone import (
    now_utc,
    ensure_utc,
    parse_timestamp,
    utc_from_timestamp_ms,
    to_timestamp_ms,
    to_timestamp_s,
    format_iso,
)

__all__ = [
    "now_utc",
    "ensure_utc",
    "parse_timestamp",
    "utc_from_timestamp_ms",
    "to_timestamp_ms",
    "to_timestamp_s",
    "format_iso",
]
