"""
로깅 설정 유틸리티

Web, CLI(동기화 스크립트) 공통 로깅 설정.
- 콘솔 + 파일(daily rotation) 핸들러
- extra 필드를 "key=value" 형태로 메시지 뒤에 출력
- 서명/API 키로 보이는 값은 출력 전에 마스킹

사용법:
    from core.logging import setup_logging
    setup_logging("web")   # logs/web/web.log
    setup_logging("sync")  # logs/sync/sync.log
"""

import logging
import re
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any

from core.constants import Paths

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_BACKUP_COUNT = 7

# 요청 단위 로그가 많은 라이브러리 (WARNING 이상만)
NOISY_LOGGERS = (
    "aiosqlite",
    "httpcore",
    "httpx",
    "asyncio",
    "uvicorn.access",
)

# LogRecord 기본 속성 (extra 판별용)
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

# 쿼리/헤더/JSON 형태의 민감 값 (이름=값, "이름": "값")
_SENSITIVE_NAMES = (
    "signature", "sign", "api_key", "apikey", "api-key", "x-mbx-apikey",
    "api_secret", "secret", "passphrase", "token", "authorization",
)
_SENSITIVE_PATTERN = re.compile(
    r"(?<![\w-])(?P<name>" + "|".join(re.escape(n) for n in _SENSITIVE_NAMES) + r")"
    r"(?P<sep>[\"']?\s*[=:]\s*[\"']?)(?P<value>(?:Bearer\s+)?[^&\s\"',}]+)",
    re.IGNORECASE,
)
MASK = "***"


def mask_secrets(text: str) -> str:
    """민감 파라미터 값 마스킹

    Example:
        >>> mask_secrets("GET /api/v3/account?timestamp=1&signature=abcd")
        'GET /api/v3/account?timestamp=1&signature=***'
    """
    return _SENSITIVE_PATTERN.sub(lambda m: f"{m.group('name')}{m.group('sep')}{MASK}", text)


class SecretMaskingFilter(logging.Filter):
    """메시지와 extra 문자열 값의 서명/API 키 마스킹"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = mask_secrets(record.getMessage())
        record.args = None
        for key, value in list(vars(record).items()):
            if key not in _RECORD_ATTRS and isinstance(value, str):
                setattr(record, key, mask_secrets(value))
        return True


class ContextFormatter(logging.Formatter):
    """extra 필드를 메시지 뒤에 덧붙이는 포맷터

    Example:
        logger.info("preview 완료", extra={"connection_id": 1, "trades_fetched": 12})
        → ... | sync.orchestrator | preview 완료 | connection_id=1 trades_fetched=12
    """

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        context = _extra_fields(record)
        if not context:
            return text
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{text} | {pairs}"


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS and not k.startswith("_")}


def get_log_dir(process_name: str) -> Path:
    """프로세스별 로그 디렉토리 (logs/<process_name>)"""
    return Paths.LOGS_DIR / process_name


def setup_logging(
    process_name: str,
    console_level: int = logging.INFO,
    file_level: int = logging.INFO,
    log_dir: Path | None = None,
) -> logging.Logger:
    """로깅 설정 초기화

    Args:
        process_name: 프로세스 이름 ("web" 또는 "sync")
        console_level: 콘솔 로그 레벨
        file_level: 파일 로그 레벨
        log_dir: 로그 디렉토리 (None이면 logs/<process_name>)

    Returns:
        설정된 루트 Logger
    """
    log_dir = log_dir or get_log_dir(process_name)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{process_name}.log"

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # 핸들러 레벨로 필터링
    root_logger.handlers.clear()

    formatter = ContextFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    masking = SecretMaskingFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)

    file_handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        interval=1,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.suffix = "%Y-%m-%d"
    file_handler.setLevel(file_level)

    for handler in (console_handler, file_handler):
        handler.setFormatter(formatter)
        handler.addFilter(masking)
        root_logger.addHandler(handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    root_logger.info(
        f"로깅 초기화 완료: {process_name}",
        extra={"log_file": str(log_file), "backup_days": LOG_FILE_BACKUP_COUNT},
    )
    return root_logger
