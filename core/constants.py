"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
거래소별 URL/요청 간격은 각 어댑터의 ExchangeSpec에 정의.
"""

from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 루트)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수"""

    WEB_HOST: str = "127.0.0.1"
    WEB_PORT: int = 8000

    LOG_LEVEL: str = "INFO"

    # 기본 수수료 통화 (거래소가 통화를 주지 않는 경우)
    FEE_CURRENCY: str = "USDT"


class SyncDefaults:
    """동기화 기본값 (settings.yaml의 sync 섹션으로 덮어쓰기 가능)"""

    PREVIEW_LOOKBACK_DAYS: int = 30
    DATA_SYNC_LOOKBACK_DAYS: int = 7
    TIMEOUT_SEC: float = 60.0

    MAX_RETRIES: int = 3
    RETRY_BASE_DELAY_SEC: float = 1.0
    REQUEST_TIMEOUT_SEC: float = 30.0

    MAX_CONCURRENT_JOBS: int = 3
    STALE_LOCK_MINUTES: int = 10

    # 헬스 체크: 이 지연(ms)을 넘으면 degraded
    DEGRADED_LATENCY_MS: int = 3000


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    DEFAULT_DB: Path = DATA_DIR / "exchange_sync.db"
