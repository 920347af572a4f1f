"""
설정 로더

settings.yaml 로드 및 동기화/거래소 설정 생성
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from core.constants import PROJECT_ROOT, Paths, SyncDefaults
from core.types import ExchangeName


@dataclass(frozen=True)
class SyncSettings:
    """동기화 동작 설정

    settings.yaml의 sync 섹션. 누락된 키는 SyncDefaults 값 사용.
    """

    preview_lookback_days: int = SyncDefaults.PREVIEW_LOOKBACK_DAYS
    data_sync_lookback_days: int = SyncDefaults.DATA_SYNC_LOOKBACK_DAYS
    timeout_sec: float = SyncDefaults.TIMEOUT_SEC
    max_retries: int = SyncDefaults.MAX_RETRIES
    retry_base_delay_sec: float = SyncDefaults.RETRY_BASE_DELAY_SEC
    request_timeout_sec: float = SyncDefaults.REQUEST_TIMEOUT_SEC
    max_concurrent_jobs: int = SyncDefaults.MAX_CONCURRENT_JOBS
    stale_lock_minutes: int = SyncDefaults.STALE_LOCK_MINUTES


@dataclass(frozen=True)
class ExchangeSettings:
    """거래소별 설정

    심볼 단위 조회만 지원하는 거래소를 위한 seed 심볼 목록.
    비어 있으면 어댑터 기본 목록 사용.

    Attributes:
        spot_symbols: 현물 seed 심볼 (BASE/QUOTE 형식)
        futures_symbols: 선물 seed 심볼 (BASE/QUOTE 형식)
        base_url: REST 베이스 URL 재정의 (None이면 기본값)
    """

    spot_symbols: tuple[str, ...] = ()
    futures_symbols: tuple[str, ...] = ()
    base_url: str | None = None


@dataclass(frozen=True)
class AppSettings:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    credential_key: str = field(repr=False)
    db_path: Path
    sync: SyncSettings = field(default_factory=SyncSettings)
    exchanges: dict[str, ExchangeSettings] = field(default_factory=dict)

    def exchange(self, name: str) -> ExchangeSettings:
        """거래소 설정 조회 (없으면 기본값)"""
        return self.exchanges.get(name.lower(), ExchangeSettings())


class ConfigLoadError(Exception):
    """설정 로드 실패 예외"""

    pass


def _parse_sync_settings(data: dict[str, Any]) -> SyncSettings:
    """sync 섹션 파싱

    Raises:
        ConfigLoadError: 알 수 없는 키 또는 잘못된 값
    """
    known = set(SyncSettings.__dataclass_fields__)
    unknown = set(data) - known
    if unknown:
        raise ConfigLoadError(
            f"settings.yaml의 sync 섹션에 알 수 없는 키가 있습니다: {sorted(unknown)}"
        )

    defaults = SyncSettings()
    values: dict[str, Any] = {}
    for name in known:
        default = getattr(defaults, name)
        raw = data.get(name, default)
        try:
            value = type(default)(raw)
        except (TypeError, ValueError) as e:
            raise ConfigLoadError(f"sync.{name} 값이 잘못되었습니다: {raw!r}") from e
        if value <= 0:
            raise ConfigLoadError(f"sync.{name}는 0보다 커야 합니다: {raw!r}")
        values[name] = value

    return SyncSettings(**values)


def _parse_exchange_settings(data: dict[str, Any]) -> dict[str, ExchangeSettings]:
    """exchanges 섹션 파싱

    Raises:
        ConfigLoadError: 지원하지 않는 거래소 이름
    """
    supported = {e.value for e in ExchangeName}
    result: dict[str, ExchangeSettings] = {}

    for name, section in data.items():
        key = str(name).lower()
        if key not in supported:
            raise ConfigLoadError(
                f"settings.yaml에 지원하지 않는 거래소가 있습니다: '{name}'. "
                f"지원 거래소: {sorted(supported)}"
            )
        section = section or {}
        result[key] = ExchangeSettings(
            spot_symbols=tuple(section.get("spot_symbols") or ()),
            futures_symbols=tuple(section.get("futures_symbols") or ()),
            base_url=section.get("base_url"),
        )

    return result


def load_settings(path: Path | None = None) -> AppSettings:
    """settings.yaml 파일 로드

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        AppSettings 인스턴스

    Raises:
        ConfigLoadError: 파일이 없거나 형식이 잘못된 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        raise ConfigLoadError(f"settings.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        raise ConfigLoadError("settings.yaml이 비어 있습니다")

    credential_key = data.get("credential_key")
    if not credential_key:
        raise ConfigLoadError("settings.yaml에 'credential_key' 필드가 없습니다")

    # DB 경로 (상대 경로는 프로젝트 루트 기준)
    db_config = data.get("database") or {}
    db_path_str = db_config.get("path")
    if db_path_str:
        db_path = Path(db_path_str)
        if not db_path.is_absolute() and db_path_str != ":memory:":
            db_path = PROJECT_ROOT / db_path
    else:
        db_path = Paths.DEFAULT_DB

    return AppSettings(
        credential_key=credential_key,
        db_path=db_path,
        sync=_parse_sync_settings(data.get("sync") or {}),
        exchanges=_parse_exchange_settings(data.get("exchanges") or {}),
    )


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    settings.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _app: AppSettings | None = None

    def __new__(cls, settings_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, settings_path: Path | None = None) -> None:
        if self._app is None:
            type(self)._app = load_settings(settings_path)

    @property
    def app(self) -> AppSettings:
        """전체 설정"""
        assert self._app is not None
        return self._app

    @property
    def credential_key(self) -> str:
        """자격 증명 암호화 키 (Fernet)"""
        return self.app.credential_key

    @property
    def db_path(self) -> Path:
        """DB 경로"""
        return self.app.db_path

    @property
    def sync(self) -> SyncSettings:
        """동기화 설정"""
        return self.app.sync

    def exchange(self, name: str) -> ExchangeSettings:
        """거래소별 설정"""
        return self.app.exchange(name)

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._app = None


def get_settings(settings_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        settings_path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(settings_path)
