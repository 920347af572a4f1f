"""
core/config/loader.py 테스트

settings.yaml 로드, 검증, 싱글턴 동작 테스트
"""

from pathlib import Path

import pytest

from core.config.loader import (
    AppSettings,
    ConfigLoadError,
    ExchangeSettings,
    Settings,
    SyncSettings,
    get_settings,
    load_settings,
)
from core.constants import PROJECT_ROOT, Paths, SyncDefaults


def _write(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    return path


class TestSyncSettings:
    """SyncSettings 기본값 테스트"""

    def test_defaults(self) -> None:
        settings = SyncSettings()

        assert settings.preview_lookback_days == SyncDefaults.PREVIEW_LOOKBACK_DAYS
        assert settings.data_sync_lookback_days == SyncDefaults.DATA_SYNC_LOOKBACK_DAYS
        assert settings.timeout_sec == SyncDefaults.TIMEOUT_SEC
        assert settings.max_concurrent_jobs == SyncDefaults.MAX_CONCURRENT_JOBS

    def test_frozen(self) -> None:
        settings = SyncSettings()

        with pytest.raises(AttributeError):
            settings.timeout_sec = 1.0  # type: ignore


class TestLoadSettings:
    """load_settings 함수 테스트"""

    def test_load_valid_file(self, temp_settings_file: Path, temp_dir: Path, fernet_key: str) -> None:
        settings = load_settings(temp_settings_file)

        assert isinstance(settings, AppSettings)
        assert settings.credential_key == fernet_key
        assert settings.db_path == temp_dir / "test.db"
        assert settings.sync.preview_lookback_days == 14
        assert settings.sync.timeout_sec == 5.0
        assert isinstance(settings.sync.timeout_sec, float)
        # 지정하지 않은 키는 기본값
        assert settings.sync.max_retries == SyncDefaults.MAX_RETRIES

    def test_exchange_symbols(self, temp_settings_file: Path) -> None:
        settings = load_settings(temp_settings_file)

        binance = settings.exchange("binance")
        assert binance.spot_symbols == ("BTC/USDT", "ETH/USDT")
        assert binance.futures_symbols == ("BTC/USDT",)
        assert settings.exchange("GATEIO").spot_symbols == ("ETH/USDT",)

    def test_exchange_without_section_returns_defaults(self, temp_settings_file: Path) -> None:
        settings = load_settings(temp_settings_file)

        assert settings.exchange("kraken") == ExchangeSettings()

    def test_credential_key_hidden_in_repr(self, temp_settings_file: Path, fernet_key: str) -> None:
        settings = load_settings(temp_settings_file)

        assert fernet_key not in repr(settings)

    def test_file_not_found(self, temp_dir: Path) -> None:
        with pytest.raises(ConfigLoadError, match="찾을 수 없습니다"):
            load_settings(temp_dir / "nonexistent.yaml")

    def test_empty_file(self, temp_dir: Path) -> None:
        path = _write(temp_dir / "settings.yaml", "")

        with pytest.raises(ConfigLoadError, match="비어 있습니다"):
            load_settings(path)

    def test_invalid_yaml(self, temp_dir: Path) -> None:
        path = _write(temp_dir / "settings.yaml", "credential_key: [unclosed\n")

        with pytest.raises(ConfigLoadError, match="파싱 실패"):
            load_settings(path)

    def test_missing_credential_key(self, temp_dir: Path) -> None:
        path = _write(temp_dir / "settings.yaml", "database:\n  path: data/x.db\n")

        with pytest.raises(ConfigLoadError, match="credential_key"):
            load_settings(path)

    def test_unknown_sync_key(self, temp_dir: Path, fernet_key: str) -> None:
        path = _write(
            temp_dir / "settings.yaml",
            f'credential_key: "{fernet_key}"\nsync:\n  lookback: 3\n',
        )

        with pytest.raises(ConfigLoadError, match="알 수 없는 키"):
            load_settings(path)

    @pytest.mark.parametrize("value", ["0", "-5", "abc"])
    def test_invalid_sync_value(self, temp_dir: Path, fernet_key: str, value: str) -> None:
        path = _write(
            temp_dir / "settings.yaml",
            f'credential_key: "{fernet_key}"\nsync:\n  max_concurrent_jobs: {value}\n',
        )

        with pytest.raises(ConfigLoadError, match="max_concurrent_jobs"):
            load_settings(path)

    def test_unsupported_exchange(self, temp_dir: Path, fernet_key: str) -> None:
        path = _write(
            temp_dir / "settings.yaml",
            f'credential_key: "{fernet_key}"\nexchanges:\n  upbit:\n    spot_symbols: [BTC/KRW]\n',
        )

        with pytest.raises(ConfigLoadError, match="upbit"):
            load_settings(path)

    def test_empty_exchange_section(self, temp_dir: Path, fernet_key: str) -> None:
        path = _write(
            temp_dir / "settings.yaml",
            f'credential_key: "{fernet_key}"\nexchanges:\n  bybit:\n',
        )

        settings = load_settings(path)

        assert settings.exchange("bybit") == ExchangeSettings()

    def test_base_url_override(self, temp_dir: Path, fernet_key: str) -> None:
        path = _write(
            temp_dir / "settings.yaml",
            f'credential_key: "{fernet_key}"\nexchanges:\n  okx:\n    base_url: https://aws.okx.com\n',
        )

        settings = load_settings(path)

        assert settings.exchange("okx").base_url == "https://aws.okx.com"

    def test_relative_db_path_resolved_from_project_root(self, temp_dir: Path, fernet_key: str) -> None:
        path = _write(
            temp_dir / "settings.yaml",
            f'credential_key: "{fernet_key}"\ndatabase:\n  path: data/custom.db\n',
        )

        settings = load_settings(path)

        assert settings.db_path == PROJECT_ROOT / "data" / "custom.db"

    def test_memory_db_path_kept(self, temp_dir: Path, fernet_key: str) -> None:
        path = _write(
            temp_dir / "settings.yaml",
            f'credential_key: "{fernet_key}"\ndatabase:\n  path: ":memory:"\n',
        )

        settings = load_settings(path)

        assert str(settings.db_path) == ":memory:"

    def test_default_db_path(self, temp_dir: Path, fernet_key: str) -> None:
        path = _write(temp_dir / "settings.yaml", f'credential_key: "{fernet_key}"\n')

        settings = load_settings(path)

        assert settings.db_path == Paths.DEFAULT_DB
        assert settings.sync == SyncSettings()
        assert settings.exchanges == {}


class TestSettingsSingleton:
    """Settings 싱글턴 테스트"""

    def test_same_instance(self, temp_settings_file: Path) -> None:
        first = Settings(temp_settings_file)
        second = Settings()

        assert first is second
        assert second.sync.preview_lookback_days == 14

    def test_get_settings(self, temp_settings_file: Path, temp_dir: Path) -> None:
        settings = get_settings(temp_settings_file)

        assert settings.db_path == temp_dir / "test.db"
        assert settings.exchange("binance").futures_symbols == ("BTC/USDT",)

    def test_reset(self, temp_settings_file: Path) -> None:
        first = Settings(temp_settings_file)
        Settings.reset()
        second = Settings(temp_settings_file)

        assert first is not second

    def test_load_error_propagates(self, temp_dir: Path) -> None:
        with pytest.raises(ConfigLoadError):
            Settings(temp_dir / "missing.yaml")
