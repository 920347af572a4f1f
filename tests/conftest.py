"""
pytest 공통 fixture 정의

설정 파일, 인메모리 DB, 자격 증명 암호화기.
"""

import tempfile
from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from cryptography.fernet import Fernet

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from adapters.models import ExchangeCredentials
from core.config.loader import Settings
from sync.credentials import FernetCredentialCipher


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fernet_key() -> str:
    return Fernet.generate_key().decode("ascii")


@pytest.fixture
def temp_settings_file(temp_dir: Path, fernet_key: str) -> Path:
    """테스트용 settings.yaml 파일 생성"""
    content = f"""# 테스트용 settings.yaml
credential_key: "{fernet_key}"

database:
  path: {temp_dir / "test.db"}

sync:
  preview_lookback_days: 14
  timeout_sec: 5

exchanges:
  binance:
    spot_symbols: [BTC/USDT, ETH/USDT]
    futures_symbols: [BTC/USDT]
  gateio:
    spot_symbols: [ETH/USDT]
"""
    path = temp_dir / "settings.yaml"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def reset_settings_singleton():
    """테스트 간 Settings 싱글턴 격리"""
    Settings.reset()
    yield
    Settings.reset()


@pytest.fixture
def cipher(fernet_key: str) -> FernetCredentialCipher:
    return FernetCredentialCipher(fernet_key)


@pytest.fixture
def credentials() -> ExchangeCredentials:
    return ExchangeCredentials(api_key="test_api_key", api_secret="test_api_secret")


@pytest.fixture
def passphrase_credentials() -> ExchangeCredentials:
    return ExchangeCredentials(
        api_key="test_api_key",
        api_secret="test_api_secret",
        api_passphrase="test_passphrase",
    )


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[SQLiteAdapter, None]:
    """스키마가 초기화된 인메모리 DB"""
    adapter = SQLiteAdapter(":memory:")
    await adapter.connect()
    await init_schema(adapter)
    yield adapter
    await adapter.close()
