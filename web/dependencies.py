"""
의존성 주입

FastAPI의 Depends를 사용한 의존성 관리.
"""

from typing import AsyncGenerator

from fastapi import Depends

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings, get_settings
from sync.credentials import FernetCredentialCipher
from sync.registry import ExchangeRegistry


def get_app_settings() -> Settings:
    """애플리케이션 설정 반환"""
    return get_settings()


async def get_db_write() -> AsyncGenerator[SQLiteAdapter, None]:
    """DB 세션 반환 (쓰기 가능)

    동기화/연결 관리 API는 모두 쓰기 작업.
    """
    settings = get_settings()
    async with SQLiteAdapter(settings.db_path, readonly=False) as db:
        yield db


def get_cipher(settings: Settings = Depends(get_app_settings)) -> FernetCredentialCipher:
    """자격 증명 암호화기 (settings.yaml의 credential_key)"""
    return FernetCredentialCipher(settings.credential_key)


# =========================================================================
# ExchangeRegistry (프로세스 공유)
# =========================================================================

# 초기화된 어댑터 캐시를 요청 간에 공유
_registry: ExchangeRegistry | None = None


def set_registry(registry: ExchangeRegistry | None) -> None:
    """전역 ExchangeRegistry 설정 (앱 시작/종료 시 호출)"""
    global _registry
    _registry = registry


def get_registry() -> ExchangeRegistry:
    """ExchangeRegistry 반환

    lifespan 밖에서 호출되면 설정 파일 기준으로 생성.
    """
    global _registry
    if _registry is None:
        _registry = ExchangeRegistry(get_settings().app)
    return _registry
