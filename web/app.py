"""
FastAPI 애플리케이션

라우터 등록 및 앱 설정.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config.loader import get_settings
from core.logging import setup_logging

# 로깅 설정 (콘솔 + 파일)
setup_logging("web")

from web.routes import connections, exchange_sync, exchanges, health
from web.routes.health import API_VERSION

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 생명주기 관리

    시작: DB 스키마 초기화 + ExchangeRegistry 생성
    종료: 캐시된 어댑터(HTTP 클라이언트) 정리
    """
    from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
    from sync.registry import ExchangeRegistry
    from web.dependencies import set_registry

    settings = get_settings()

    async with SQLiteAdapter(settings.db_path) as db:
        await init_schema(db)
        schema_version = await db.schema_version()

    registry = ExchangeRegistry(settings.app)
    set_registry(registry)
    logger.info(
        "Web: 시작",
        extra={
            "db_path": str(settings.db_path),
            "schema_version": schema_version,
            "exchanges": registry.supported_exchanges(),
        },
    )

    yield

    await registry.close()
    set_registry(None)
    logger.info("Web: 어댑터 정리 완료")


app = FastAPI(
    title="Exchange Sync API",
    description="거래소 체결/주문/입출금 내역 수집 API",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# CORS 설정 (개발용)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# =========================================================================
# API 라우터 등록
# =========================================================================

app.include_router(health.router)
app.include_router(exchanges.router)
app.include_router(connections.router)
app.include_router(exchange_sync.router)
