#!/usr/bin/env python3
"""
DB 스키마 초기화 스크립트

사용법:
    python -m scripts.init_db                 # settings.yaml의 DB 경로
    python -m scripts.init_db --db data/x.db  # 경로 지정
    python -m scripts.init_db --generate-key  # credential_key용 Fernet 키 출력
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from adapters.db.sqlite_adapter import SCHEMA_TABLES, SQLiteAdapter, init_schema
from core.config.loader import get_settings
from sync.credentials import FernetCredentialCipher

logging.basicConfig(
    level=logging.INFO,
    format="[%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


async def main(db_path: Path) -> None:
    async with SQLiteAdapter(db_path) as db:
        await init_schema(db)
        for table in SCHEMA_TABLES:
            exists = await db.table_exists(table)
            logger.info(f"  {table}: {'OK' if exists else 'MISSING'}")
            if not exists:
                raise RuntimeError(f"테이블 생성 실패: {table}")
        version = await db.schema_version()
    logger.info(f"DB 초기화 완료: {db_path} (schema v{version})")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="DB 스키마 초기화")
    parser.add_argument("--db", type=Path, help="DB 파일 경로 (기본: settings.yaml)")
    parser.add_argument("--generate-key", action="store_true", help="Fernet 키 생성 후 종료")
    args = parser.parse_args()

    if args.generate_key:
        print(FernetCredentialCipher.generate_key())
        sys.exit(0)

    asyncio.run(main(args.db or get_settings().db_path))
