#!/usr/bin/env python3
"""
거래소 동기화 CLI

사용법:
    python -m scripts.run_sync --connection 1 --mode preview
    python -m scripts.run_sync --connection 1 --mode import --selected 10 11 12
    python -m scripts.run_sync --connection 1 --mode data --types orders deposits
    python -m scripts.run_sync --all              # 활성 연결 전체 data sync (스케줄러)
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import ConfigLoadError, get_settings
from core.logging import setup_logging
from core.storage.connection_store import ConnectionStore
from core.types import JobPriority, ResourceType, SyncMode
from core.utils.timezone import ensure_utc
from sync.credentials import FernetCredentialCipher
from sync.data_sync import DEFAULT_SYNC_TYPES, ExchangeDataSync
from sync.errors import SyncError
from sync.orchestrator import SyncOrchestrator, SyncRequest
from sync.registry import ExchangeRegistry
from sync.scheduler import SyncJob, SyncScheduler, data_sync_runner

logger = logging.getLogger(__name__)


def _parse_date(value: str) -> datetime:
    try:
        return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        raise argparse.ArgumentTypeError(f"ISO 8601 날짜가 아닙니다: {value}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="거래소 체결/주문/입출금 동기화")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--connection", type=int, help="거래소 연결 ID")
    target.add_argument("--all", action="store_true", help="활성 연결 전체 data sync")
    parser.add_argument(
        "--mode",
        choices=["preview", "import", "data"],
        default="preview",
        help="동기화 모드 (기본: preview)",
    )
    parser.add_argument("--selected", type=int, nargs="*", default=[], help="import할 대기 체결 ID")
    parser.add_argument(
        "--types",
        nargs="*",
        choices=[r.value for r in ResourceType],
        help="data sync 대상 (기본: trades orders deposits withdrawals)",
    )
    parser.add_argument("--start", type=_parse_date, help="조회 시작 (ISO 8601, UTC)")
    parser.add_argument("--end", type=_parse_date, help="조회 종료 (ISO 8601, UTC)")
    return parser


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    cipher = FernetCredentialCipher(settings.credential_key)
    registry = ExchangeRegistry(settings.app)
    sync_types = [ResourceType(t) for t in args.types] if args.types else None

    try:
        async with SQLiteAdapter(settings.db_path) as db:
            await init_schema(db)

            if args.all:
                data_sync = ExchangeDataSync(db, registry, cipher, settings.sync)
                scheduler = SyncScheduler(data_sync_runner(data_sync), settings.sync.max_concurrent_jobs)
                for connection in await ConnectionStore(db).list_all(active_only=True):
                    scheduler.add_job(
                        SyncJob(
                            connection_id=connection.id,
                            exchange_name=connection.exchange_name,
                            priority=JobPriority.NORMAL,
                            sync_types=tuple(sync_types or DEFAULT_SYNC_TYPES),
                            start_date=args.start,
                            end_date=args.end,
                        )
                    )
                logger.info("스케줄 동기화 시작", extra=scheduler.status())
                results = await scheduler.run_until_empty()
                for job_result in results:
                    payload = job_result.result.to_dict() if job_result.result is not None else {}
                    print(json.dumps({
                        "connectionId": job_result.job.connection_id,
                        "exchange": job_result.job.exchange_name,
                        "success": job_result.success,
                        "error": job_result.error,
                        **payload,
                    }, ensure_ascii=False))
                return 0 if all(r.success for r in results) else 1

            if args.mode == "data":
                data_sync = ExchangeDataSync(db, registry, cipher, settings.sync)
                result = await data_sync.sync(args.connection, sync_types, args.start, args.end)
                print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
                return 0 if result.success else 1

            orchestrator = SyncOrchestrator(db, registry, cipher, settings.sync)
            response = await orchestrator.run(
                SyncRequest(
                    connection_id=args.connection,
                    mode=SyncMode(args.mode),
                    selected_trade_ids=tuple(args.selected),
                    start_date=args.start,
                    end_date=args.end,
                )
            )
            print(json.dumps(response.to_dict(), ensure_ascii=False, indent=2))
            return 0 if response.success else 1
    finally:
        await registry.close()


def main() -> None:
    args = build_parser().parse_args()
    setup_logging("sync")

    try:
        exit_code = asyncio.run(run(args))
    except ConfigLoadError as e:
        logger.error(f"설정 로드 실패: {e}")
        sys.exit(2)
    except SyncError as e:
        logger.error(f"동기화 거부: {e.message}")
        sys.exit(1)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
