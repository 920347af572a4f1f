"""
동기화 서비스 계층

어댑터 레지스트리, preview/import 오케스트레이터, data sync,
연결 관리, 작업 스케줄러.
"""

from sync.connections import ConnectionService
from sync.credentials import FernetCredentialCipher
from sync.data_sync import DataSyncResult, ExchangeDataSync
from sync.orchestrator import SyncOrchestrator, SyncRequest, SyncResponse
from sync.registry import ExchangeRegistry, SyncExchangeResult, SyncOptions
from sync.scheduler import SyncJob, SyncJobResult, SyncScheduler

__all__ = [
    "ConnectionService",
    "FernetCredentialCipher",
    "DataSyncResult",
    "ExchangeDataSync",
    "SyncOrchestrator",
    "SyncRequest",
    "SyncResponse",
    "ExchangeRegistry",
    "SyncExchangeResult",
    "SyncOptions",
    "SyncJob",
    "SyncJobResult",
    "SyncScheduler",
]
