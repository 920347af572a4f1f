"""
스토리지 모듈

거래소 연결, 대기 체결, 동기화 이력, 매매 일지, 주문/입출금 저장소 제공
"""

from core.storage.connection_store import ConnectionStore, ExchangeConnection
from core.storage.exchange_data_store import ExchangeDataStore
from core.storage.pending_trade_store import PendingTrade, PendingTradeStore
from core.storage.sync_history_store import SyncHistory, SyncHistoryStore
from core.storage.trade_store import TradeRecord, TradeStore

__all__ = [
    "ConnectionStore",
    "ExchangeConnection",
    "ExchangeDataStore",
    "PendingTrade",
    "PendingTradeStore",
    "SyncHistory",
    "SyncHistoryStore",
    "TradeRecord",
    "TradeStore",
]
