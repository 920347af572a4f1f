"""
TradeStore - 매매 일지(trades) 저장소

정규화된 Trade를 일지 행(TradeRecord)으로 변환해 저장.
(exchange, external_id) UNIQUE 제약이 중복 import를 막음.
"""

import logging
import sqlite3
from dataclasses import asdict, dataclass
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.models import Trade
from core.constants import Defaults
from core.types import TradeSide
from core.utils.dedup import make_trade_external_id
from core.utils.timezone import format_iso

logger = logging.getLogger(__name__)

# 체결 방향 → 일지 포지션 방향
POSITION_SIDE = {
    TradeSide.BUY: "long",
    TradeSide.SELL: "short",
}


@dataclass(frozen=True)
class TradeRecord:
    """trades 테이블 행

    체결 1건 = 진입/청산이 같은 일지 행 (pnl 0).
    금액은 문자열(Decimal 문자열)로 저장.
    """

    external_id: str
    exchange: str
    pair: str
    side: str
    type: str
    entry_price: str
    exit_price: str
    size: str
    fee: str
    fee_currency: str
    opened_at: str
    closed_at: str
    notes: str
    broker_name: str
    pnl: str = "0"
    pnl_percentage: str = "0"
    connection_id: int | None = None

    @classmethod
    def from_trade(
        cls,
        trade: Trade,
        display_name: str,
        connection_id: int | None = None,
        notes: str | None = None,
    ) -> "TradeRecord":
        """Trade → 일지 행

        Args:
            trade: 정규화된 체결
            display_name: 거래소 표시 이름 (exchange/broker_name 컬럼)
            connection_id: 연결 ID
            notes: 메모 (None이면 "Imported from ..." 기본 문구)
        """
        timestamp = format_iso(trade.timestamp)
        price = str(trade.price)
        return cls(
            external_id=make_trade_external_id(trade.exchange, trade.market.value, trade.symbol, trade.id),
            exchange=display_name,
            pair=trade.symbol,
            side=POSITION_SIDE[trade.side],
            type=trade.market.value,
            entry_price=price,
            exit_price=price,
            size=str(trade.quantity),
            fee=str(trade.fee),
            fee_currency=trade.fee_currency or Defaults.FEE_CURRENCY,
            opened_at=timestamp,
            closed_at=timestamp,
            notes=notes or f"Imported from {display_name}. Order ID: {trade.order_id}",
            broker_name=display_name,
            connection_id=connection_id,
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TradeRecord":
        """대기 체결 JSON → 행 (알 수 없는 키 무시)"""
        fields = cls.__dataclass_fields__
        return cls(**{k: v for k, v in data.items() if k in fields})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


_INSERT_SQL = """
    INSERT {conflict} INTO trades (
        connection_id, external_id, exchange, pair, side, type,
        entry_price, exit_price, size, pnl, pnl_percentage,
        fee, fee_currency, opened_at, closed_at, notes, broker_name
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""


def _params(record: TradeRecord) -> tuple[Any, ...]:
    return (
        record.connection_id,
        record.external_id,
        record.exchange,
        record.pair,
        record.side,
        record.type,
        record.entry_price,
        record.exit_price,
        record.size,
        record.pnl,
        record.pnl_percentage,
        record.fee,
        record.fee_currency,
        record.opened_at,
        record.closed_at,
        record.notes,
        record.broker_name,
    )


class TradeStore:
    """매매 일지 저장소

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def insert(self, record: TradeRecord) -> bool:
        """일지 행 저장

        Returns:
            True: 신규 저장
            False: (exchange, external_id) 중복

        Raises:
            sqlite3.IntegrityError: UNIQUE 외의 제약 위반
            sqlite3.Error: 그 외 DB 오류
        """
        try:
            await self.db.insert(_INSERT_SQL.format(conflict=""), _params(record))
        except sqlite3.IntegrityError as e:
            if "UNIQUE" not in str(e):
                raise
            logger.debug(
                "중복 체결 (건너뜀)",
                extra={"exchange": record.exchange, "external_id": record.external_id},
            )
            return False
        return True

    async def insert_many_ignore(self, records: list[TradeRecord]) -> int:
        """중복 무시 일괄 저장 (data sync용)

        Returns:
            신규 저장 건수
        """
        inserted = 0
        async with self.db.transaction() as conn:
            for record in records:
                cursor = await conn.execute(_INSERT_SQL.format(conflict="OR IGNORE"), _params(record))
                inserted += cursor.rowcount
        return inserted

    async def count(self, exchange: str | None = None) -> int:
        if exchange is None:
            row = await self.db.fetchone("SELECT COUNT(*) FROM trades")
        else:
            row = await self.db.fetchone("SELECT COUNT(*) FROM trades WHERE exchange = ?", (exchange,))
        return row[0] if row else 0
