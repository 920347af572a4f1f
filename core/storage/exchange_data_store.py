"""
ExchangeDataStore - data sync 결과 저장소

주문/입금/출금을 (connection_id, 거래소 ID) 기준 INSERT OR IGNORE로 저장.
"""

import logging
from typing import Any, Sequence

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.models import Deposit, Order, Withdrawal
from core.utils.timezone import format_iso

logger = logging.getLogger(__name__)


class ExchangeDataStore:
    """주문/입출금 저장소

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def _insert_ignore(self, sql: str, rows: list[tuple[Any, ...]]) -> int:
        inserted = 0
        async with self.db.transaction() as conn:
            for params in rows:
                cursor = await conn.execute(sql, params)
                inserted += cursor.rowcount
        return inserted

    async def save_orders(self, connection_id: int, orders: Sequence[Order]) -> int:
        """주문 저장

        Returns:
            신규 저장 건수
        """
        return await self._insert_ignore(
            """
            INSERT OR IGNORE INTO exchange_orders (
                connection_id, exchange_order_id, symbol, side, order_type, status,
                price, quantity, filled_quantity, order_time
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    connection_id,
                    o.id,
                    o.symbol,
                    o.side.value,
                    o.type,
                    o.status.value,
                    str(o.price),
                    str(o.quantity),
                    str(o.filled),
                    format_iso(o.timestamp),
                )
                for o in orders
            ],
        )

    async def save_deposits(self, connection_id: int, deposits: Sequence[Deposit]) -> int:
        return await self._insert_ignore(
            """
            INSERT OR IGNORE INTO exchange_deposits (
                connection_id, exchange_deposit_id, currency, amount,
                address, tx_id, network, status, deposit_time
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    connection_id,
                    d.id,
                    d.currency,
                    str(d.amount),
                    d.address,
                    d.tx_id,
                    d.network,
                    d.status.value,
                    format_iso(d.timestamp),
                )
                for d in deposits
            ],
        )

    async def save_withdrawals(self, connection_id: int, withdrawals: Sequence[Withdrawal]) -> int:
        return await self._insert_ignore(
            """
            INSERT OR IGNORE INTO exchange_withdrawals (
                connection_id, exchange_withdrawal_id, currency, amount, fee,
                address, tx_id, network, status, withdrawal_time
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    connection_id,
                    w.id,
                    w.currency,
                    str(w.amount),
                    str(w.fee),
                    w.address,
                    w.tx_id,
                    w.network,
                    w.status.value,
                    format_iso(w.timestamp),
                )
                for w in withdrawals
            ],
        )

    async def count(self, table: str, connection_id: int) -> int:
        """저장 건수 (table: exchange_orders/exchange_deposits/exchange_withdrawals)"""
        if table not in ("exchange_orders", "exchange_deposits", "exchange_withdrawals"):
            raise ValueError(f"Unknown table: {table}")
        row = await self.db.fetchone(
            f"SELECT COUNT(*) FROM {table} WHERE connection_id = ?",
            (connection_id,),
        )
        return row[0] if row else 0
