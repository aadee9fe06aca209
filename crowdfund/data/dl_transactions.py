"""crowdfund/data/dl_transactions.py

DLTransactionManager – data-layer helper for the *chain_transactions* table.
Holds the receipts of confirmed contract writes (fund / milestone / refund)
reported by clients. Contract state itself is never stored here.

Public methods
--------------
record_transaction()   – insert a confirmed transaction (duplicate hashes ignored)
get_by_hash()          – fetch one row by transaction hash
list_transactions()    – newest first, optionally filtered by wallet
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from crowdfund.core.logging import log
from crowdfund.models.transaction import ChainTransaction, ChainTransactionCreate


class DLTransactionManager:
    """Low-level wrapper around the *chain_transactions* SQLite table."""

    def __init__(self, db):
        self.db = db
        self.ensure_table()

    def ensure_table(self):
        cursor = self.db.get_cursor()
        if not cursor:
            log.error("❌ DB unavailable, chain_transactions table not created", source="DLTransactionManager")
            return
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS chain_transactions (
                id TEXT PRIMARY KEY,
                transaction_hash TEXT NOT NULL UNIQUE,
                amount TEXT NOT NULL,
                wallet_address TEXT NOT NULL,
                campaign_id TEXT,
                status TEXT NOT NULL,
                transaction_type TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
        """)
        self.db.commit()
        log.debug("chain_transactions table ensured", source="DLTransactionManager")

    def _execute(self, sql: str, params: tuple | dict = ()):
        cur = self.db.get_cursor()
        if cur is None:
            raise RuntimeError("DB unavailable in DLTransactionManager")
        cur.execute(sql, params)
        return cur

    @staticmethod
    def _row_to_tx(row) -> ChainTransaction:
        data = dict(row)
        data["created_at"] = datetime.fromisoformat(data["created_at"])
        return ChainTransaction(**data)

    def record_transaction(self, payload: ChainTransactionCreate) -> ChainTransaction:
        """Insert ``payload``; a hash seen before returns the stored row unchanged."""
        with self.db.lock:
            existing = self.get_by_hash(payload.transaction_hash)
            if existing:
                log.debug(f"Transaction {payload.transaction_hash} already recorded", source="DLTransactionManager")
                return existing

            row = {
                "id": str(uuid4()),
                "transaction_hash": payload.transaction_hash,
                "amount": payload.amount,
                "wallet_address": payload.wallet_address,
                "campaign_id": payload.campaign_id,
                "status": payload.status,
                "transaction_type": payload.transaction_type.value,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }
            self._execute("""
                INSERT INTO chain_transactions (
                    id, transaction_hash, amount, wallet_address,
                    campaign_id, status, transaction_type, created_at
                ) VALUES (
                    :id, :transaction_hash, :amount, :wallet_address,
                    :campaign_id, :status, :transaction_type, :created_at
                )
            """, row)
            self.db.commit()
        log.success(f"🧾 Recorded {payload.transaction_type.value} tx {payload.transaction_hash}", source="DLTransactionManager")
        return self._row_to_tx(row)

    def get_by_hash(self, transaction_hash: str) -> Optional[ChainTransaction]:
        cur = self._execute(
            "SELECT * FROM chain_transactions WHERE transaction_hash = ?",
            (transaction_hash,),
        )
        row = cur.fetchone()
        return self._row_to_tx(row) if row else None

    def list_transactions(
        self,
        wallet_address: str | None = None,
        limit: int | None = None,
    ) -> List[ChainTransaction]:
        sql = "SELECT * FROM chain_transactions"
        params: list = []
        if wallet_address:
            sql += " WHERE lower(wallet_address) = lower(?)"
            params.append(wallet_address)
        sql += " ORDER BY created_at DESC"
        if limit:
            sql += " LIMIT ?"
            params.append(int(limit))
        cur = self._execute(sql, tuple(params))
        return [self._row_to_tx(r) for r in cur.fetchall()]
