from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from crowdfund.data.data_locker import DataLocker
from crowdfund.models.transaction import ChainTransaction, ChainTransactionCreate

router = APIRouter(tags=["transactions"])


def get_app_locker() -> DataLocker:
    return DataLocker.get_instance()


@router.post(
    "/api/public/transactions/avalanche",
    response_model=ChainTransaction,
    status_code=201,
)
def record_avalanche_transaction(
    payload: ChainTransactionCreate,
    dl: DataLocker = Depends(get_app_locker),
) -> ChainTransaction:
    """Store the receipt of a confirmed contract write reported by a client."""

    return dl.transactions.record_transaction(payload)


@router.get("/api/transactions", response_model=List[ChainTransaction])
def list_transactions(
    wallet: Optional[str] = Query(default=None, description="Filter by wallet address"),
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    dl: DataLocker = Depends(get_app_locker),
) -> List[ChainTransaction]:
    return dl.transactions.list_transactions(wallet_address=wallet, limit=limit)
