from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class TransactionType(str, Enum):
    """Kind of contract write a recorded transaction came from."""

    FUNDING = "funding"
    MILESTONE = "milestone"
    REFUND = "refund"


class ChainTransactionCreate(BaseModel):
    """Body of ``POST /api/public/transactions/avalanche`` (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    transaction_hash: str = Field(..., description="0x-prefixed transaction hash")
    amount: str = Field("0", description="Human AVAX amount, e.g. '0.25'")
    wallet_address: str = Field(..., description="Sender address, 0x…")
    campaign_id: Optional[str] = Field(None, description="Free-form campaign tag")
    status: str = Field("completed")
    transaction_type: TransactionType = Field(TransactionType.FUNDING)

    @field_validator("transaction_hash")
    @classmethod
    def _hash_shape(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith("0x") or len(v) != 66:
            raise ValueError("transactionHash must be a 32-byte 0x-prefixed hex string")
        int(v, 16)
        return v.lower()


class ChainTransaction(ChainTransactionCreate):
    id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
