from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from sse_starlette.sse import EventSourceResponse

from crowdfund.core.contract_core.chain_reader import ChainReader
from crowdfund.core.contract_core.contract_config import ContractConfig
from crowdfund.core.contract_core.event_relay import relay_events
from crowdfund.core.contract_core.subscription_broker import SubscriptionBroker

log = logging.getLogger(__name__)
router = APIRouter(prefix="/api/contract", tags=["contract"])

SSE_PING_SECONDS = 15

# Shared by every SSE connection and by the app's chain listener.
broker = SubscriptionBroker()
_reader: Optional[ChainReader] = None


def get_config() -> ContractConfig:
    return ContractConfig.from_env()


def get_broker() -> SubscriptionBroker:
    return broker


def get_chain_reader(cfg: ContractConfig = Depends(get_config)) -> ChainReader:
    global _reader
    if _reader is None or _reader.cfg != cfg:
        _reader = ChainReader(cfg)
    return _reader


# ---------------- reads ----------------

@router.get("/state")
async def api_state(reader: ChainReader = Depends(get_chain_reader)) -> Dict[str, Any]:
    try:
        state = await reader.get_state()
    except Exception as e:  # noqa: BLE001
        log.error("Contract state read failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))
    return state.to_dict()


@router.get("/backers/{address}")
async def api_backer(address: str, reader: ChainReader = Depends(get_chain_reader)) -> Dict[str, Any]:
    try:
        backer = await reader.get_backer_amount(address)
    except Exception as e:  # noqa: BLE001
        log.error("Backer read failed for %s: %s", address, e)
        raise HTTPException(status_code=500, detail=str(e))
    return backer.to_dict()


@router.get("/config")
def api_config(cfg: ContractConfig = Depends(get_config)) -> Dict[str, Any]:
    """Public network + contract metadata for clients."""
    return cfg.to_public_dict()


# ---------------- events ----------------

@router.get("/events")
async def api_events(b: SubscriptionBroker = Depends(get_broker)):
    """Server-Sent Events stream of Funded / Refunded / MilestoneCompleted."""
    return EventSourceResponse(
        relay_events(b),
        headers={"Cache-Control": "no-cache"},
        ping=SSE_PING_SECONDS,
    )
