"""Shared WebSocket log subscription to the chain node.

One ``eth_subscribe("logs")`` connection watches the crowdfund contract for
the relayed events; each notification is decoded and handed to the
:class:`SubscriptionBroker`, which fans it out to SSE connections.

When the socket drops the listener logs the failure and stops. There is no
resubscription and no backfill of missed logs; clients stop receiving events
until the process restarts.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import websockets
from eth_abi.exceptions import DecodingError
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import Web3Exception

from .contract_abi import CONTRACT_ABI, FUNDED, MILESTONE_COMPLETED, REFUNDED
from .contract_config import ContractConfig
from .contract_models import ContractEvent, to_int
from .subscription_broker import SubscriptionBroker

log = logging.getLogger(__name__)

EVENT_SIGNATURES: Dict[str, str] = {
    FUNDED: "Funded(address,uint256)",
    REFUNDED: "Refunded(address,uint256)",
    MILESTONE_COMPLETED: "MilestoneCompleted(uint256,uint256)",
}

# topic0 (lowercase hex) → event name
TOPIC_TO_EVENT: Dict[str, str] = {
    Web3.to_hex(Web3.keccak(text=sig)): name for name, sig in EVENT_SIGNATURES.items()
}

WS_PING_INTERVAL = 20
WS_MAX_MESSAGE_SIZE = 10 * 1024 * 1024


def _to_bytes(value: Any) -> Optional[HexBytes]:
    return HexBytes(value) if value is not None else None


def build_contract(cfg: ContractConfig):
    """Offline contract handle used only for ABI decoding."""
    return Web3().eth.contract(
        address=Web3.to_checksum_address(cfg.contract_address), abi=CONTRACT_ABI
    )


def build_subscription_request(contract_address: str, request_id: int = 1) -> Dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "method": "eth_subscribe",
        "params": [
            "logs",
            {
                "address": Web3.to_checksum_address(contract_address),
                "topics": [sorted(TOPIC_TO_EVENT)],
            },
        ],
    }


def decode_log(contract, log_entry: Dict[str, Any]) -> Optional[ContractEvent]:
    """Decode a raw JSON-RPC log into a :class:`ContractEvent`; ``None`` if not relayed."""
    topics = [HexBytes(t) for t in (log_entry.get("topics") or [])]
    if not topics:
        return None
    name = TOPIC_TO_EVENT.get(Web3.to_hex(topics[0]))
    if name is None:
        return None

    normalized = {
        "address": log_entry.get("address"),
        "topics": topics,
        "data": HexBytes(log_entry.get("data") or "0x"),
        "blockNumber": to_int(log_entry.get("blockNumber")),
        "blockHash": _to_bytes(log_entry.get("blockHash")),
        "transactionHash": _to_bytes(log_entry.get("transactionHash")),
        "transactionIndex": to_int(log_entry.get("transactionIndex")),
        "logIndex": to_int(log_entry.get("logIndex")),
    }
    decoded = getattr(contract.events, name)().process_log(normalized)
    tx_hash = normalized["transactionHash"]
    return ContractEvent(
        name=name,
        args=dict(decoded["args"]),
        tx_hash=Web3.to_hex(tx_hash) if tx_hash is not None else None,
        block_number=normalized["blockNumber"],
    )


class ContractEventListener:
    def __init__(self, cfg: ContractConfig, broker: SubscriptionBroker):
        self.cfg = cfg
        self.broker = broker
        self.contract = build_contract(cfg)
        self.subscription_id: Optional[str] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def handle_message(self, raw: str | bytes) -> Optional[ContractEvent]:
        """Decode one WebSocket frame and publish it. Returns the published event."""
        message = json.loads(raw)
        if message.get("method") != "eth_subscription":
            return None
        log_entry = (message.get("params") or {}).get("result") or {}
        if not log_entry or log_entry.get("removed"):
            return None
        event = decode_log(self.contract, log_entry)
        if event is None:
            return None
        delivered = self.broker.publish(event)
        log.debug("Relayed %s (tx %s) to %d connection(s)", event.name, event.tx_hash, delivered)
        return event

    async def run(self) -> None:
        log.info("Subscribing to %s logs via %s", self.cfg.contract_address, self.cfg.rpc_ws_url)
        try:
            async with websockets.connect(
                self.cfg.rpc_ws_url,
                ping_interval=WS_PING_INTERVAL,
                max_size=WS_MAX_MESSAGE_SIZE,
            ) as ws:
                await ws.send(json.dumps(build_subscription_request(self.cfg.contract_address)))
                ack = json.loads(await ws.recv())
                if "error" in ack:
                    log.error("eth_subscribe rejected: %s", ack["error"])
                    return
                self.subscription_id = ack.get("result")
                log.info("Subscribed to contract logs (subscription %s)", self.subscription_id)

                async for raw in ws:
                    try:
                        self.handle_message(raw)
                    except (ValueError, KeyError, Web3Exception, DecodingError) as exc:
                        log.warning("Skipping undecodable log message: %s", exc)
        except asyncio.CancelledError:
            raise
        except Exception:  # noqa: BLE001
            log.exception("Contract event subscription lost; events will not be relayed until restart")
        finally:
            self.subscription_id = None

    def start(self) -> asyncio.Task:
        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self.run())
        return self._task

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        log.info("Contract event listener stopped")
