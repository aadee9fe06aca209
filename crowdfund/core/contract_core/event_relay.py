from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, Iterable, Optional

from .contract_abi import RELAYED_EVENTS
from .contract_models import ContractEvent
from .subscription_broker import SubscriptionBroker

log = logging.getLogger(__name__)


def format_sse(event: ContractEvent) -> Dict[str, Any]:
    """Named SSE frame (``event:`` + JSON ``data:``) for ``EventSourceResponse``."""
    return {"event": event.name, "data": json.dumps(event.to_payload())}


async def relay_events(
    broker: SubscriptionBroker,
    event_names: Iterable[str] = RELAYED_EVENTS,
    connection_id: Optional[str] = None,
) -> AsyncIterator[Dict[str, Any]]:
    """Stream one connection's SSE frames in broker emission order.

    The handlers registered here are closures over this generator's own queue;
    closing the generator (client disconnect) unsubscribes exactly them.
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[Dict[str, Any]] = asyncio.Queue()

    def _enqueue(event: ContractEvent) -> None:
        frame = format_sse(event)
        loop.call_soon_threadsafe(queue.put_nowait, frame)

    cid = broker.subscribe({name: _enqueue for name in event_names}, connection_id)
    try:
        while True:
            yield await queue.get()
    finally:
        broker.unsubscribe(cid)
        log.debug("SSE connection %s closed", cid)
