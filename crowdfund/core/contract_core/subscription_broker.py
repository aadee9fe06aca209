"""Per-connection registry of contract event listeners.

Every SSE connection registers its own closures under its own connection id,
so tearing one connection down can never remove another connection's
handlers.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Mapping, Optional
from uuid import uuid4

from .contract_models import ContractEvent

log = logging.getLogger(__name__)

EventHandler = Callable[[ContractEvent], None]


class SubscriptionBroker:
    def __init__(self) -> None:
        self._connections: Dict[str, Dict[str, EventHandler]] = {}
        self._lock = threading.Lock()

    def subscribe(
        self,
        handlers: Mapping[str, EventHandler],
        connection_id: Optional[str] = None,
    ) -> str:
        """Register ``handlers`` (event name → callable) for one connection."""
        connection_id = connection_id or str(uuid4())
        with self._lock:
            if connection_id in self._connections:
                raise ValueError(f"Connection {connection_id} already subscribed")
            self._connections[connection_id] = dict(handlers)
            total = len(self._connections)
        log.info("Connection %s subscribed (%d active)", connection_id, total)
        return connection_id

    def unsubscribe(self, connection_id: str) -> None:
        with self._lock:
            removed = self._connections.pop(connection_id, None)
            total = len(self._connections)
        if removed is not None:
            log.info("Connection %s unsubscribed (%d active)", connection_id, total)

    def publish(self, event: ContractEvent) -> int:
        """Deliver ``event`` to every connection listening for it. Returns deliveries."""
        with self._lock:
            targets = [
                (cid, handlers[event.name])
                for cid, handlers in self._connections.items()
                if event.name in handlers
            ]
        delivered = 0
        for cid, handler in targets:
            try:
                handler(event)
                delivered += 1
            except Exception:  # noqa: BLE001
                log.exception("Listener for %s on connection %s failed", event.name, cid)
        return delivered

    def connection_count(self) -> int:
        with self._lock:
            return len(self._connections)

    def listener_count(self, event_name: str) -> int:
        with self._lock:
            return sum(1 for h in self._connections.values() if event_name in h)

    def is_subscribed(self, connection_id: str) -> bool:
        with self._lock:
            return connection_id in self._connections
