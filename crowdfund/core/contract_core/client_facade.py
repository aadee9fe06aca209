"""Client-side facade over the wallet, the backend and the contract.

Writes (``fund``, ``complete_milestone``, ``refund``) are signed by the
wallet; reads go through the backend so no RPC URL or API key has to live on
the client. Events arrive over the backend's SSE stream.

The wallet is any object with an EIP-1193-style ``request(method, params)``
that raises :class:`WalletRequestError` on a JSON-RPC error.
:class:`JsonRpcWallet` adapts a local signer that speaks JSON-RPC over HTTP.
"""

from __future__ import annotations

import codecs
import json
import logging
import re
import threading
import time
from contextlib import contextmanager
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

import requests
from web3 import Web3

from .contract_abi import CONTRACT_ABI, RELAYED_EVENTS
from .contract_config import ContractConfig
from .contract_models import format_ether, to_int

log = logging.getLogger(__name__)

# EIP-1193 / wallet error codes
USER_REJECTED = 4001
UNRECOGNIZED_CHAIN = 4902
INTERNAL_ERROR = -32603

WRITE_ERROR_MESSAGES = {
    USER_REJECTED: "Transaction was rejected by user",
    INTERNAL_ERROR: "Transaction failed - please check your wallet balance and network connection",
}

TX_RECORD_PATH = "/api/public/transactions/avalanche"


class CrowdfundClientError(RuntimeError):
    pass


class WalletRequestError(CrowdfundClientError):
    def __init__(self, code: Optional[int], message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class BackendError(CrowdfundClientError):
    pass


class InsufficientBalanceError(CrowdfundClientError):
    pass


class TransactionFailedError(CrowdfundClientError):
    def __init__(self, tx_hash: str, receipt: Dict[str, Any]):
        super().__init__(f"Transaction {tx_hash} reverted")
        self.tx_hash = tx_hash
        self.receipt = receipt


class TransactionInFlightError(CrowdfundClientError):
    def __init__(self, operation: str):
        super().__init__(f"{operation} is already waiting for confirmation")
        self.operation = operation


class JsonRpcWallet:
    """Wallet reached over JSON-RPC HTTP (e.g. a local signer such as Frame)."""

    def __init__(self, url: str, session: Optional[requests.Session] = None, timeout: float = 60.0):
        self.url = url
        self.session = session or requests.Session()
        self.timeout = timeout
        self._id = 0

    def request(self, method: str, params: Any = None) -> Any:
        self._id += 1
        payload = {"jsonrpc": "2.0", "id": self._id, "method": method, "params": params or []}
        resp = self.session.post(self.url, json=payload, timeout=self.timeout)
        resp.raise_for_status()
        body = resp.json()
        if "error" in body:
            err = body["error"] or {}
            raise WalletRequestError(err.get("code"), err.get("message") or "wallet error")
        return body.get("result")


# ---------------- SSE ----------------

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def iter_sse_lines(chunks: Iterable[bytes | str]) -> Iterator[str]:
    """Split raw stream chunks into SSE lines.

    ``\\r\\n``, ``\\r`` and ``\\n`` all end a line, and a chunk may stop
    anywhere, including between the ``\\r`` and ``\\n`` of one line ending.
    A trailing ``\\r`` is held until the next chunk shows whether a ``\\n``
    follows it.
    """
    decoder = codecs.getincrementaldecoder("utf-8")()
    buf = ""
    for chunk in chunks:
        if not chunk:
            continue
        buf += decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        held_cr = buf.endswith("\r")
        if held_cr:
            buf = buf[:-1]
        lines = _LINE_BREAK.split(buf)
        buf = lines.pop()
        yield from lines
        if held_cr:
            buf += "\r"
    buf += decoder.decode(b"", final=True)
    if buf:
        lines = _LINE_BREAK.split(buf)
        if lines[-1] == "":
            lines.pop()
        yield from lines


def parse_sse(lines: Iterable[str]) -> Iterator[Tuple[str, str]]:
    """Yield ``(event_name, data)`` for each complete frame in an SSE line stream."""
    name: Optional[str] = None
    data: List[str] = []
    for line in lines:
        if line is None:
            continue
        if isinstance(line, bytes):
            line = line.decode("utf-8")
        if line == "":
            if data:
                yield name or "message", "\n".join(data)
            name, data = None, []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "event":
            name = value
        elif field == "data":
            data.append(value)
    if data:
        yield name or "message", "\n".join(data)


class EventSubscription:
    """One SSE connection read on a background thread. Calling it unsubscribes.

    There is no reconnection: once the stream ends or fails, the subscription
    is over.
    """

    def __init__(
        self,
        session: requests.Session,
        url: str,
        on_event: Callable[[str, Dict[str, Any]], None],
        event_names: Iterable[str] = RELAYED_EVENTS,
    ):
        self.session = session
        self.url = url
        self.on_event = on_event
        self.event_names = frozenset(event_names)
        self._closed = threading.Event()
        self._response: Optional[requests.Response] = None
        self._thread = threading.Thread(target=self._run, name="crowdfund-sse", daemon=True)

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def start(self) -> "EventSubscription":
        self._thread.start()
        return self

    def join(self, timeout: Optional[float] = None) -> None:
        self._thread.join(timeout)

    def _run(self) -> None:
        try:
            with self.session.get(
                self.url, stream=True, headers={"Accept": "text/event-stream"}
            ) as resp:
                self._response = resp
                resp.raise_for_status()
                chunks = resp.iter_content(chunk_size=None)
                for name, data in parse_sse(iter_sse_lines(chunks)):
                    if self._closed.is_set():
                        break
                    if name in self.event_names:
                        self.on_event(name, json.loads(data))
        except Exception as exc:  # noqa: BLE001
            if not self._closed.is_set():
                log.error("SSE stream error: %s", exc)
        finally:
            self._closed.set()

    def close(self) -> None:
        self._closed.set()
        resp = self._response
        if resp is not None:
            resp.close()

    __call__ = close


# ---------------- facade ----------------

class CrowdfundClient:
    def __init__(
        self,
        wallet: Any,
        cfg: Optional[ContractConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        self.wallet = wallet
        self.cfg = cfg or ContractConfig.from_env()
        self.session = session or requests.Session()
        self.contract = Web3().eth.contract(
            address=Web3.to_checksum_address(self.cfg.contract_address), abi=CONTRACT_ABI
        )
        self._in_flight: set[str] = set()
        self._lock = threading.Lock()

    def _backend(self, path: str) -> str:
        return self.cfg.backend_url.rstrip("/") + path

    # --- wallet ---

    def _wallet_request(self, method: str, params: Any = None) -> Any:
        return self.wallet.request(method, params if params is not None else [])

    def ensure_network(self) -> None:
        """Switch the wallet to the configured chain, registering it first if unknown."""
        current = to_int(self._wallet_request("eth_chainId"))
        if current == self.cfg.chain_id:
            return
        log.info("Wallet on chain %s; switching to %s", current, self.cfg.chain_id)
        switch = [{"chainId": self.cfg.chain_id_hex}]
        try:
            self._wallet_request("wallet_switchEthereumChain", switch)
        except WalletRequestError as exc:
            if exc.code != UNRECOGNIZED_CHAIN:
                raise
            self._wallet_request("wallet_addEthereumChain", [self.cfg.add_chain_params()])
            self._wallet_request("wallet_switchEthereumChain", switch)

    def get_account(self) -> str:
        accounts = self._wallet_request("eth_requestAccounts")
        if not accounts:
            raise WalletRequestError(USER_REJECTED, "No wallet account available")
        return accounts[0]

    def wait_for_receipt(self, tx_hash: str) -> Dict[str, Any]:
        """Poll until the transaction is mined (one confirmation). No timeout."""
        while True:
            receipt = self._wallet_request("eth_getTransactionReceipt", [tx_hash])
            if receipt:
                return receipt
            time.sleep(self.cfg.receipt_poll_interval_sec)

    @contextmanager
    def _in_flight_guard(self, operation: str):
        with self._lock:
            if operation in self._in_flight:
                raise TransactionInFlightError(operation)
            self._in_flight.add(operation)
        try:
            yield
        finally:
            with self._lock:
                self._in_flight.discard(operation)

    def is_in_flight(self, operation: str) -> bool:
        with self._lock:
            return operation in self._in_flight

    def _send(self, account: str, fn_name: str, value_wei: int = 0) -> Dict[str, Any]:
        tx: Dict[str, Any] = {
            "from": account,
            "to": self.contract.address,
            "data": self.contract.encode_abi(fn_name),
        }
        if value_wei:
            tx["value"] = Web3.to_hex(value_wei)
        try:
            tx_hash = self._wallet_request("eth_sendTransaction", [tx])
        except WalletRequestError as exc:
            message = WRITE_ERROR_MESSAGES.get(exc.code)
            if message is None:
                raise
            raise WalletRequestError(exc.code, message) from exc
        log.info("%s submitted: %s", fn_name, tx_hash)
        receipt = self.wait_for_receipt(tx_hash)
        if receipt.get("status") is not None and to_int(receipt["status"]) == 0:
            raise TransactionFailedError(tx_hash, receipt)
        log.info("%s confirmed in block %s", fn_name, receipt.get("blockNumber"))
        return receipt

    def _record(self, receipt: Dict[str, Any], amount: str, wallet_address: str,
                campaign_id: str, tx_type: str) -> None:
        body = {
            "transactionHash": receipt.get("transactionHash"),
            "amount": amount,
            "walletAddress": wallet_address,
            "campaignId": campaign_id,
            "status": "completed",
            "transactionType": tx_type,
        }
        try:
            resp = self.session.post(self._backend(TX_RECORD_PATH), json=body)
            if not resp.ok:
                log.warning("Failed to record transaction: %s", resp.text)
        except requests.RequestException as exc:
            log.warning("Failed to record transaction: %s", exc)

    # --- writes ---

    def fund(self, amount_eth: str | Decimal) -> Dict[str, Any]:
        """Send ``amount_eth`` AVAX to ``fund()`` and return the mined receipt."""
        try:
            amount = Decimal(str(amount_eth))
        except InvalidOperation:
            raise ValueError("Please enter a valid funding amount greater than 0") from None
        if not amount.is_finite() or amount <= 0:
            raise ValueError("Please enter a valid funding amount greater than 0")
        value = Web3.to_wei(amount, "ether")
        if value == 0:
            raise ValueError("Funding amount is smaller than 1 wei")

        with self._in_flight_guard("fund"):
            self.ensure_network()
            account = self.get_account()
            balance = to_int(self._wallet_request("eth_getBalance", [account, "latest"]))
            if balance < value:
                raise InsufficientBalanceError(
                    f"Insufficient balance. Required: {format_ether(value)} {self.cfg.currency_symbol}, "
                    f"Available: {format_ether(balance)} {self.cfg.currency_symbol}"
                )
            receipt = self._send(account, "fund", value)
            self._record(receipt, str(amount), account, "contract-demo", "funding")
            return receipt

    def complete_milestone(self) -> Dict[str, Any]:
        with self._in_flight_guard("completeMilestone"):
            self.ensure_network()
            account = self.get_account()
            receipt = self._send(account, "completeMilestone")
            self._record(receipt, "0", account, "milestone-completion", "milestone")
            return receipt

    def refund(self) -> Dict[str, Any]:
        with self._in_flight_guard("refund"):
            self.ensure_network()
            account = self.get_account()
            contributed = self.get_backer_amount(account).get("amount")
            if not contributed or str(contributed) == "0":
                raise CrowdfundClientError(
                    "No contributions found to refund. You must contribute first before requesting a refund."
                )
            receipt = self._send(account, "refund")
            self._record(receipt, str(contributed), account, "refund-request", "refund")
            return receipt

    # --- reads (via backend) ---

    def _get_json(self, path: str) -> Dict[str, Any]:
        resp = self.session.get(self._backend(path))
        if not resp.ok:
            raise BackendError(f"GET {path} failed ({resp.status_code}): {resp.text}")
        return resp.json()

    def fetch_state(self) -> Dict[str, Any]:
        return self._get_json("/api/contract/state")

    def get_backer_amount(self, address: str) -> Dict[str, Any]:
        return self._get_json(f"/api/contract/backers/{address}")

    # --- events ---

    def subscribe_events(
        self,
        on_event: Callable[[str, Dict[str, Any]], None],
        event_names: Iterable[str] = RELAYED_EVENTS,
    ) -> EventSubscription:
        """Open one SSE stream; the returned subscription is the unsubscribe callable."""
        sub = EventSubscription(
            self.session, self._backend("/api/contract/events"), on_event, event_names
        )
        return sub.start()
