from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .contract_abi import CONTRACT_ADDRESS

log = logging.getLogger(__name__)

FUJI_CHAIN_ID = 43113
FUJI_CHAIN_NAME = "Avalanche Fuji"
FUJI_RPC_HTTP_URL = "https://api.avax-test.network/ext/bc/C/rpc"
FUJI_RPC_WS_URL = "wss://api.avax-test.network/ext/bc/C/ws"
FUJI_EXPLORER_URL = "https://testnet.snowtrace.io/"


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    return v if (v is not None and v.strip() != "") else default


def _first_existing(paths: list[str | Path | None]) -> Optional[Path]:
    for p in paths:
        if not p:
            continue
        path = Path(p)
        if path.is_file():
            return path
    return None


def _load_json_config() -> tuple[Dict[str, Any], Optional[str]]:
    """
    Search order:
      1) CROWDFUND_CONFIG_PATH (env)
      2) ./config/crowdfund_config.json
      3) ./crowdfund_config.json
    Returns (config_dict, path_str|None)
    """
    candidates: list[str | Path | None] = [
        _env("CROWDFUND_CONFIG_PATH"),
        Path("config") / "crowdfund_config.json",
        Path("crowdfund_config.json"),
    ]
    path = _first_existing(candidates)
    if not path:
        return {}, None

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("root JSON must be an object")
        return data, str(path)
    except Exception as e:  # noqa: BLE001
        log.warning("Failed to load crowdfund JSON config at %s: %s", path, e)
        return {}, str(path)


@dataclass(frozen=True)
class ContractConfig:
    """Runtime config for the crowdfund contract relay (Fuji by default)."""

    # -- Network --
    chain_id: int = FUJI_CHAIN_ID
    chain_name: str = FUJI_CHAIN_NAME
    rpc_http_url: str = FUJI_RPC_HTTP_URL
    rpc_ws_url: str = FUJI_RPC_WS_URL
    explorer_url: str = FUJI_EXPLORER_URL
    currency_name: str = "AVAX"
    currency_symbol: str = "AVAX"
    currency_decimals: int = 18

    # -- Contract --
    contract_address: str = CONTRACT_ADDRESS

    # -- Client side --
    backend_url: str = "http://127.0.0.1:5000"
    receipt_poll_interval_sec: float = 1.0

    # -- Debug --
    source_json_path: Optional[str] = None

    @property
    def chain_id_hex(self) -> str:
        return hex(self.chain_id)

    def add_chain_params(self) -> Dict[str, Any]:
        """Parameters for ``wallet_addEthereumChain``."""
        return {
            "chainId": self.chain_id_hex,
            "chainName": self.chain_name,
            "nativeCurrency": {
                "name": self.currency_name,
                "symbol": self.currency_symbol,
                "decimals": self.currency_decimals,
            },
            "rpcUrls": [self.rpc_http_url],
            "blockExplorerUrls": [self.explorer_url],
        }

    def to_public_dict(self) -> Dict[str, Any]:
        return {
            "chainId": self.chain_id,
            "chainIdHex": self.chain_id_hex,
            "chainName": self.chain_name,
            "rpcUrl": self.rpc_http_url,
            "explorerUrl": self.explorer_url,
            "contractAddress": self.contract_address,
            "nativeCurrency": {
                "name": self.currency_name,
                "symbol": self.currency_symbol,
                "decimals": self.currency_decimals,
            },
        }

    @staticmethod
    def from_env() -> "ContractConfig":
        """
        Layering (highest → lowest):
          1) Process env vars
          2) crowdfund_config.json (see search order above)
          3) Fuji defaults
        JSON shape (example):
        {
          "network": {
            "chain_id": 43113,
            "name": "Avalanche Fuji",
            "rpc_http_url": "https://api.avax-test.network/ext/bc/C/rpc",
            "rpc_ws_url": "wss://api.avax-test.network/ext/bc/C/ws",
            "explorer_url": "https://testnet.snowtrace.io/"
          },
          "contract": {"address": "0x..."},
          "client": {"backend_url": "http://127.0.0.1:5000", "receipt_poll_sec": 1.0}
        }
        """
        jcfg, jpath = _load_json_config()
        net = jcfg.get("network", {}) if isinstance(jcfg.get("network", {}), dict) else {}
        con = jcfg.get("contract", {}) if isinstance(jcfg.get("contract", {}), dict) else {}
        cli = jcfg.get("client", {}) if isinstance(jcfg.get("client", {}), dict) else {}

        chain_id = int(_env("CROWDFUND_CHAIN_ID", str(net.get("chain_id", FUJI_CHAIN_ID))))
        poll = float(_env("CROWDFUND_RECEIPT_POLL_SEC", str(cli.get("receipt_poll_sec", 1.0))))

        return ContractConfig(
            chain_id=chain_id,
            chain_name=net.get("name") or FUJI_CHAIN_NAME,
            rpc_http_url=_env("CROWDFUND_RPC_HTTP_URL", net.get("rpc_http_url") or FUJI_RPC_HTTP_URL),
            rpc_ws_url=_env("CROWDFUND_RPC_WS_URL", net.get("rpc_ws_url") or FUJI_RPC_WS_URL),
            explorer_url=_env("CROWDFUND_EXPLORER_URL", net.get("explorer_url") or FUJI_EXPLORER_URL),
            contract_address=_env("CROWDFUND_CONTRACT_ADDRESS", con.get("address") or CONTRACT_ADDRESS),
            backend_url=_env("CROWDFUND_BACKEND_URL", cli.get("backend_url") or "http://127.0.0.1:5000"),
            receipt_poll_interval_sec=poll,
            source_json_path=jpath,
        )
