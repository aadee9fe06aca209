import json

from crowdfund.core.contract_core.contract_abi import CONTRACT_ADDRESS
from crowdfund.core.contract_core.contract_config import (
    FUJI_EXPLORER_URL,
    FUJI_RPC_HTTP_URL,
    ContractConfig,
)

_ENV = (
    "CROWDFUND_CONFIG_PATH",
    "CROWDFUND_CHAIN_ID",
    "CROWDFUND_RPC_HTTP_URL",
    "CROWDFUND_RPC_WS_URL",
    "CROWDFUND_EXPLORER_URL",
    "CROWDFUND_CONTRACT_ADDRESS",
    "CROWDFUND_BACKEND_URL",
    "CROWDFUND_RECEIPT_POLL_SEC",
)


def _clean_env(monkeypatch, tmp_path):
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults_are_fuji(monkeypatch, tmp_path):
    _clean_env(monkeypatch, tmp_path)
    cfg = ContractConfig.from_env()
    assert cfg.chain_id == 43113
    assert cfg.chain_id_hex == "0xa869"
    assert cfg.rpc_http_url == FUJI_RPC_HTTP_URL
    assert cfg.contract_address == CONTRACT_ADDRESS
    assert cfg.source_json_path is None


def test_json_file_then_env_override(monkeypatch, tmp_path):
    _clean_env(monkeypatch, tmp_path)
    path = tmp_path / "cf.json"
    path.write_text(json.dumps({
        "network": {"rpc_http_url": "http://json-rpc:9650", "chain_id": 1337},
        "client": {"backend_url": "http://json-backend"},
    }))
    monkeypatch.setenv("CROWDFUND_CONFIG_PATH", str(path))
    monkeypatch.setenv("CROWDFUND_BACKEND_URL", "http://env-backend")

    cfg = ContractConfig.from_env()
    assert cfg.rpc_http_url == "http://json-rpc:9650"
    assert cfg.chain_id == 1337
    assert cfg.backend_url == "http://env-backend"
    assert cfg.source_json_path == str(path)


def test_malformed_json_falls_back_to_defaults(monkeypatch, tmp_path):
    _clean_env(monkeypatch, tmp_path)
    (tmp_path / "crowdfund_config.json").write_text("[1, 2")
    cfg = ContractConfig.from_env()
    assert cfg.chain_id == 43113


def test_add_chain_params():
    params = ContractConfig().add_chain_params()
    assert params["chainId"] == "0xa869"
    assert params["rpcUrls"] == [FUJI_RPC_HTTP_URL]
    assert params["blockExplorerUrls"] == [FUJI_EXPLORER_URL]
    assert params["nativeCurrency"] == {"name": "AVAX", "symbol": "AVAX", "decimals": 18}
