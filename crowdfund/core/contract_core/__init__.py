"""
contract_core – crowdfund contract relay
Reads the deployed crowdfunding contract, fans its events out to SSE clients,
and drives wallet-signed writes from the client side.
"""
__all__ = [
    "contract_config",
    "contract_abi",
    "contract_models",
    "chain_reader",
    "subscription_broker",
    "event_listener",
    "event_relay",
    "client_facade",
]
