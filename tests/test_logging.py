import logging

from crowdfund.core.logging import configure_console_log, log


def test_explorer_link_for_transaction(caplog):
    caplog.set_level(logging.INFO, logger="crowdfund")
    tx = "0x" + "ab" * 32
    url = log.print_explorer_link("https://testnet.snowtrace.io/", "tx", tx, source="Client")
    assert url == f"https://testnet.snowtrace.io/tx/{tx}"
    assert caplog.records[-1].getMessage() == f"[Client] 🔗 Explorer: {url}"


def test_banner_and_payload_formatting(caplog):
    caplog.set_level(logging.INFO, logger="crowdfund")
    log.banner("Relay ready", source="App", payload={"connections": 0})
    assert caplog.records[-1].getMessage() == "[App] ==== Relay ready ==== {'connections': 0}"


def test_debug_level_reaches_module_loggers():
    configure_console_log(debug=True)
    try:
        child = logging.getLogger("crowdfund.core.contract_core.event_listener")
        assert child.getEffectiveLevel() == logging.DEBUG
    finally:
        configure_console_log(debug=False)
    assert logging.getLogger("crowdfund").level == logging.INFO
