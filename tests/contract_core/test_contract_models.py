import pytest

from crowdfund.core.contract_core.contract_models import (
    BackerAmount,
    ContractEvent,
    ContractState,
    format_ether,
    to_int,
)

BACKER = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


@pytest.mark.parametrize(
    "wei,expected",
    [
        (0, "0.0"),
        (10**18, "1.0"),
        (25 * 10**16, "0.25"),
        (1, "0.000000000000000001"),
        (123456789 * 10**18 + 5, "123456789.000000000000000005"),
        (-(10**18), "-1.0"),
    ],
)
def test_format_ether_is_exact(wei, expected):
    assert format_ether(wei) == expected


def test_state_to_dict_uses_decimal_strings_for_wei():
    big = 2**200
    state = ContractState(
        creator="0xabc",
        deadline=1767225600,
        funding_goal=big,
        total_funded=5,
        contract_balance=4,
        goal_reached=False,
        milestone_count=3,
        milestones_completed=1,
    )
    data = state.to_dict()
    assert data == {
        "creator": "0xabc",
        "deadline": 1767225600,
        "fundingGoal": str(big),
        "totalFunded": "5",
        "contractBalance": "4",
        "goalReached": False,
        "milestoneCount": 3,
        "milestonesCompleted": 1,
    }


def test_backer_amount_to_dict():
    assert BackerAmount(BACKER, 7).to_dict() == {"address": BACKER, "amount": "7"}


def test_funded_and_refunded_payloads():
    for name in ("Funded", "Refunded"):
        payload = ContractEvent(name, {"backer": BACKER, "amount": 25 * 10**16}).to_payload()
        assert payload == {"backer": BACKER, "amount": "250000000000000000", "amountEth": "0.25"}


def test_milestone_payload():
    payload = ContractEvent("MilestoneCompleted", {"milestoneIndex": 2, "payout": 10**18}).to_payload()
    assert payload == {"milestoneIndex": 2, "payout": "1000000000000000000", "payoutEth": "1.0"}


def test_unknown_event_payload_raises():
    with pytest.raises(ValueError):
        ContractEvent("Transfer", {}).to_payload()


@pytest.mark.parametrize("value, expected", [("0xa869", 43113), ("43113", 43113), (16, 16), (None, None)])
def test_to_int_reads_rpc_quantities(value, expected):
    assert to_int(value) == expected
