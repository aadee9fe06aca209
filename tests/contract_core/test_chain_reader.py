import asyncio

import pytest

BACKER = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


def test_state_snapshot_mirrors_view_calls(make_reader, state_values):
    reader = make_reader(state_values)
    state = asyncio.run(reader.get_state())

    assert state.to_dict() == {
        "creator": state_values["creator"],
        "deadline": state_values["deadline"],
        "fundingGoal": "1000000000000000000",
        "totalFunded": "250000000000000000",
        "contractBalance": "250000000000000000",
        "goalReached": False,
        "milestoneCount": 3,
        "milestonesCompleted": 0,
    }
    called = sorted(name for name, _ in reader.contract.functions.calls)
    assert called == sorted(state_values)


def test_any_failed_view_fails_the_snapshot(make_reader, state_values):
    state_values["milestoneCount"] = ConnectionError("rpc down")
    reader = make_reader(state_values)
    with pytest.raises(ConnectionError):
        asyncio.run(reader.get_state())


def test_backer_amount_echoes_address(make_reader, state_values):
    reader = make_reader(state_values, backers={BACKER: 42})
    result = asyncio.run(reader.get_backer_amount(BACKER.lower()))
    assert result.to_dict() == {"address": BACKER.lower(), "amount": "42"}
    assert reader.contract.functions.calls == [("backers", (BACKER,))]


def test_backer_amount_rejects_bad_address(make_reader, state_values):
    reader = make_reader(state_values)
    with pytest.raises(ValueError):
        asyncio.run(reader.get_backer_amount("not-an-address"))
