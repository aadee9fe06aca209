from crowdfund.core.contract_core.console.menu_console import state_table
from crowdfund.core.contract_core.contract_config import ContractConfig


def test_state_table_rows():
    state = {
        "creator": "0xabc",
        "deadline": 1767225600,
        "fundingGoal": "1000000000000000000",
        "totalFunded": "250000000000000000",
        "contractBalance": "250000000000000000",
        "goalReached": False,
        "milestoneCount": 3,
        "milestonesCompleted": 1,
    }
    table = state_table(state, ContractConfig())
    assert table.row_count == 7
    assert list(table.columns[1].cells)[2] == "1.0 AVAX"
    assert list(table.columns[1].cells)[6] == "1/3"
