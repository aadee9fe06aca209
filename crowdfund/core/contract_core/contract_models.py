from __future__ import annotations

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Optional

from crowdfund.core.constants import WEI_PER_ETHER

from .contract_abi import FUNDED, MILESTONE_COMPLETED, REFUNDED


def format_ether(wei: int) -> str:
    """Exact wei → ether decimal string, always with a fractional part ("1.0", "0.25")."""
    wei = int(wei)
    sign = "-" if wei < 0 else ""
    whole, frac = divmod(abs(wei), WEI_PER_ETHER)
    frac_str = str(frac).rjust(18, "0").rstrip("0") or "0"
    return f"{sign}{whole}.{frac_str}"


def to_int(value: Any) -> Optional[int]:
    """JSON-RPC quantity (``"0x.."`` hex, decimal string or int) as an int."""
    if value is None:
        return None
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    return int(value)


@dataclass
class ContractState:
    creator: str
    deadline: int
    funding_goal: int
    total_funded: int
    contract_balance: int
    goal_reached: bool
    milestone_count: int
    milestones_completed: int

    def to_dict(self) -> Dict[str, Any]:
        # wei amounts travel as decimal strings; JSON numbers lose precision past 2**53
        return {
            "creator": self.creator,
            "deadline": int(self.deadline),
            "fundingGoal": str(self.funding_goal),
            "totalFunded": str(self.total_funded),
            "contractBalance": str(self.contract_balance),
            "goalReached": bool(self.goal_reached),
            "milestoneCount": int(self.milestone_count),
            "milestonesCompleted": int(self.milestones_completed),
        }


@dataclass
class BackerAmount:
    address: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "amount": str(self.amount)}


@dataclass
class ContractEvent:
    """One decoded contract log, as handed to the subscription broker."""

    name: str
    args: Dict[str, Any] = field(default_factory=dict)
    tx_hash: Optional[str] = None
    block_number: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        """Data object of the SSE frame for this event."""
        if self.name in (FUNDED, REFUNDED):
            amount = int(self.args["amount"])
            return {
                "backer": self.args["backer"],
                "amount": str(amount),
                "amountEth": format_ether(amount),
            }
        if self.name == MILESTONE_COMPLETED:
            payout = int(self.args["payout"])
            return {
                "milestoneIndex": int(self.args["milestoneIndex"]),
                "payout": str(payout),
                "payoutEth": format_ether(payout),
            }
        raise ValueError(f"Unsupported contract event: {self.name}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
