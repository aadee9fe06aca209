"""ABI and address of the deployed crowdfunding contract on Avalanche Fuji."""

from __future__ import annotations

from typing import Any, Dict, List

CONTRACT_ADDRESS = "0xd98bCbD04e6653960c29b8FEACDB30Da91122999"

FUNDED = "Funded"
REFUNDED = "Refunded"
MILESTONE_COMPLETED = "MilestoneCompleted"

# Events re-published to SSE clients, in subscription order.
RELAYED_EVENTS = (FUNDED, REFUNDED, MILESTONE_COMPLETED)


def _view(name: str, out_type: str, inputs: List[Dict[str, Any]] | None = None) -> Dict[str, Any]:
    return {
        "inputs": inputs or [],
        "name": name,
        "outputs": [{"internalType": out_type, "name": "", "type": out_type}],
        "stateMutability": "view",
        "type": "function",
    }


def _backer_event(name: str) -> Dict[str, Any]:
    return {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "address", "name": "backer", "type": "address"},
            {"indexed": False, "internalType": "uint256", "name": "amount", "type": "uint256"},
        ],
        "name": name,
        "type": "event",
    }


CONTRACT_ABI: List[Dict[str, Any]] = [
    {"inputs": [], "name": "completeMilestone", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
    {"inputs": [], "name": "fund", "outputs": [], "stateMutability": "payable", "type": "function"},
    {"inputs": [], "name": "refund", "outputs": [], "stateMutability": "nonpayable", "type": "function"},
    {
        "inputs": [
            {"internalType": "uint256", "name": "_goal", "type": "uint256"},
            {"internalType": "uint256", "name": "_durationInDays", "type": "uint256"},
        ],
        "stateMutability": "nonpayable",
        "type": "constructor",
    },
    _backer_event(FUNDED),
    _backer_event(REFUNDED),
    {
        "anonymous": False,
        "inputs": [
            {"indexed": False, "internalType": "uint256", "name": "milestoneIndex", "type": "uint256"},
            {"indexed": False, "internalType": "uint256", "name": "payout", "type": "uint256"},
        ],
        "name": MILESTONE_COMPLETED,
        "type": "event",
    },
    {"stateMutability": "payable", "type": "receive"},
    _view("backers", "uint256", [{"internalType": "address", "name": "", "type": "address"}]),
    _view("creator", "address"),
    _view("deadline", "uint256"),
    _view("fundingGoal", "uint256"),
    _view("getContractBalance", "uint256"),
    _view("getMilestonesCompleted", "uint256"),
    _view("goalReached", "bool"),
    _view("milestoneCount", "uint256"),
    _view("milestonesCompleted", "uint256"),
    _view("totalFunded", "uint256"),
]
