from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from web3 import AsyncHTTPProvider, AsyncWeb3

from .contract_abi import CONTRACT_ABI
from .contract_config import ContractConfig
from .contract_models import BackerAmount, ContractState

log = logging.getLogger(__name__)


class ChainReader:
    """Read-only view calls against the crowdfund contract over JSON-RPC HTTP.

    Nothing is cached: every call is a fresh round trip to the node.
    """

    def __init__(self, cfg: ContractConfig, contract: Optional[Any] = None):
        self.cfg = cfg
        if contract is None:
            w3 = AsyncWeb3(AsyncHTTPProvider(cfg.rpc_http_url))
            contract = w3.eth.contract(
                address=AsyncWeb3.to_checksum_address(cfg.contract_address),
                abi=CONTRACT_ABI,
            )
        self.contract = contract

    async def get_state(self) -> ContractState:
        """Issue the eight state views concurrently; any failure fails the snapshot."""
        fn = self.contract.functions
        (
            creator,
            deadline,
            funding_goal,
            total_funded,
            contract_balance,
            goal_reached,
            milestone_count,
            milestones_completed,
        ) = await asyncio.gather(
            fn.creator().call(),
            fn.deadline().call(),
            fn.fundingGoal().call(),
            fn.totalFunded().call(),
            fn.getContractBalance().call(),
            fn.goalReached().call(),
            fn.milestoneCount().call(),
            fn.milestonesCompleted().call(),
        )
        return ContractState(
            creator=creator,
            deadline=int(deadline),
            funding_goal=int(funding_goal),
            total_funded=int(total_funded),
            contract_balance=int(contract_balance),
            goal_reached=bool(goal_reached),
            milestone_count=int(milestone_count),
            milestones_completed=int(milestones_completed),
        )

    async def get_backer_amount(self, address: str) -> BackerAmount:
        """Ledgered contribution of ``address``; the address is echoed back as given."""
        checksum = AsyncWeb3.to_checksum_address(address)
        amount = await self.contract.functions.backers(checksum).call()
        return BackerAmount(address=address, amount=int(amount))
