import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from crowdfund.core.contract_core.chain_reader import ChainReader
from crowdfund.core.contract_core.contract_config import ContractConfig
from crowdfund.data.data_locker import DataLocker

BACKER = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"
CREATOR = "0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359"


class _Call:
    def __init__(self, value):
        self.value = value

    async def call(self):
        if isinstance(self.value, Exception):
            raise self.value
        return self.value


class FakeFunctions:
    """Stand-in for ``contract.functions`` returning canned view results."""

    def __init__(self, values, backers=None):
        self.values = values
        self.backers_ledger = backers or {}
        self.calls = []

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)

        def _fn(*args):
            self.calls.append((name, args))
            if name == "backers":
                return _Call(self.backers_ledger.get(args[0], 0))
            return _Call(self.values[name])

        return _fn


class FakeContract:
    def __init__(self, values, backers=None):
        self.functions = FakeFunctions(values, backers)


@pytest.fixture
def state_values():
    return {
        "creator": CREATOR,
        "deadline": 1767225600,
        "fundingGoal": 10**18,
        "totalFunded": 25 * 10**16,
        "getContractBalance": 25 * 10**16,
        "goalReached": False,
        "milestoneCount": 3,
        "milestonesCompleted": 0,
    }


@pytest.fixture
def make_reader():
    def _make(values, backers=None):
        return ChainReader(ContractConfig(), contract=FakeContract(values, backers))
    return _make


@pytest.fixture(autouse=True)
def _no_chain_listener(monkeypatch):
    monkeypatch.setenv("CROWDFUND_DISABLE_LISTENER", "1")


@pytest.fixture(scope="function")
def dl_tmp(tmp_path):
    dl = DataLocker(str(tmp_path / "crowdfund.db"))
    yield dl
    dl.close()
