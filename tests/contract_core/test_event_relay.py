import asyncio
import json

from sse_starlette.sse import ServerSentEvent

from crowdfund.core.contract_core.client_facade import parse_sse
from crowdfund.core.contract_core.contract_models import ContractEvent
from crowdfund.core.contract_core.event_relay import format_sse, relay_events
from crowdfund.core.contract_core.subscription_broker import SubscriptionBroker

BACKER = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


def _funded(amount):
    return ContractEvent("Funded", {"backer": BACKER, "amount": amount})


async def _next(gen):
    return await gen.__anext__()


def test_format_sse_frame():
    frame = format_sse(_funded(10**18))
    assert frame["event"] == "Funded"
    assert json.loads(frame["data"]) == {
        "backer": BACKER,
        "amount": "1000000000000000000",
        "amountEth": "1.0",
    }


def test_wire_frame_is_named_event():
    raw = ServerSentEvent(**format_sse(_funded(25 * 10**16))).encode()
    frames = list(parse_sse(raw.decode("utf-8").splitlines()))
    assert len(frames) == 1
    name, data = frames[0]
    assert name == "Funded"
    assert json.loads(data)["amountEth"] == "0.25"


def test_relay_delivers_in_order_and_isolates_disconnects():
    async def scenario():
        broker = SubscriptionBroker()
        a = relay_events(broker, connection_id="a")
        b = relay_events(broker, connection_id="b")

        next_a = asyncio.ensure_future(_next(a))
        next_b = asyncio.ensure_future(_next(b))
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert broker.connection_count() == 2

        assert broker.publish(_funded(1)) == 2
        frame_a = await asyncio.wait_for(next_a, 1)
        frame_b = await asyncio.wait_for(next_b, 1)
        assert frame_a["event"] == frame_b["event"] == "Funded"
        assert json.loads(frame_a["data"])["amount"] == "1"

        # client a disconnects
        await a.aclose()
        assert not broker.is_subscribed("a")
        assert broker.is_subscribed("b")

        next_b = asyncio.ensure_future(_next(b))
        await asyncio.sleep(0)
        assert broker.publish(_funded(2)) == 1
        assert broker.publish(ContractEvent("MilestoneCompleted", {"milestoneIndex": 0, "payout": 3})) == 1
        frame = await asyncio.wait_for(next_b, 1)
        assert json.loads(frame["data"])["amount"] == "2"
        frame = await asyncio.wait_for(_next(b), 1)
        assert frame["event"] == "MilestoneCompleted"
        assert json.loads(frame["data"]) == {"milestoneIndex": 0, "payout": "3", "payoutEth": "0.000000000000000003"}

        await b.aclose()
        assert broker.connection_count() == 0

    asyncio.run(scenario())
