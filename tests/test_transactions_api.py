from fastapi import FastAPI
from fastapi.testclient import TestClient

from crowdfund.routes.transactions_api import get_app_locker, router

WALLET = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


def make_client(dl) -> TestClient:
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_app_locker] = lambda: dl
    return TestClient(app)


def _body(tx_hash, **extra):
    body = {
        "transactionHash": tx_hash,
        "amount": "0.25",
        "walletAddress": WALLET,
        "campaignId": "contract-demo",
        "status": "completed",
        "transactionType": "funding",
    }
    body.update(extra)
    return body


def test_record_and_list(dl_tmp):
    client = make_client(dl_tmp)
    resp = client.post("/api/public/transactions/avalanche", json=_body("0x" + "aa" * 32))
    assert resp.status_code == 201
    data = resp.json()
    assert data["transactionHash"] == "0x" + "aa" * 32
    assert data["transactionType"] == "funding"
    assert data["id"]

    client.post(
        "/api/public/transactions/avalanche",
        json=_body("0x" + "bb" * 32, walletAddress="0xfB6916095ca1df60bB79Ce92cE3Ea74c37c5d359",
                   transactionType="refund"),
    )

    resp = client.get("/api/transactions")
    assert resp.status_code == 200
    assert len(resp.json()) == 2

    resp = client.get("/api/transactions", params={"wallet": WALLET.lower()})
    rows = resp.json()
    assert [r["transactionHash"] for r in rows] == ["0x" + "aa" * 32]


def test_duplicate_hash_is_idempotent(dl_tmp):
    client = make_client(dl_tmp)
    first = client.post("/api/public/transactions/avalanche", json=_body("0x" + "cc" * 32)).json()
    second = client.post("/api/public/transactions/avalanche", json=_body("0x" + "CC" * 32)).json()
    assert first["id"] == second["id"]
    assert len(dl_tmp.transactions.list_transactions()) == 1


def test_invalid_hash_rejected(dl_tmp):
    client = make_client(dl_tmp)
    resp = client.post("/api/public/transactions/avalanche", json=_body("0x1234"))
    assert resp.status_code == 422


def test_limit(dl_tmp):
    client = make_client(dl_tmp)
    for i in range(3):
        client.post("/api/public/transactions/avalanche", json=_body("0x" + f"{i:02x}" * 32))
    assert len(client.get("/api/transactions", params={"limit": 2}).json()) == 2
