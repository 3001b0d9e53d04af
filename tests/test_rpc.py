import pytest
from fastapi.testclient import TestClient
from autostake.rpc import api

from conftest import E, T0, account


@pytest.fixture
def client(runtime):
    api.runtime = runtime
    yield TestClient(api.app)
    api.runtime = None


@pytest.fixture
def created(client, factory, deployer, fee_collector):
    resp = client.post(f"/factory/{factory.address}/tokens", json={
        "salt": "0x" + "00" * 31 + "01",
        "name": "Auto-stake Token",
        "symbol": "AST",
        "fee_collector": fee_collector,
        "caller": deployer,
        "fee_bps": 0,
        "initial_supply": 6_000 * E,
    })
    assert resp.status_code == 200
    return resp.json()


def test_status(client, factory, reward_token):
    resp = client.get("/status")
    assert resp.status_code == 200
    data = resp.json()
    assert data["network"] == "devnet"
    assert data["factories"] == [factory.address]
    assert data["reward_tokens"] == [reward_token.address]


def test_not_initialized():
    api.runtime = None
    client = TestClient(api.app)
    assert client.get("/status").status_code == 503


def test_predict_then_create(client, factory, created):
    resp = client.get(f"/factory/{factory.address}/predict/{created['salt']}")
    assert resp.status_code == 200
    assert resp.json()["predicted_address"] == created["deployed_address"]
    assert created["deployed_address"] == created["predicted_address"]

    records = client.get(f"/factory/{factory.address}/tokens").json()["records"]
    assert [r["deployed_address"] for r in records] == [created["deployed_address"]]


def test_duplicate_salt_conflict(client, factory, created, deployer, fee_collector):
    resp = client.post(f"/factory/{factory.address}/tokens", json={
        "salt": created["salt"],
        "name": "Again",
        "symbol": "AGN",
        "fee_collector": fee_collector,
        "caller": deployer,
    })
    assert resp.status_code == 409
    assert resp.json()["detail"]["error"] == "DUPLICATE_SALT"


def test_unknown_contract(client):
    assert client.get(f"/token/{account('nothing')}").status_code == 404
    assert client.get(f"/factory/{account('nothing')}/tokens").status_code == 404


def test_transfer_and_balance(client, created, deployer):
    token = created["deployed_address"]
    alice = account("alice")

    resp = client.post(f"/token/{token}/transfer", json={
        "sender": deployer, "recipient": alice, "amount": 1_000 * E,
    })
    assert resp.status_code == 200

    assert client.get(f"/token/{token}/balance/{alice}").json()["balance"] == str(1_000 * E)

    resp = client.post(f"/token/{token}/transfer", json={
        "sender": alice, "recipient": deployer, "amount": 2_000 * E,
    })
    assert resp.status_code == 400
    assert resp.json()["detail"]["error"] == "INSUFFICIENT_BALANCE"


def test_reward_flow(client, clock, created, reward_token, deployer):
    token = created["deployed_address"]
    alice = account("alice")
    client.post(f"/token/{token}/transfer", json={"sender": deployer, "recipient": alice, "amount": 1_000 * E})
    client.post(f"/token/{reward_token.address}/transfer",
                json={"sender": deployer, "recipient": token, "amount": 10**24})

    resp = client.post(f"/token/{token}/schedule", json={
        "start": T0, "end": T0 + 86_400, "rate_per_second": 1_000_000, "caller": alice,
    })
    assert resp.status_code == 403

    assert client.post(f"/token/{token}/reward-asset",
                       json={"asset": reward_token.address, "caller": deployer}).status_code == 200
    resp = client.post(f"/token/{token}/schedule", json={
        "start": T0, "end": T0 + 86_400, "rate_per_second": 1_000_000, "caller": deployer,
    })
    assert resp.status_code == 200
    assert resp.json()["schedule"]["rate_per_second"] == 1_000_000

    info = client.get(f"/token/{token}").json()
    assert info["reward_asset"] == reward_token.address
    assert info["reward_status"] == "active"

    clock.set(T0 + 86_400)
    assert client.get(f"/token/{token}/earned/{alice}").json()["earned"] == str(14_400_000_000)

    resp = client.post(f"/token/{token}/claim", json={"account": alice})
    assert resp.status_code == 200
    assert resp.json()["amount"] == str(14_400_000_000)
    assert client.get(f"/token/{reward_token.address}/balance/{alice}").json()["balance"] == str(14_400_000_000)


def test_invalid_schedule_is_bad_request(client, created, deployer):
    resp = client.post(f"/token/{created['deployed_address']}/schedule", json={
        "start": T0 + 10, "end": T0, "rate_per_second": 1, "caller": deployer,
    })
    assert resp.status_code == 400
    assert resp.json()["detail"]["error"] == "INVALID_SCHEDULE"


def test_events_endpoint(client, created, factory):
    data = client.get("/events", params={"event": "TokenCreated"}).json()
    assert len(data["events"]) == 1
    ev = data["events"][0]
    assert ev["address"] == factory.address
    assert ev["args"]["deployed_address"] == created["deployed_address"]

    assert client.get("/events", params={"event": "Bogus"}).status_code == 400


def test_metrics_endpoint(client, created):
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "autostake_tokens_created_total" in resp.text
