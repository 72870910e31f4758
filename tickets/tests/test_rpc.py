from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tickets.commit_reveal import batch_commitment_hash, commitment_hash
from tickets.rpc import mount_tickets_rpc
from tickets.utils.bytes import to_hex

SEED_A = bytes([0x11]) * 32
SEED_B = bytes([0x22]) * 32


@pytest.fixture
def client(sale) -> TestClient:
    app = FastAPI()
    mount_tickets_rpc(app, sale)
    return TestClient(app)


def test_tier_reads(client):
    r = client.get("/tickets/tiers/GA/price")
    assert r.status_code == 200
    assert r.json() == {
        "tier_key": "GA",
        "demand_price": 100,
        "multiplier": 10000,
        "price": 100,
        "source": "neutral",
    }
    assert client.get("/tickets/tiers").json()["GA"]["max_supply"] == 10
    assert client.get("/tickets/summary").json()["initialized"] is True
    assert client.get("/tickets/pricing").json()["is_frozen"] is False


def test_business_errors_map_to_status(client):
    r = client.get("/tickets/tiers/NOPE/price")
    assert r.status_code == 404
    assert r.json()["code"] == "tier_not_found"
    assert client.get("/tickets/tickets/42").status_code == 404


def test_ticket_reads(client, sale, signers):
    signers.sign("alice")
    sale.purchase("alice", "USDC", "GA")
    body = client.get("/tickets/tickets/1").json()
    assert (body["owner"], body["price_paid"], body["is_valid"]) == ("alice", 100, True)
    assert client.get("/tickets/tickets/1/valid").json() == {"token_id": 1, "valid": True}
    assert client.get("/tickets/tickets/2/valid").json() == {"token_id": 2, "valid": False}


def test_commit_and_verify(client):
    r = client.post("/tickets/commitments", json={"seed": to_hex(SEED_A), "nonce": 7, "committer": "alice"})
    assert r.status_code == 200
    body = r.json()
    assert body["hash"] == to_hex(commitment_hash(SEED_A, 7))
    assert body["commitment"]["committed_at"] == 1_000
    assert body["commitment"]["revealed"] is False

    v = client.post(
        "/tickets/commitments/verify",
        json={
            "commitment": body["hash"],
            "reveal": {"seed": to_hex(SEED_A), "nonce": 7, "revealed_at": 50},
            "min_time": 0,
            "max_time": 100,
        },
    ).json()
    assert v == {"valid": True, "timely": True}

    v = client.post(
        "/tickets/commitments/verify",
        json={"commitment": body["hash"], "reveal": {"seed": to_hex(SEED_A), "nonce": 8}},
    ).json()
    assert v == {"valid": False, "timely": None}


def test_chained_commit_has_no_record(client):
    r = client.post(
        "/tickets/commitments",
        json={"seed": to_hex(SEED_A), "nonce": 1, "previous_hash": to_hex(SEED_B)},
    )
    assert r.status_code == 200
    assert r.json()["commitment"] is None
    assert r.json()["hash"] != to_hex(commitment_hash(SEED_A, 1))


def test_batch_endpoints(client):
    h = client.post("/tickets/commitments/batch-hash", json={"seeds": [to_hex(SEED_A), to_hex(SEED_B)]})
    assert h.json()["hash"] == to_hex(batch_commitment_hash([SEED_A, SEED_B]))

    commitments = [to_hex(commitment_hash(SEED_A, 1)), to_hex(commitment_hash(SEED_B, 2))]
    reveals = [{"seed": to_hex(SEED_A), "nonce": 1}, {"seed": to_hex(SEED_B), "nonce": 2}]
    ok = client.post("/tickets/commitments/batch-verify", json={"commitments": commitments, "reveals": reveals})
    assert ok.json()["valid"] is True
    short = client.post(
        "/tickets/commitments/batch-verify", json={"commitments": commitments, "reveals": reveals[:1]}
    )
    assert short.json()["valid"] is False


@pytest.mark.parametrize(
    "payload",
    [
        {"seed": "0x1234", "nonce": 1},
        {"seed": "11" * 32, "nonce": 1},
        {"seed": to_hex(SEED_A), "nonce": -1},
        {"seed": to_hex(SEED_A), "nonce": 2**32},
    ],
)
def test_malformed_commit_requests_are_rejected(client, payload):
    assert client.post("/tickets/commitments", json=payload).status_code == 422


@pytest.mark.parametrize("path", ["/tickets/tickets/-1", "/tickets/tickets/-1/valid", "/tickets/tickets/4294967296/valid"])
def test_out_of_range_token_ids_are_rejected(client, path):
    assert client.get(path).status_code == 422
