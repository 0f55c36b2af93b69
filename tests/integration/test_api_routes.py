# tests/integration/test_api_routes.py
import pytest
from fastapi.testclient import TestClient

from main import app
from app import container
from app.application.mint_use_case import MintProductUseCase, PinProductUseCase
from app.application.token_use_case import TokenLookupUseCase
from app.application.transfer_use_case import TransferOwnershipUseCase
from app.application.verify_use_case import VerifyTagUseCase
from app.infra.api import security
from app.infra.api.security import require_api_key

COLLECTION = "0.0.7001"
TREASURY = "0.0.5770350"
CID = "QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG"


@pytest.fixture
def client(ledger, store, fallback, audit, pinning, sessions):
    app.dependency_overrides[require_api_key] = lambda: None
    app.dependency_overrides[container.get_pin_uc] = lambda: PinProductUseCase(pinning, fallback)
    app.dependency_overrides[container.get_mint_uc] = lambda: MintProductUseCase(
        ledger, fallback, audit, COLLECTION, pinning)
    app.dependency_overrides[container.get_verify_uc] = lambda: VerifyTagUseCase(
        ledger, store, fallback, audit, COLLECTION, pinning, fuzzy_default=True)
    app.dependency_overrides[container.get_transfer_uc] = lambda: TransferOwnershipUseCase(
        ledger, audit, COLLECTION, TREASURY)
    app.dependency_overrides[container.get_token_uc] = lambda: TokenLookupUseCase(ledger)
    app.dependency_overrides[container.get_session_state] = lambda: sessions
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["timestamp"]


def test_mint_then_verify(client, store):
    store.docs[CID] = {"name": "Premium Leather Wallet", "nfcSerialId": "fgthbnm"}
    r = client.post("/mint", json={"tagId": "fgthbnm", "contentAddress": CID})
    assert r.status_code == 200, r.text
    assert r.json()["serialNumber"] == 1

    r = client.post("/verify", json={"tagId": "fgthbnm"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["token"]["serialNumber"] == 1
    assert body["record"]["name"] == "Premium Leather Wallet"
    assert body["matchedBy"] == "delimited"


def test_mint_accepts_legacy_field_names(client, ledger):
    r = client.post("/mint", json={"nfcSerialId": "fgthbnm", "ipfsCID": "QmAbc123"})
    assert r.status_code == 200, r.text
    assert ledger.tokens[0][1] == b"fgthbnm:QmAbc123"


def test_mint_missing_fields(client):
    r = client.post("/mint", json={"tagId": "fgthbnm"})
    assert r.status_code == 400
    assert r.json()["error"] == "ValidationError"


def test_mint_pointer_too_large(client, ledger):
    r = client.post("/mint", json={"tagId": "t" * 90, "contentAddress": "Q" * 46})
    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "PointerTooLarge"
    assert body["length"] == 137
    assert ledger.mint_calls == 0


def test_verify_unknown_tag(client):
    r = client.post("/verify", json={"tagId": "nope"})
    assert r.status_code == 404
    assert r.json()["error"] == "NotFound"


def test_pin(client):
    r = client.post("/pin", json={"tagId": "fgthbnm", "productData": {"name": "Wallet"}})
    assert r.status_code == 200, r.text
    assert r.json()["contentAddress"] == "QmFake1"
    assert r.json()["gatewayUrl"].endswith("QmFake1")


def test_transfer_requires_session(client):
    r = client.post("/transfer", json={"serialNumber": 1})
    assert r.status_code == 401
    assert r.json()["error"] == "SessionRequired"


def test_session_verify_and_transfer(client, ledger, sessions):
    ledger.add(f"fgthbnm:{CID}")
    r = client.post("/session", json={"accountId": "0.0.789012"})
    assert r.status_code == 200, r.text
    sid = r.json()["sessionId"]
    assert client.get(f"/session/{sid}").json()["accountId"] == "0.0.789012"

    r = client.post("/verify", json={"tagId": "fgthbnm"}, headers={"X-Session-Id": sid})
    assert r.status_code == 200
    assert r.json()["documentUnreachable"] is True

    snap = client.get(f"/session/{sid}").json()
    assert snap["lastVerification"]["tagId"] == "fgthbnm"
    assert snap["recentScans"][0]["serial_number"] == 1

    r = client.post("/transfer", json={"serialNumber": 1}, headers={"X-Session-Id": sid})
    assert r.status_code == 200, r.text
    assert r.json()["newOwner"] == "0.0.789012"
    assert ledger.transfers == [(COLLECTION, 1, TREASURY, "0.0.789012")]


def test_session_rejects_bad_account(client):
    r = client.post("/session", json={"accountId": "alice"})
    assert r.status_code == 400


def test_unknown_session(client):
    assert client.get("/session/nope").status_code == 404


def test_token_routes(client, ledger):
    ledger.add("fgthbnm:QmAbc123")
    r = client.get(f"/token/{COLLECTION}/1")
    assert r.status_code == 200
    assert r.json()["decodedMetadata"] == "fgthbnm:QmAbc123"
    assert client.get(f"/token/{COLLECTION}/2").status_code == 404
    assert client.get(f"/token/{COLLECTION}/1/history").json()["history"] == []


def test_write_routes_need_api_key(client, monkeypatch):
    del app.dependency_overrides[require_api_key]
    monkeypatch.setattr(security, "REQUIRE_API_KEY", True)
    monkeypatch.setattr(security, "SERVICE_API_KEY", "secret")
    assert client.post("/mint", json={"tagId": "a", "contentAddress": "b"}).status_code == 401
    ok = client.post("/mint", json={"tagId": "a", "contentAddress": "QmAbc123"}, headers={"X-Api-Key": "secret"})
    assert ok.status_code == 200
    # read routes stay public
    assert client.post("/verify", json={"tagId": "a"}).status_code == 200
