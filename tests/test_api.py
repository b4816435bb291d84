"""
Tests for the HTTP surface
"""
from contextlib import contextmanager

from sqlalchemy.exc import OperationalError


def test_health(client):
    """Health check reports table counts"""
    response = client.get("/")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["total_mappings"] == 3
    assert body["total_redemptions"] == 0


def test_lookup(client):
    """Known staff pass returns its mapping"""
    response = client.get("/lookup", params={"staff_pass_id": "STAFF_H123804820G"})
    assert response.status_code == 200
    body = response.json()
    assert body["staff_pass_id"] == "STAFF_H123804820G"
    assert body["team_name"] == "BASS"
    assert body["created_at"].startswith("2021-06-15T15:59:59")


def test_lookup_missing_param(client):
    """No staff_pass_id is a 400"""
    response = client.get("/lookup")
    assert response.status_code == 400
    assert "error" in response.json()

    response = client.get("/lookup", params={"staff_pass_id": ""})
    assert response.status_code == 400


def test_lookup_unknown(client):
    """Unknown staff pass is a 404 with an error body"""
    response = client.get("/lookup", params={"staff_pass_id": "NON_EXISTENT"})
    assert response.status_code == 404
    assert "NON_EXISTENT" in response.json()["error"]


def test_redemption_then_repeat(client):
    """First claim is 200, the team's second claim is 400 with the claim message"""
    response = client.post("/redemption", json={"staff_pass_id": "MANAGER_T999888420B"})
    assert response.status_code == 200
    body = response.json()
    assert body["team_name"] == "RUST"
    assert body["redeemed_by"] == "MANAGER_T999888420B"
    assert "redeemed_at" in body

    response = client.post("/redemption", json={"staff_pass_id": "BOSS_T000000001P"})
    assert response.status_code == 400
    error = response.json()["error"]
    assert error.startswith("MANAGER_T999888420B from team RUST has already claimed the gift on ")


def test_redemption_unknown_pass(client):
    """Unresolvable staff pass is a 404"""
    response = client.post("/redemption", json={"staff_pass_id": "NON_EXISTENT"})
    assert response.status_code == 404
    assert "error" in response.json()


def test_redemption_invalid_payload(client):
    """Missing, empty or non-JSON payloads are rejected with 400"""
    assert client.post("/redemption", json={}).status_code == 400
    assert client.post("/redemption", json={"staff_pass_id": ""}).status_code == 400

    response = client.post(
        "/redemption", content="not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json() == {"error": "invalid request payload"}


def test_redemption_storage_failure(client, store, monkeypatch):
    """Ledger failures surface as 500"""
    @contextmanager
    def broken_transaction():
        raise OperationalError("BEGIN IMMEDIATE", {}, Exception("disk I/O error"))
        yield

    monkeypatch.setattr(store, "write_transaction", broken_transaction)

    response = client.post("/redemption", json={"staff_pass_id": "STAFF_H123804820G"})
    assert response.status_code == 500
    assert "disk I/O error" in response.json()["error"]


def test_redemption_status(client):
    """Status endpoint reflects the ledger"""
    response = client.get("/redemption", params={"staff_pass_id": "STAFF_H123804820G"})
    assert response.status_code == 200
    assert response.json()["can_redeem"] is True

    client.post("/redemption", json={"staff_pass_id": "STAFF_H123804820G"})

    body = client.get("/redemption", params={"staff_pass_id": "STAFF_H123804820G"}).json()
    assert body["can_redeem"] is False
    assert body["redemption"]["redeemed_by"] == "STAFF_H123804820G"

    assert client.get("/redemption").status_code == 400


def test_cors_preflight(client):
    """Allow-listed origin passes preflight, others do not"""
    headers = {
        "Origin": "http://localhost:3000",
        "Access-Control-Request-Method": "POST",
        "Access-Control-Request-Headers": "Content-Type",
    }
    response = client.options("/redemption", headers=headers)
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

    headers["Origin"] = "https://evil.example.com"
    response = client.options("/redemption", headers=headers)
    assert response.status_code == 400
    assert "access-control-allow-origin" not in response.headers
