"""Tests for the transaction HTTP API."""

import pytest
import tempfile
from decimal import Decimal
from pathlib import Path
from fastapi.testclient import TestClient

from td_commission_engine.storage import TransactionDatabase
from td_commission_engine.transactions import PersistenceError, TransactionTracker
from td_commission_engine.website_api.config import Settings
from td_commission_engine.website_api.main import create_app
from td_commission_engine.website_api.services.transactions import get_tracker


class BrokenDatabase(TransactionDatabase):
    def save(self, txn):
        raise PersistenceError("database is locked")


@pytest.fixture
def temp_data_dir():
    """Create temporary data directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def tracker(temp_data_dir):
    return TransactionTracker(TransactionDatabase(temp_data_dir / "api.db"))


@pytest.fixture
def client(tracker):
    app = create_app()
    app.dependency_overrides[get_tracker] = lambda: tracker
    return TestClient(app)


def create(client, fee=1000, listing="Alice", selling="Bob"):
    response = client.post(
        "/v1/transactions",
        json={"total_service_fee": fee, "listing_agent": listing, "selling_agent": selling},
    )
    assert response.status_code == 201
    return response.json()


def move(client, txn_id, stage, **extra):
    return client.patch(f"/v1/transactions/{txn_id}/stage", json={"stage": stage, **extra})


class TestHealth:
    """Tests for health routes."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert "timestamp" in response.json()

    def test_ready(self, client):
        assert client.get("/ready").json() == {"status": "ready"}


class TestTransactionRoutes:
    """Tests for transaction routes."""

    def test_create(self, client):
        data = create(client)

        assert data["stage"] == "agreement"
        assert Decimal(data["total_service_fee"]) == Decimal("1000")
        assert {k: Decimal(v) for k, v in data["financial_breakdown"].items()} == {
            "agency": 0, "listing_agent": 0, "selling_agent": 0,
        }
        assert len(data["stage_history"]) == 1

    def test_create_rejects_negative_fee(self, client):
        response = client.post(
            "/v1/transactions",
            json={"total_service_fee": -5, "listing_agent": "A", "selling_agent": "B"},
        )
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_value"
        assert client.get("/v1/transactions").json() == []

    def test_create_rejects_unknown_fields(self, client):
        response = client.post(
            "/v1/transactions",
            json={"total_service_fee": 5, "listing_agent": "A", "selling_agent": "B", "stage": "completed"},
        )
        assert response.status_code == 422

    def test_create_requires_agents(self, client):
        response = client.post("/v1/transactions", json={"total_service_fee": 5, "listing_agent": "A"})
        assert response.status_code == 422

    def test_list_and_get(self, client):
        first = create(client)
        create(client, fee=50, listing="C", selling="C")

        listed = client.get("/v1/transactions").json()
        assert [t["id"] for t in listed][0] == first["id"]
        assert len(listed) == 2

        fetched = client.get(f"/v1/transactions/{first['id']}").json()
        assert fetched["listing_agent"] == "Alice"

    def test_get_missing(self, client):
        response = client.get("/v1/transactions/missing")
        assert response.status_code == 404
        assert response.json()["detail"]["error"] == "not_found"

    def test_full_lifecycle(self, client):
        """Test moving a transaction through every stage over HTTP."""
        txn_id = create(client)["id"]

        response = move(client, txn_id, "earnest_money", earnest_money=300)
        assert response.status_code == 200
        assert Decimal(response.json()["earnest_money"]) == Decimal("300")

        assert move(client, txn_id, "title_deed").status_code == 200

        data = move(client, txn_id, "completed").json()
        breakdown = {k: Decimal(v) for k, v in data["financial_breakdown"].items()}
        assert breakdown == {"agency": 500, "listing_agent": 250, "selling_agent": 250}
        assert "Alice" in data["commission_detail"]
        assert "Bob" in data["commission_detail"]
        assert len(data["stage_history"]) == 4
        assert data["stage_history"][-1]["changes"]["stage"] == {"from": "title_deed", "to": "completed"}

    def test_skip_stage(self, client):
        txn_id = create(client)["id"]

        response = move(client, txn_id, "title_deed")

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_transition"
        after = client.get(f"/v1/transactions/{txn_id}").json()
        assert after["stage"] == "agreement"
        assert len(after["stage_history"]) == 1

    def test_missing_earnest_money(self, client):
        txn_id = create(client)["id"]

        response = move(client, txn_id, "earnest_money")

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "missing_field"

    def test_negative_earnest_money(self, client):
        """Test a negative amount gets the same error body as other invalid values."""
        txn_id = create(client)["id"]

        response = move(client, txn_id, "earnest_money", earnest_money=-1)

        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "invalid_value"
        assert client.get(f"/v1/transactions/{txn_id}").json()["stage"] == "agreement"

    def test_unknown_stage(self, client):
        txn_id = create(client)["id"]
        assert move(client, txn_id, "closing").status_code == 422

    def test_move_missing(self, client):
        response = move(client, "missing", "earnest_money", earnest_money=10)
        assert response.status_code == 404

    def test_persistence_failure(self, temp_data_dir):
        """Test storage failures return 500 without leaking internals."""
        tracker = TransactionTracker(BrokenDatabase(temp_data_dir / "broken.db"))
        app = create_app()
        app.dependency_overrides[get_tracker] = lambda: tracker
        client = TestClient(app)
        txn_id = create(client)["id"]

        response = move(client, txn_id, "earnest_money", earnest_money=10)

        assert response.status_code == 500
        assert response.json()["detail"] == {
            "success": False,
            "error": "persistence_error",
            "detail": "Internal processing error",
        }


class TestSettings:
    """Tests for environment-based settings."""

    def test_defaults(self, monkeypatch):
        for name in ("TD_API_PORT", "TD_ALLOWED_ORIGINS", "TD_ENGINE_ENV"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.port == 8000
        assert settings.debug is False
        assert "http://localhost:3000" in settings.allowed_origins

    def test_from_environment(self, monkeypatch, temp_data_dir):
        monkeypatch.setenv("TD_API_PORT", "9001")
        monkeypatch.setenv("TD_DATABASE_PATH", str(temp_data_dir / "env.db"))
        monkeypatch.setenv("TD_ALLOWED_ORIGINS", "https://a.example, https://b.example")
        monkeypatch.setenv("TD_ENGINE_ENV", "development")

        settings = Settings()

        assert settings.port == 9001
        assert settings.db_path.endswith("env.db")
        assert settings.allowed_origins == ["https://a.example", "https://b.example"]
        assert settings.debug is True
