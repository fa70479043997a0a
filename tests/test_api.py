"""
Tests for the portfolio and trade API endpoints
"""
import pytest
from fastapi.testclient import TestClient
from unittest.mock import patch

from pnltracker.db import Database


@pytest.fixture
def test_db():
    """Create a test database"""
    db = Database(":memory:")
    yield db
    db.close()


@pytest.fixture
def client(test_db):
    """Create test client backed by the in-memory database"""
    from backend.main import app

    with patch('backend.routers.portfolios.db', test_db), \
            patch('backend.routers.trades.db', test_db):
        with TestClient(app) as test_client:
            yield test_client


def create_portfolio(client, name="Growth Portfolio", initial_value=10000.0):
    response = client.post(
        "/api/portfolios/", json={"name": name, "initial_value": initial_value}
    )
    assert response.status_code == 200
    return response.json()


def create_trade(client, portfolio_id, **overrides):
    body = {
        "ticker": "AAPL",
        "entry_price": 150.0,
        "exit_price": 165.0,
        "quantity": 10,
        "trade_date": "2024-01-15",
        "portfolio_id": portfolio_id,
    }
    body.update(overrides)
    response = client.post("/api/trades/", json=body)
    assert response.status_code == 200, response.text
    return response.json()


class TestHealthAPI:
    def test_root_and_health(self, client):
        assert client.get("/").json()["message"] == "Portfolio P&L Tracker API"
        assert client.get("/api/health").json() == {"status": "healthy"}


class TestPortfolioAPI:
    def test_create_portfolio(self, client):
        data = create_portfolio(client)

        assert data["id"] is not None
        assert data["name"] == "Growth Portfolio"
        assert data["trades"] == []
        assert data["summary"] == {
            "total_pnl": 0.0,
            "total_value": 10000.0,
            "percentage_change": 0.0,
            "open_trades": 0,
            "closed_trades": 0,
        }

    @pytest.mark.parametrize("initial_value", [0.0, -1000.0])
    def test_create_rejects_non_positive_initial_value(self, client, initial_value):
        response = client.post(
            "/api/portfolios/", json={"name": "Broken", "initial_value": initial_value}
        )

        assert response.status_code == 400
        assert "Initial value" in response.json()["detail"]

    def test_create_rejects_missing_fields(self, client):
        response = client.post("/api/portfolios/", json={"name": "No value"})

        assert response.status_code == 400

    def test_portfolio_summary(self, client):
        """The worked example: 150 + 300 realized on 10k is +4.5%."""
        portfolio = create_portfolio(client)
        create_trade(client, portfolio["id"])
        create_trade(
            client, portfolio["id"],
            ticker="GOOGL", entry_price=2800.0, exit_price=2950.0, quantity=2,
            trade_date="2024-02-01",
        )
        create_trade(
            client, portfolio["id"],
            ticker="MSFT", entry_price=320.0, exit_price=None, quantity=15,
            trade_date="2024-03-01",
        )

        response = client.get(f"/api/portfolios/{portfolio['id']}")

        assert response.status_code == 200
        summary = response.json()["summary"]
        assert summary["total_pnl"] == pytest.approx(450.0)
        assert summary["total_value"] == pytest.approx(10450.0)
        assert summary["percentage_change"] == pytest.approx(4.5)
        assert summary["open_trades"] == 1
        assert summary["closed_trades"] == 2

    def test_list_portfolios(self, client):
        create_portfolio(client, "First", 1000.0)
        create_portfolio(client, "Second", 2000.0)

        response = client.get("/api/portfolios/")

        assert response.status_code == 200
        assert [p["name"] for p in response.json()] == ["Second", "First"]

    def test_update_portfolio(self, client):
        portfolio = create_portfolio(client)

        response = client.put(
            f"/api/portfolios/{portfolio['id']}",
            json={"name": "Renamed", "initial_value": 20000.0},
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"
        assert response.json()["summary"]["total_value"] == 20000.0

    def test_update_rejects_zero_initial_value(self, client):
        portfolio = create_portfolio(client)

        response = client.put(
            f"/api/portfolios/{portfolio['id']}",
            json={"name": "Growth Portfolio", "initial_value": 0},
        )

        assert response.status_code == 400

    def test_get_missing_portfolio(self, client):
        assert client.get("/api/portfolios/999").status_code == 404

    def test_delete_empty_portfolio(self, client):
        portfolio = create_portfolio(client)

        response = client.delete(f"/api/portfolios/{portfolio['id']}")

        assert response.status_code == 200
        assert client.get(f"/api/portfolios/{portfolio['id']}").status_code == 404

    def test_delete_portfolio_with_trades_rejected(self, client):
        portfolio = create_portfolio(client)
        create_trade(client, portfolio["id"])

        response = client.delete(f"/api/portfolios/{portfolio['id']}")

        assert response.status_code == 400
        assert "Cannot delete portfolio with existing trades" in response.json()["detail"]
        assert client.get(f"/api/portfolios/{portfolio['id']}").status_code == 200

    def test_delete_missing_portfolio(self, client):
        assert client.delete("/api/portfolios/999").status_code == 404

    def test_portfolio_trades_ascending(self, client):
        portfolio = create_portfolio(client)
        create_trade(client, portfolio["id"], ticker="NEW", trade_date="2024-03-01")
        create_trade(client, portfolio["id"], ticker="OLD", trade_date="2024-01-01")

        response = client.get(f"/api/portfolios/{portfolio['id']}/trades")

        assert response.status_code == 200
        assert [t["ticker"] for t in response.json()] == ["OLD", "NEW"]

    def test_pnl_series(self, client):
        portfolio = create_portfolio(client)
        create_trade(
            client, portfolio["id"],
            ticker="GOOGL", entry_price=2800.0, exit_price=2950.0, quantity=2,
            trade_date="2024-02-01",
        )
        create_trade(client, portfolio["id"])
        create_trade(client, portfolio["id"], ticker="MSFT", exit_price=None)

        response = client.get(f"/api/portfolios/{portfolio['id']}/pnl-series")

        assert response.status_code == 200
        points = response.json()
        assert [p["ticker"] for p in points] == ["AAPL", "GOOGL"]
        assert [p["trade_date"] for p in points] == ["2024-01-15", "2024-02-01"]
        assert [p["cumulative_pnl"] for p in points] == pytest.approx([150.0, 450.0])

    def test_pnl_series_missing_portfolio(self, client):
        assert client.get("/api/portfolios/999/pnl-series").status_code == 404


class TestTradeAPI:
    def test_create_trade(self, client):
        portfolio = create_portfolio(client)

        data = create_trade(client, portfolio["id"], ticker="aapl")

        assert data["ticker"] == "AAPL"
        assert data["is_open"] is False
        assert data["pnl"] == pytest.approx(150.0)
        assert data["return_pct"] == pytest.approx(10.0)

    def test_create_open_trade(self, client):
        portfolio = create_portfolio(client)

        data = create_trade(client, portfolio["id"], exit_price=None)

        assert data["is_open"] is True
        assert data["pnl"] is None
        assert data["return_pct"] is None

    @pytest.mark.parametrize(
        "overrides",
        [{"quantity": 0}, {"quantity": -5}, {"entry_price": 0}, {"ticker": " "}],
    )
    def test_create_trade_rejects_invalid(self, client, overrides):
        portfolio = create_portfolio(client)
        body = {
            "ticker": "AAPL",
            "entry_price": 150.0,
            "quantity": 10,
            "trade_date": "2024-01-15",
            "portfolio_id": portfolio["id"],
        }
        body.update(overrides)

        response = client.post("/api/trades/", json=body)

        assert response.status_code == 400

    def test_create_trade_missing_fields(self, client):
        response = client.post("/api/trades/", json={"ticker": "AAPL"})

        assert response.status_code == 400

    def test_create_trade_unknown_portfolio(self, client):
        response = client.post(
            "/api/trades/",
            json={
                "ticker": "AAPL",
                "entry_price": 150.0,
                "quantity": 10,
                "trade_date": "2024-01-15",
                "portfolio_id": 999,
            },
        )

        assert response.status_code == 404

    def test_list_trades_newest_first(self, client):
        portfolio = create_portfolio(client)
        create_trade(client, portfolio["id"], ticker="OLD", trade_date="2024-01-01")
        create_trade(client, portfolio["id"], ticker="NEW", trade_date="2024-03-01")

        response = client.get("/api/trades/")

        assert [t["ticker"] for t in response.json()] == ["NEW", "OLD"]

    def test_update_trade_closes_position(self, client):
        portfolio = create_portfolio(client)
        trade = create_trade(client, portfolio["id"], exit_price=None)

        response = client.put(
            f"/api/trades/{trade['id']}",
            json={
                "ticker": "AAPL",
                "entry_price": 150.0,
                "exit_price": 140.0,
                "quantity": 10,
                "trade_date": "2024-01-15",
                "portfolio_id": portfolio["id"],
            },
        )

        assert response.status_code == 200
        assert response.json()["pnl"] == pytest.approx(-100.0)
        summary = client.get(f"/api/portfolios/{portfolio['id']}").json()["summary"]
        assert summary["total_pnl"] == pytest.approx(-100.0)

    def test_get_and_delete_trade(self, client):
        portfolio = create_portfolio(client)
        trade = create_trade(client, portfolio["id"])

        assert client.get(f"/api/trades/{trade['id']}").status_code == 200
        assert client.delete(f"/api/trades/{trade['id']}").status_code == 200
        assert client.get(f"/api/trades/{trade['id']}").status_code == 404
        assert client.delete(f"/api/trades/{trade['id']}").status_code == 404
