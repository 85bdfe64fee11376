"""
HTTP-level tests for the metered stock endpoints.

The admission gateway runs against in-memory fakes and the stock service
is replaced with canned data, so no database or Redis is needed.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from stockmeter.api.deps import get_admission_gateway, get_stock_service
from stockmeter.api.errors import register_exception_handlers
from stockmeter.api.v1 import router as api_v1_router
from stockmeter.db.models import Stock
from stockmeter.schemas.stocks import DailyBarOut, StockOut
from stockmeter.services.admission import AdmissionGateway, AuditRecorder
from stockmeter.services.base import NotFoundError
from stockmeter.services.quota import QuotaStore
from stockmeter.services.stocks import StockService

from conftest import BrokenCounter, make_entitlement

CLOSES = [Decimal(c) for c in ("10", "11", "12", "13", "14", "15")]


class FakeStockService(StockService):
    """StockService over a fixed catalogue; records every range it is asked for."""

    def __init__(self):
        super().__init__(session=None)
        created = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.stocks = {
            "RELIANCE": Stock(
                id="stock-1",
                name="Reliance Industries",
                symbol="RELIANCE",
                industry="Energy",
                fno=True,
                created_at=created,
                updated_at=created,
            ),
        }
        self.ranges = []

    async def get_stock(self, symbol):
        if symbol not in self.stocks:
            raise NotFoundError("StockService", "Stock not found")
        return self.stocks[symbol]

    async def get_all_stocks(self, pagination):
        stocks = [StockOut.model_validate(s) for s in self.stocks.values()]
        return stocks[pagination.offset:pagination.offset + pagination.limit], len(stocks)

    async def get_daily_data(self, stock_id, date_range, pagination):
        self.ranges.append(date_range)
        bars = [
            DailyBarOut(date=date(2026, 3, 15) - timedelta(days=i), close=float(c))
            for i, c in enumerate(reversed(CLOSES))
        ]
        return bars[pagination.offset:pagination.offset + pagination.limit], len(bars)

    async def get_close_prices(self, stock_id, date_range):
        self.ranges.append(date_range)
        return list(CLOSES)

    async def fetch_bars(self, stock_id, date_range, columns=("date", "close")):
        self.ranges.append(date_range)
        return [
            {"date": date(2026, 3, 14), "open": Decimal("10.50"), "high": Decimal("11.00"),
             "low": Decimal("10.00"), "close": Decimal("10.75"), "volume": Decimal("1200")},
        ]


@pytest.fixture
def stock_service():
    return FakeStockService()


def build_app(gateway, stock_service):
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(api_v1_router, prefix="/api/v1")
    app.dependency_overrides[get_admission_gateway] = lambda: gateway
    app.dependency_overrides[get_stock_service] = lambda: stock_service
    return app


@pytest.fixture
def client(gateway, stock_service):
    with TestClient(build_app(gateway, stock_service)) as test_client:
        yield test_client


def auth(key="key-free"):
    return {"X-API-Key": key}


class TestAdmission:
    def test_missing_key_is_401(self, client):
        response = client.get("/api/v1/stocks/RELIANCE")

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "API key is required"

    def test_unknown_key_is_401(self, client):
        response = client.get("/api/v1/stocks/RELIANCE", headers=auth("wrong"))
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid API key"

    def test_no_subscription_is_403(self, client):
        response = client.get("/api/v1/stocks/RELIANCE", headers=auth("key-nosub"))

        assert response.status_code == 403
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "No active subscription found"
        assert "data" not in body

    def test_daily_limit_is_429_with_retry_after(self, client, directory):
        directory.add_user("key-tiny", "user-tiny", make_entitlement(per_day=2))

        for _ in range(2):
            assert client.get("/api/v1/stocks/RELIANCE", headers=auth("key-tiny")).status_code == 200
        response = client.get("/api/v1/stocks/RELIANCE", headers=auth("key-tiny"))

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "86400"
        assert response.json()["message"] == "Daily API call limit exceeded"

    def test_invalid_input_consumes_no_quota(self, client, counter):
        response = client.get(
            "/api/v1/stocks/moving-averages/RELIANCE",
            params={"startDate": "yesterday-ish"},
            headers=auth(),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid start date format"
        assert counter.values == {}

    def test_bad_period_is_400(self, client, counter):
        response = client.get("/api/v1/stocks/rsi/RELIANCE", params={"period": "0"}, headers=auth())
        assert response.status_code == 400
        assert response.json()["message"] == "Period must be a positive number"
        assert counter.values == {}

    def test_oversized_page_is_400(self, client, counter):
        response = client.get(
            "/api/v1/stocks/RELIANCE/daily",
            params={"page": "100000000000000000000"},
            headers=auth(),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid pagination parameters"
        assert counter.values == {}

    def test_quota_store_down_is_500_without_retry_after(self, directory, sink, stock_service):
        gateway = AdmissionGateway(
            directory,
            QuotaStore(BrokenCounter(), timeout=1.0),
            AuditRecorder(sink, timeout=1.0),
            lookup_timeout=1.0,
        )

        with TestClient(build_app(gateway, stock_service)) as test_client:
            response = test_client.get("/api/v1/stocks/RELIANCE", headers=auth())

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "message": "Internal server error",
            "error": "Internal server error",
        }
        assert "retry-after" not in response.headers
        assert sink.records == []


class TestStockRoutes:
    def test_get_stock(self, client):
        response = client.get("/api/v1/stocks/reliance", headers=auth())

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["symbol"] == "RELIANCE"
        assert body["data"]["createdAt"].startswith("2024-01-01")

    def test_unknown_stock_is_404(self, client):
        response = client.get("/api/v1/stocks/NOPE", headers=auth())
        assert response.status_code == 404
        assert response.json()["message"] == "Stock not found"

    def test_list_stocks_paginated(self, client):
        response = client.get("/api/v1/stocks/", params={"page": 1, "limit": 10}, headers=auth())

        body = response.json()
        assert response.status_code == 200
        assert body["pagination"] == {"page": 1, "limit": 10, "total": 1}
        assert len(body["data"]) == 1

    def test_list_limit_capped(self, client):
        response = client.get("/api/v1/stocks/", params={"limit": 101}, headers=auth())
        assert response.status_code == 400
        assert response.json()["message"] == "Limit cannot exceed 100"

    def test_daily_newest_first(self, client):
        response = client.get("/api/v1/stocks/RELIANCE/daily", params={"limit": 2}, headers=auth())

        body = response.json()
        assert [bar["date"] for bar in body["data"]] == ["2026-03-15", "2026-03-14"]
        assert body["pagination"]["total"] == 6

    def test_date_range_clamped_to_plan(self, client, stock_service):
        client.get(
            "/api/v1/stocks/RELIANCE/daily",
            params={"startDate": "1990-01-01"},
            headers=auth(),
        )

        window = stock_service.ranges[-1]
        assert window.start_date > datetime(1990, 1, 1, tzinfo=timezone.utc)
        assert window.start_date <= window.end_date

    def test_usage_reports_counts(self, client):
        client.get("/api/v1/stocks/RELIANCE", headers=auth())
        response = client.get("/api/v1/stocks/usage", headers=auth())

        data = response.json()["data"]
        assert data["plan"] == "FREE"
        assert data["dailyUsed"] == 2
        assert data["dailyLimit"] == 1000
        assert data["minuteLimit"] == 50


class TestAnalytics:
    def test_moving_averages(self, client):
        response = client.get(
            "/api/v1/stocks/moving-averages/RELIANCE", params={"period": 3}, headers=auth()
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["sma"] == [11.0, 12.0, 13.0, 14.0]
        assert data["ema"] == [11.0, 12.0, 13.0, 14.0]
        assert data["period"] == 3
        assert set(data["dateRange"]) == {"startDate", "endDate"}

    def test_rsi_default_period(self, client):
        response = client.get("/api/v1/stocks/rsi/RELIANCE", headers=auth())

        data = response.json()["data"]
        assert data["period"] == 14
        # six closes are not enough for a 14-period RSI
        assert data["rsi"] == []

    def test_rsi_rising_series(self, client):
        response = client.get("/api/v1/stocks/rsi/RELIANCE", params={"period": 2}, headers=auth())
        assert response.json()["data"]["rsi"] == [100.0, 100.0, 100.0, 100.0]

    def test_csv_download(self, client):
        response = client.get("/api/v1/stocks/download/RELIANCE", headers=auth())

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="RELIANCE_historical_data.csv"' in response.headers["content-disposition"]
        assert response.text.splitlines() == [
            "Date,Open,High,Low,Close,Volume",
            "2026-03-14,10.50,11.00,10.00,10.75,1200",
        ]
