"""
Tests for the admin HTTP endpoints, driven through FastAPI's TestClient with
an in-memory store and a stub LLM.
"""
from fastapi.testclient import TestClient

from conftest import StubLLM, sample_store

from app.config import Settings
from app.main import create_app
from app.models.store import UnfulfilledOrder
from app.services.llm_service import InsightGenerationError


def _client(gateway=None, llm=None, **settings):
    app = create_app(
        settings=Settings(_env_file=None, log_dir="", **settings),
        gateway=gateway or sample_store(),
        llm_service=llm or StubLLM(),
    )
    return TestClient(app)


# ────────────────────────────────────────────
# GET /admin/insights
# ────────────────────────────────────────────


class TestAdminInsights:
    def test_success_body(self):
        with _client() as client:
            response = client.get("/admin/insights")

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {"success", "insights", "rawMetrics", "generatedAt", "cached"}
        assert body["success"] is True
        assert body["cached"] is False
        assert body["insights"]["salesTrends"]["trend"] == "up"
        assert body["insights"]["actionItems"]["urgent"] == ["Ship order ORD-1001"]
        assert body["rawMetrics"]["revenueChange"] == "20.0"
        assert body["rawMetrics"]["lowStockCount"] == 3
        assert body["generatedAt"].endswith("Z")

    def test_second_request_is_cached(self):
        llm = StubLLM()
        with _client(llm=llm) as client:
            first = client.get("/admin/insights").json()
            second = client.get("/admin/insights").json()

        assert first["cached"] is False
        assert second["cached"] is True
        assert second["generatedAt"] == first["generatedAt"]
        assert llm.calls == 1

    def test_refresh_regenerates(self):
        llm = StubLLM()
        with _client(llm=llm) as client:
            client.get("/admin/insights")
            body = client.get("/admin/insights", params={"refresh": "true"}).json()

        assert body["cached"] is False
        assert llm.calls == 2

    def test_source_failure_returns_generic_500(self):
        with _client(gateway=sample_store(fail_on="unfulfilled_orders")) as client:
            response = client.get("/admin/insights")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Failed to generate insights"}

    def test_generation_failure_returns_generic_500(self):
        llm = StubLLM(error=InsightGenerationError("LLM call failed: InternalServerError"))
        with _client(llm=llm) as client:
            response = client.get("/admin/insights")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Failed to generate insights"}

    def test_generation_failure_with_fallback_enabled(self):
        llm = StubLLM(error=InsightGenerationError("LLM call failed: InternalServerError"))
        with _client(llm=llm, llm_fallback_on_error=True) as client:
            response = client.get("/admin/insights")

        assert response.status_code == 200
        assert response.json()["insights"]["actionItems"]["urgent"] == ["Ship 2 pending orders"]

    def test_unparseable_llm_output_still_succeeds(self):
        with _client(llm=StubLLM(response="Here you go: not json")) as client:
            response = client.get("/admin/insights")

        assert response.status_code == 200
        assert response.json()["insights"]["salesTrends"]["summary"] == (
            "Revenue this week: £1200.00 (+20.0% vs last week)"
        )

    def test_unfulfilled_order_without_date_still_succeeds(self):
        gateway = sample_store(unfulfilled=[UnfulfilledOrder(id="u1", order_number="ORD-0990", created_at=None)])
        with _client(gateway=gateway) as client:
            response = client.get("/admin/insights")

        assert response.status_code == 200
        assert response.json()["rawMetrics"]["unfulfilledCount"] == 1


# ────────────────────────────────────────────
# GET /admin/stats
# ────────────────────────────────────────────


class TestAdminStats:
    def test_stats(self):
        with _client() as client:
            response = client.get("/admin/stats")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "stats": {"revenue": 5400.0, "customers": 42, "orders": 57, "lowStock": 3},
        }

    def test_stats_failure(self):
        with _client(gateway=sample_store(fail_on="store_stats")) as client:
            response = client.get("/admin/stats")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Failed to load store stats"}


# ────────────────────────────────────────────
# GET /admin/revenue
# ────────────────────────────────────────────


class TestAdminRevenue:
    def test_daily_series(self):
        with _client() as client:
            response = client.get("/admin/revenue")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["revenue"]["days"] == [
            {"date": "2024-05-12", "revenue": 150.5},
            {"date": "2024-05-14", "revenue": 0},
            {"date": "2024-05-15", "revenue": 80.0},
        ]
        assert body["revenue"]["total"] == 230.5
        assert "startDate" in body["revenue"]

    def test_window_length_is_validated(self):
        with _client() as client:
            assert client.get("/admin/revenue", params={"days": 0}).status_code == 422
            assert client.get("/admin/revenue", params={"days": 366}).status_code == 422

    def test_revenue_failure(self):
        with _client(gateway=sample_store(fail_on="revenue_over_time")) as client:
            response = client.get("/admin/revenue")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Failed to load revenue data"}


# ────────────────────────────────────────────
# GET /admin/customers
# ────────────────────────────────────────────


class TestAdminCustomers:
    def test_first_page(self):
        with _client() as client:
            body = client.get("/admin/customers").json()

        assert body["success"] is True
        assert body["hasMore"] is False
        assert [c["_id"] for c in body["customers"]] == ["c3", "c2", "c1"]
        zoe = body["customers"][0]
        assert zoe["orderCount"] == 3
        assert zoe["totalSpent"] == 450.0
        assert zoe["displayName"] == "Zoe Smith"
        assert zoe["isActive"] is True
        sam = body["customers"][1]
        assert sam["displayName"] == "sam@example.com"
        assert sam["isActive"] is False
        assert sam["lastOrderDate"] is None

    def test_search_and_paging(self):
        gateway = sample_store()
        with _client(gateway=gateway) as client:
            body = client.get("/admin/customers", params={"search": "smith", "limit": 1}).json()

        assert [c["_id"] for c in body["customers"]] == ["c3"]
        assert body["hasMore"] is True
        assert body["limit"] == 1
        assert gateway.customer_query == ("smith", 0, 2)

    def test_limit_is_capped(self):
        with _client() as client:
            assert client.get("/admin/customers", params={"limit": 101}).status_code == 422

    def test_customers_failure(self):
        with _client(gateway=sample_store(fail_on="customers_with_stats")) as client:
            response = client.get("/admin/customers")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Failed to load customers"}


# ────────────────────────────────────────────
# HEALTH / STATUS
# ────────────────────────────────────────────


class TestHealth:
    def test_health(self):
        with _client() as client:
            body = client.get("/health").json()
        assert body["status"] == "healthy"

    def test_status_reports_cache_and_llm(self):
        with _client() as client:
            before = client.get("/status").json()
            client.get("/admin/insights")
            after = client.get("/status").json()

        assert before["llm_available"] is True
        assert before["insights_cache"]["populated"] is False
        assert after["insights_cache"]["populated"] is True
        assert after["insights_cache"]["fingerprint"]
        assert after["data_source"]["name"] == "fake"
        assert after["data_source"]["fetch_count"] == 6

    def test_gateway_closed_on_shutdown(self):
        gateway = sample_store()
        with _client(gateway=gateway) as client:
            client.get("/health")
        assert gateway.closed is True
