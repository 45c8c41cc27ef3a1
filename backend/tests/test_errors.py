import pytest

from inventory_portal.config import settings
from inventory_portal.services import aggregation


@pytest.fixture
def broken_floor_counts(monkeypatch):
    async def floor_counts(db):
        raise RuntimeError("store down")

    monkeypatch.setattr(aggregation, "floor_counts", floor_counts)


async def test_failing_subquery_fails_whole_report(server_error_client, admin_headers, broken_floor_counts):
    resp = await server_error_client.get("/api/reports/data", headers=admin_headers)
    assert resp.status_code == 500
    assert resp.json() == {
        "success": False,
        "message": "Internal Server Error",
        "error": "store down",
    }


async def test_production_hides_error_detail(
    server_error_client, admin_headers, broken_floor_counts, monkeypatch
):
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")
    resp = await server_error_client.get("/api/reports/data", headers=admin_headers)
    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "Something went wrong"
    assert "store down" not in resp.text


async def test_unexpected_error_in_single_query_route(server_error_client, admin_headers, monkeypatch):
    async def build_alerts(db, now):
        raise ValueError("bad row")

    monkeypatch.setattr(aggregation, "build_alerts", build_alerts)
    resp = await server_error_client.get("/api/dashboard/alerts", headers=admin_headers)
    assert resp.status_code == 500
    assert resp.json()["error"] == "bad row"


async def test_healthy_report_is_unaffected(server_error_client, admin_headers):
    resp = await server_error_client.get("/api/reports/data", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["success"] is True
