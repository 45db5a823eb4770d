"""
Test dashboard JSON API with Flask's test client and the mock source.

Run: python tools/testing/test_dashboard_api.py
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from datetime import date
from unittest.mock import PropertyMock, patch

from act_dashboard.app import create_app
from act_kpi.data_sources import MetricsFetchError, MockMetricsSource
from act_kpi.state import SYSTEM_MESSAGES, KPIDashboardState

TODAY = date(2025, 3, 10)
PROJECT_ROOT = Path(__file__).parent.parent.parent


def _client(source=None):
    state = KPIDashboardState(
        source=source or MockMetricsSource(seed=1),
        customer_id="1234567890",
        today_fn=lambda: TODAY,
        sleep=lambda s: None,
    )
    app = create_app(state=state, currency="EUR", testing=True)
    return app.test_client(), state


def test_campaigns():
    print("\n=== TEST 1: Campaigns ===")

    client, state = _client()
    resp = client.get("/api/campaigns")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["success"] is True
    assert len(data["campaigns"]) == 5
    assert data["selected_campaign_id"] == "1001"
    assert state.snapshot.refreshed_at is not None
    print("✅ PASS")


def test_kpis():
    print("\n=== TEST 2: KPIs ===")

    client, _ = _client()
    client.get("/api/campaigns")

    data = client.get("/api/kpis?time_range=30d").get_json()
    assert data["time_range"] == "30d"
    assert data["campaign"]["type"] == "VIDEO"
    assert data["date_range"] == {"start_date": "2025-02-09", "end_date": "2025-03-10"}
    assert data["empty"] is False
    assert [k["type"] for k in data["kpis"]][:2] == ["cpv", "views"]
    assert len(data["history"]) == 7
    assert len(data["history"][0]["data"]) == 30

    cpv = data["kpis"][0]
    assert cpv["formatted"].startswith("€")
    assert cpv["label"]
    assert cpv["trend"] in ("up", "down", "stable")
    assert cpv["is_positive"] == (cpv["change"] < 0)

    bad = client.get("/api/kpis?time_range=90d")
    assert bad.status_code == 400
    print("✅ PASS")


def test_select_and_time_range():
    print("\n=== TEST 3: Select + Time Range ===")

    client, state = _client()
    client.get("/api/campaigns")

    resp = client.post("/api/campaigns/1003/select")
    assert resp.status_code == 200
    assert resp.get_json()["selected_campaign"]["type"] == "SEARCH"

    assert client.post("/api/campaigns/4242/select").status_code == 404

    resp = client.post("/api/time-range", json={"time_range": "3d"})
    assert resp.status_code == 200
    assert state.time_range == "3d"
    data = client.get("/api/kpis").get_json()
    assert data["time_range"] == "3d"
    assert data["kpis"][0]["type"] == "cpc"

    assert client.post("/api/time-range", json={"time_range": "1y"}).status_code == 400
    assert client.post("/api/time-range").status_code == 400
    print("✅ PASS")


def test_refresh_and_status():
    print("\n=== TEST 4: Refresh + Status ===")

    client, state = _client()
    assert client.post("/api/refresh").status_code == 400  # nothing selected yet

    client.get("/api/campaigns")
    before = state.snapshot
    resp = client.post("/api/refresh")
    assert resp.status_code == 200
    assert resp.get_json()["success"] is True
    assert state.snapshot is not before

    status = client.get("/api/status").get_json()
    assert status["is_loading"] is False
    assert status["error"] is None
    assert status["selected_campaign"]["id"] == "1001"
    assert status["refreshed_at"]
    print("✅ PASS")


def test_refresh_rate_limited():
    print("\n=== TEST 5: Refresh Rate Limit ===")

    client, _ = _client()
    client.get("/api/campaigns")
    codes = [client.post("/api/refresh").status_code for _ in range(11)]
    assert codes[:10] == [200] * 10, codes
    assert codes[10] == 429
    assert client.post("/api/refresh").get_json()["error"] == "Rate limit exceeded"
    print("✅ PASS")


def test_errors_are_json():
    print("\n=== TEST 6: JSON Errors ===")

    client, _ = _client()
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.get_json()["success"] is False
    print("✅ PASS")


def test_create_app_from_config():
    print("\n=== TEST 7: App From Config ===")

    app = create_app(PROJECT_ROOT / "configs" / "client_demo.yaml", testing=True)
    assert app.config["KPI_CURRENCY"] == "EUR"
    assert app.config["CLIENT_NAME"] == "Demo Music Label"
    assert app.config["KPI_STATE"].customer_id == "1234567890"
    print("✅ PASS")


class FlakyCampaignSource(MockMetricsSource):
    """Campaign listing fails on the first call, then works."""

    def __init__(self):
        super().__init__(seed=1)
        self.list_calls = 0

    def list_campaigns(self, customer_id):
        self.list_calls += 1
        if self.list_calls == 1:
            raise MetricsFetchError("transient outage")
        return super().list_campaigns(customer_id)


def test_campaigns_recover_after_failure():
    print("\n=== TEST 8: Campaigns Recover After Failure ===")

    source = FlakyCampaignSource()
    client, state = _client(source)

    first = client.get("/api/campaigns").get_json()
    assert first["success"] is False
    assert first["error"] == SYSTEM_MESSAGES["campaigns_error"]
    assert first["campaigns"] == []

    second = client.get("/api/campaigns").get_json()
    assert second["success"] is True
    assert second["error"] is None
    assert len(second["campaigns"]) == 5
    assert second["selected_campaign_id"] == "1001"
    assert source.list_calls == 2

    # a loaded list is not fetched again
    client.get("/api/kpis")
    assert source.list_calls == 2
    print("✅ PASS")


def test_refresh_conflict():
    print("\n=== TEST 9: Refresh Conflict ===")

    client, state = _client()
    client.get("/api/campaigns")

    # another request holds the refresh lock
    assert state._refresh_lock.acquire(blocking=False)
    try:
        resp = client.post("/api/refresh")
    finally:
        state._refresh_lock.release()
    assert resp.status_code == 409
    data = resp.get_json()
    assert data["success"] is False
    assert data["error"] == "Refresh in progress"
    assert data["message"] == SYSTEM_MESSAGES["loading"]

    # the lock is taken between the route's check and the refresh itself
    with patch.object(KPIDashboardState, "is_refreshing", new_callable=PropertyMock, return_value=False):
        assert state._refresh_lock.acquire(blocking=False)
        try:
            resp = client.post("/api/refresh")
        finally:
            state._refresh_lock.release()
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "Refresh in progress"

    assert client.post("/api/refresh").status_code == 200
    print("✅ PASS")


if __name__ == "__main__":
    print("=" * 60)
    print("Dashboard API Tests")
    print("=" * 60)

    all_passed = True

    for test in [
        test_campaigns,
        test_kpis,
        test_select_and_time_range,
        test_refresh_and_status,
        test_refresh_rate_limited,
        test_errors_are_json,
        test_create_app_from_config,
        test_campaigns_recover_after_failure,
        test_refresh_conflict,
    ]:
        try:
            test()
        except AssertionError as e:
            print(f"❌ FAIL: {e}")
            all_passed = False

    print("\n" + "=" * 60)
    print("✅ ALL TESTS PASSED" if all_passed else "❌ SOME TESTS FAILED")
    print("=" * 60)
