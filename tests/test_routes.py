"""Tests for the HTTP API."""

from unittest.mock import MagicMock

import pytest

from app import create_app
from safeintel.liveintel.errors import PipelineTimeout, ReportSourceError
from safeintel.liveintel.pipeline import build_result


@pytest.fixture
def service():
    svc = MagicMock()
    svc.get_area_intelligence.return_value = build_result({"kind": "area", "query": "Ikeja"})
    svc.get_route_intelligence.return_value = build_result({"kind": "route"})
    svc.refresh_area.return_value = build_result({"kind": "area"})
    svc.refresh_route.return_value = build_result({"kind": "route"})
    svc.cache.get_stats.return_value = {"total_entries": 3}
    return svc


@pytest.fixture
def client(service, profiles):
    app = create_app(service=service, profiles=profiles)
    app.config["TESTING"] = True
    return app.test_client()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "healthy"


def test_area_intelligence(client, service):
    resp = client.get("/api/intel/area?location=Ikeja&state=lagos&risk_level=HIGH")

    assert resp.status_code == 200
    assert resp.get_json()["query"] == "Ikeja"
    service.get_area_intelligence.assert_called_once_with("Ikeja", "lagos", zone=None, risk_level="HIGH")


def test_area_requires_location_and_state(client, service):
    resp = client.get("/api/intel/area?location=Ikeja")
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False
    service.get_area_intelligence.assert_not_called()


def test_source_failure_is_502_with_error_shape(client, service):
    service.get_area_intelligence.side_effect = ReportSourceError("down")

    resp = client.get("/api/intel/area?location=Ikeja&state=lagos")

    body = resp.get_json()
    assert resp.status_code == 502
    assert body["error"] == "Failed to load intelligence"
    assert body["incidents"] == []
    assert body["loading"] is False


def test_timeout_is_504(client, service):
    service.get_area_intelligence.side_effect = PipelineTimeout("slow")
    resp = client.get("/api/intel/area?location=Ikeja&state=lagos")
    assert resp.status_code == 504


def test_route_intelligence(client, service):
    resp = client.post("/api/intel/route", json={"state_ids": ["lagos", "ogun", "oyo"]})

    assert resp.status_code == 200
    assert "route_road_names" in resp.get_json()
    service.get_route_intelligence.assert_called_once_with(
        ["lagos", "ogun", "oyo"], "lagos to ogun to oyo", risk_level=None
    )


@pytest.mark.parametrize("body", [{}, {"state_ids": []}, {"state_ids": "lagos"}, {"state_ids": ["lagos", 3]}])
def test_route_rejects_bad_state_ids(client, body):
    assert client.post("/api/intel/route", json=body).status_code == 400


def test_refresh_dispatches_by_body(client, service):
    assert client.post("/api/intel/refresh", json={"location": "Ikeja", "state": "lagos"}).status_code == 200
    service.refresh_area.assert_called_once_with("Ikeja", "lagos", zone=None, risk_level=None)

    resp = client.post("/api/intel/refresh", json={"state_ids": ["fct", "kaduna"], "route_display": "Abuja to Kaduna"})
    assert resp.status_code == 200
    service.refresh_route.assert_called_once_with(["fct", "kaduna"], "Abuja to Kaduna", risk_level=None)

    assert client.post("/api/intel/refresh", json={"location": "Ikeja"}).status_code == 400


def test_cache_stats(client):
    body = client.get("/api/intel/cache/stats").get_json()
    assert body == {"success": True, "stats": {"total_entries": 3}}


def test_route_safety(client):
    resp = client.get("/api/route-safety?from=Lagos&to=Ibadan")

    body = resp.get_json()
    assert resp.status_code == 200
    assert body["success"] is True
    assert body["result"]["route_state_ids"] == ["lagos", "ogun", "oyo"]


def test_route_safety_unknown_place_is_404(client):
    resp = client.get("/api/route-safety?from=Lagos&to=Atlantis")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Not Found"


def test_route_safety_requires_both_ends(client):
    assert client.get("/api/route-safety?from=Lagos").status_code == 400


def test_unknown_path_uses_json_error(client):
    resp = client.get("/api/nothing-here")
    assert resp.status_code == 404
    assert resp.get_json()["success"] is False
