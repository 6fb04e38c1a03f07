"""
Tests for the backend API endpoints.
"""

import pytest
from unittest.mock import patch

import main
from services.chat_service import ChatService, NOT_CONFIGURED_REPLY, ERROR_REPLY


@pytest.fixture
def village_payload():
    return {
        "name": "Latur Village 1",
        "block": "Block A",
        "district": "Latur",
        "state": "Maharashtra",
        "population": 1200,
        "latitude": 18.41,
        "longitude": 76.56,
        "water_source": "Borewell",
        "base_water_demand": 24000
    }


@pytest.fixture
def tanker_payload():
    return {
        "registration_no": "MH-24-AB-1234",
        "capacity_liters": 10000,
        "assigned_state": "Maharashtra",
        "assigned_district": "Latur",
        "assigned_block": "Block A",
        "assigned_village_id": None,
        "source_point": "Manjara Dam",
        "status": "In Transit"
    }


def create_village(client, payload, wsi=None):
    response = client.post("/api/villages", json=payload)
    assert response.status_code == 200
    village_id = response.json()["id"]
    if wsi is not None:
        response = client.post(f"/api/villages/{village_id}/metrics", json={"water_stress_index": wsi})
        assert response.status_code == 200
    return village_id


class TestHealthCheck:
    """Test health check endpoints."""

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200

        data = response.json()
        assert "message" in data
        assert "version" in data

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestVillageEndpoints:
    """Test village-related endpoints."""

    def test_create_village(self, client, village_payload):
        response = client.post("/api/villages", json=village_payload)
        assert response.status_code == 200

        data = response.json()
        assert data["success"] is True
        assert isinstance(data["id"], int)

    def test_create_village_blank_state(self, client, village_payload):
        village_payload["state"] = "  "
        response = client.post("/api/villages", json=village_payload)
        assert response.status_code == 422
        assert "error" in response.json()

    def test_create_village_missing_district(self, client, village_payload):
        del village_payload["district"]
        response = client.post("/api/villages", json=village_payload)
        assert response.status_code == 422

    def test_append_metric(self, client, village_payload):
        village_id = create_village(client, village_payload)

        response = client.post(f"/api/villages/{village_id}/metrics", json={
            "date": "2024-05-01",
            "rainfall_deviation": -35.0,
            "groundwater_level": 41.0,
            "groundwater_velocity": -2.1,
            "water_stress_index": 65.0
        })
        assert response.status_code == 200
        assert response.json()["risk_level"] == "Orange"

    def test_append_metric_unknown_village(self, client):
        response = client.post("/api/villages/404/metrics", json={"water_stress_index": 50})
        assert response.status_code == 404
        assert "error" in response.json()

    def test_get_villages(self, client, village_payload):
        create_village(client, village_payload, wsi=88.0)

        response = client.get("/api/villages")
        assert response.status_code == 200

        data = response.json()
        assert len(data) == 1
        assert data[0]["name"] == "Latur Village 1"
        assert data[0]["risk_level"] == "Red"
        assert data[0]["water_stress_index"] == 88.0
        assert data[0]["base_water_demand"] == 24000

    def test_get_villages_by_district(self, client, village_payload):
        create_village(client, village_payload, wsi=20)
        create_village(client, dict(village_payload, name="Beed Village 1", district="Beed"), wsi=30)

        response = client.get("/api/villages?district=Beed")
        assert response.status_code == 200

        data = response.json()
        assert [v["district"] for v in data] == ["Beed"]

    def test_empty_filter_is_ignored(self, client, village_payload):
        create_village(client, village_payload, wsi=20)

        response = client.get("/api/villages?state=&district=")
        assert response.status_code == 200
        assert len(response.json()) == 1


class TestDashboardEndpoints:
    """Test dashboard-related endpoints."""

    def test_get_dashboard_stats_empty(self, client):
        response = client.get("/api/dashboard/stats")
        assert response.status_code == 200
        assert response.json() == {
            "totalVillages": 0,
            "criticalVillages": 0,
            "activeTankers": 0,
            "waterGapLiters": 0.0
        }

    def test_get_dashboard_stats(self, client, village_payload, tanker_payload):
        create_village(client, village_payload, wsi=90)
        create_village(client, dict(village_payload, name="Jodhpur Village 1", district="Jodhpur",
                                    state="Rajasthan", base_water_demand=60000), wsi=10)
        client.post("/api/tankers", json=tanker_payload)

        response = client.get("/api/dashboard/stats?state=Maharashtra")
        assert response.status_code == 200

        data = response.json()
        assert data["totalVillages"] == 1
        assert data["criticalVillages"] == 1
        assert data["activeTankers"] == 1
        assert data["waterGapLiters"] == pytest.approx(0.4 * 24000)


class TestTankerEndpoints:
    """Test tanker-related endpoints."""

    def test_register_tanker(self, client, village_payload, tanker_payload):
        village_id = create_village(client, village_payload)
        tanker_payload["assigned_village_id"] = village_id

        response = client.post("/api/tankers", json=tanker_payload)
        assert response.status_code == 200
        assert response.json()["success"] is True

        tankers = client.get("/api/tankers").json()
        assert tankers[0]["current_lat"] == pytest.approx(18.41)
        assert tankers[0]["current_lng"] == pytest.approx(76.56)
        assert tankers[0]["current_load_percentage"] == 100

    def test_register_tanker_unknown_village(self, client, tanker_payload):
        tanker_payload["assigned_village_id"] = 9999

        response = client.post("/api/tankers", json=tanker_payload)
        assert response.status_code == 200

        tanker = client.get("/api/tankers").json()[0]
        assert tanker["current_lat"] == 0
        assert tanker["current_lng"] == 0

    def test_register_duplicate_tanker(self, client, tanker_payload):
        assert client.post("/api/tankers", json=tanker_payload).status_code == 200

        response = client.post("/api/tankers", json=tanker_payload)
        assert response.status_code == 409
        assert "error" in response.json()
        assert len(client.get("/api/tankers").json()) == 1

    def test_get_tankers_by_state(self, client, tanker_payload):
        client.post("/api/tankers", json=tanker_payload)
        client.post("/api/tankers", json=dict(tanker_payload, registration_no="RJ-19-XY-9999",
                                              assigned_state="Rajasthan", assigned_district="Jodhpur"))

        response = client.get("/api/tankers?state=Rajasthan")
        assert response.status_code == 200
        assert [t["registration_no"] for t in response.json()] == ["RJ-19-XY-9999"]

    def test_update_tanker(self, client, tanker_payload):
        tanker_id = client.post("/api/tankers", json=tanker_payload).json()["id"]

        response = client.patch(f"/api/tankers/{tanker_id}", json={"status": "Delivering", "current_load_percentage": 40})
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "Delivering"
        assert data["current_load_percentage"] == 40

    def test_update_tanker_unknown_status(self, client, tanker_payload):
        tanker_id = client.post("/api/tankers", json=tanker_payload).json()["id"]

        response = client.patch(f"/api/tankers/{tanker_id}", json={"status": "Flying"})
        assert response.status_code == 422


class TestLocationEndpoints:
    """Test location hierarchy endpoint."""

    def test_get_location_hierarchy(self, client, village_payload):
        create_village(client, village_payload)
        create_village(client, dict(village_payload, name="Beed Village 1", district="Beed", block="Block B"))

        response = client.get("/api/locations/hierarchy")
        assert response.status_code == 200

        data = response.json()
        assert data["states"] == [{"state": "Maharashtra"}]
        assert len(data["districts"]) == 2
        assert {"district": "Beed", "block": "Block B"} in data["blocks"]
        assert {v["name"] for v in data["villages"]} == {"Latur Village 1", "Beed Village 1"}


class TestAlertEndpoints:
    """Test alert-related endpoints."""

    def test_get_alerts_empty(self, client):
        response = client.get("/api/alerts")
        assert response.status_code == 200
        assert response.json() == []

    def test_create_and_get_alerts(self, client, village_payload, tanker_payload):
        village_id = create_village(client, village_payload)
        tanker_id = client.post("/api/tankers", json=tanker_payload).json()["id"]

        response = client.post("/api/alerts", json={
            "type": "Critical",
            "message": "Latur Village 1 needs tanker urgently",
            "location_id": village_id,
            "tanker_id": tanker_id
        })
        assert response.status_code == 200

        data = client.get("/api/alerts?district=Latur").json()
        assert len(data) == 1
        assert data[0]["village_name"] == "Latur Village 1"
        assert data[0]["tanker_no"] == "MH-24-AB-1234"
        assert data[0]["status"] == "Active"

    def test_resolve_alert(self, client):
        alert_id = client.post("/api/alerts", json={"type": "Info", "message": "Rain forecast"}).json()["id"]

        response = client.post(f"/api/alerts/{alert_id}/resolve")
        assert response.status_code == 200
        assert client.get("/api/alerts").json()[0]["status"] == "Resolved"

    def test_resolve_unknown_alert(self, client):
        response = client.post("/api/alerts/123/resolve")
        assert response.status_code == 404


class TestReportEndpoints:
    """Test usage report endpoint."""

    def test_usage_report(self, client, village_payload, tanker_payload):
        village_id = create_village(client, village_payload)
        tanker_id = client.post("/api/tankers", json=tanker_payload).json()["id"]
        client.post("/api/tankers", json=dict(tanker_payload, registration_no="IDLE-0001"))

        for volume, fuel in [(10000, 45), (5000, 20)]:
            response = client.post("/api/deployments", json={
                "tanker_id": tanker_id,
                "village_id": village_id,
                "status": "Delivered",
                "volume_delivered": volume,
                "cost_estimated": 1500,
                "fuel_consumed": fuel
            })
            assert response.status_code == 200

        response = client.get("/api/reports/usage")
        assert response.status_code == 200
        assert response.json() == [
            {"registration_no": "MH-24-AB-1234", "total_volume": 15000, "trips": 2, "total_fuel": 65.0}
        ]

    def test_deployment_unknown_tanker(self, client):
        response = client.post("/api/deployments", json={"tanker_id": 5, "village_id": 1})
        assert response.status_code == 404

    def test_deployment_unknown_village(self, client, tanker_payload):
        tanker_id = client.post("/api/tankers", json=tanker_payload).json()["id"]

        response = client.post("/api/deployments", json={"tanker_id": tanker_id, "village_id": 404})
        assert response.status_code == 404
        assert "Village 404" in response.json()["error"]


class TestChatEndpoint:
    """Test chat assistant endpoint."""

    def test_chat_without_api_key(self, client):
        with patch.object(main, "chat_service", ChatService(api_key="")):
            response = client.post("/api/chat", json={"message": "Which villages need tankers?"})

        assert response.status_code == 200
        assert response.json()["reply"] == NOT_CONFIGURED_REPLY

    def test_chat_passes_dashboard_context(self, client, village_payload):
        create_village(client, village_payload, wsi=91.0)
        service = ChatService(api_key="")

        with patch.object(main, "chat_service", service), \
                patch.object(service, "get_chat_response", return_value="Deploy 2 tankers") as mock_reply:
            response = client.post("/api/chat", json={"message": "Plan for Latur", "district": "Latur"})

        assert response.status_code == 200
        assert response.json()["reply"] == "Deploy 2 tankers"

        message, context = mock_reply.call_args.args
        assert message == "Plan for Latur"
        assert context["filter"] == {"state": None, "district": "Latur"}
        assert context["stats"]["criticalVillages"] == 1
        assert context["critical_villages"][0]["name"] == "Latur Village 1"

    def test_chat_model_error_returns_apology(self):
        from google.api_core import exceptions as google_exceptions

        with patch("services.chat_service.genai") as mock_genai:
            mock_genai.GenerativeModel.return_value.generate_content.side_effect = \
                google_exceptions.ServiceUnavailable("down")
            service = ChatService(api_key="test-key")
            reply = service.get_chat_response("hello", {"stats": {}})

        assert reply == ERROR_REPLY
        mock_genai.configure.assert_called_once_with(api_key="test-key")

    @pytest.mark.parametrize("error", [
        RuntimeError("transport closed"),
        ConnectionError("connection reset"),
        PermissionError("credentials rejected"),
    ])
    def test_chat_any_model_failure_returns_apology(self, client, error):
        with patch("services.chat_service.genai") as mock_genai:
            mock_genai.GenerativeModel.return_value.generate_content.side_effect = error
            with patch.object(main, "chat_service", ChatService(api_key="test-key")):
                response = client.post("/api/chat", json={"message": "Which villages need tankers?"})

        assert response.status_code == 200
        assert response.json()["reply"] == ERROR_REPLY

    def test_chat_empty_message(self, client):
        response = client.post("/api/chat", json={"message": ""})
        assert response.status_code == 422
