"""Endpoint tests for contacts, reports, profiles and utility routes."""

import pytest

import routes


class TestUtility:
    def test_health(self, client):
        assert client.get("/api/health").json()["status"] == "ok"

    def test_maps_key_missing_is_not_an_error_status(self, client):
        response = client.get("/api/maps-key")
        assert response.status_code == 200
        assert response.json() == {"error": "Google Maps API key not configured", "token": None}

    def test_maps_key(self, client, monkeypatch):
        monkeypatch.setattr(routes, "GOOGLE_MAPS_API_KEY", "AIza-test-key")
        assert client.get("/api/maps-key").json() == {"token": "AIza-test-key"}

    def test_mapbox_token_when_no_google_key(self, client, monkeypatch):
        monkeypatch.setattr(routes, "MAPBOX_PUBLIC_TOKEN", "pk.test")
        assert client.get("/api/maps-key").json()["token"] == "pk.test"

    def test_scenarios(self, client):
        keys = {s["key"] for s in client.get("/api/scenarios").json()}
        assert keys == {"scenario_college_night", "scenario_bus_deviate", "scenario_daytime"}

    def test_cors_allows_dev_origin(self, client):
        response = client.options("/api/health", headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "GET",
        })
        assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


class TestEmergencyContacts:
    CONTACT = {"userId": "u1", "name": "Priya", "phone_number": "+91-98200-33333", "city": "Mumbai"}

    def test_create_list_delete(self, client):
        created = client.post("/api/emergency-contacts", json=self.CONTACT)
        assert created.status_code == 201
        row = created.json()
        assert row["contact_type"] == "family"
        assert row["is_active"] is True

        contacts = client.get("/api/emergency-contacts", params={"userId": "u1"}).json()["contacts"]
        assert [c["id"] for c in contacts] == [row["id"]]

        assert client.delete(f"/api/emergency-contacts/{row['id']}").json()["status"] == "deleted"
        assert client.get("/api/emergency-contacts", params={"userId": "u1"}).json()["contacts"] == []

    def test_delete_unknown_is_404(self, client):
        assert client.delete("/api/emergency-contacts/missing").status_code == 404

    def test_city_is_required(self, client):
        body = {k: v for k, v in self.CONTACT.items() if k != "city"}
        assert client.post("/api/emergency-contacts", json=body).status_code == 422

    def test_contacts_are_scoped_to_user(self, client):
        client.post("/api/emergency-contacts", json=self.CONTACT)
        assert client.get("/api/emergency-contacts", params={"userId": "u2"}).json()["contacts"] == []


class TestIncidents:
    REPORT = {
        "incident_type": "harassment", "location_name": "Linking Road",
        "incident_date": "2024-05-01", "severity": 6,
    }

    def test_submit_is_unverified(self, client):
        response = client.post("/api/incidents", json=self.REPORT)
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "submitted"
        assert data["verified"] is False

    def test_verify_and_filter(self, client):
        incident_id = client.post("/api/incidents", json=self.REPORT).json()["id"]
        assert client.get("/api/incidents", params={"verified": True}).json()["incidents"] == []
        assert len(client.get("/api/incidents").json()["incidents"]) == 1

        assert client.post(f"/api/incidents/{incident_id}/verify").json() == {"id": incident_id, "verified": True}
        verified = client.get("/api/incidents", params={"verified": True}).json()["incidents"]
        assert [i["id"] for i in verified] == [incident_id]

    def test_verify_unknown_is_404(self, client):
        assert client.post("/api/incidents/missing/verify").status_code == 404

    def test_verify_with_store_down_is_502(self, broken_store):
        from fastapi.testclient import TestClient
        from routes import app
        from store import get_store

        app.dependency_overrides[get_store] = lambda: broken_store
        try:
            response = TestClient(app).post("/api/incidents/abc/verify")
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == 502

    @pytest.mark.parametrize("severity", [0, 11])
    def test_severity_bounds(self, client, severity):
        assert client.post("/api/incidents", json={**self.REPORT, "severity": severity}).status_code == 422

    def test_default_severity(self, client, store):
        import asyncio
        body = {k: v for k, v in self.REPORT.items() if k != "severity"}
        client.post("/api/incidents", json=body)
        assert asyncio.run(store.select("safety_incidents"))[0]["severity"] == 5


class TestRiskFactors:
    FACTOR = {
        "factor_type": "poor_lighting", "location_name": "Bandstand",
        "lat": 19.04, "lng": 72.82, "risk_level": 7, "time_periods": ["night"],
    }

    def test_submit_and_list(self, client):
        assert client.post("/api/risk-factors", json=self.FACTOR).status_code == 201
        factors = client.get("/api/risk-factors").json()["risk_factors"]
        assert factors[0]["factor_type"] == "poor_lighting"
        assert factors[0]["time_periods"] == ["night"]

    def test_risk_level_bounds(self, client):
        assert client.post("/api/risk-factors", json={**self.FACTOR, "risk_level": 11}).status_code == 422


class TestProfiles:
    def test_missing_profile_is_404(self, client):
        assert client.get("/api/profiles/u1").status_code == 404

    def test_put_creates_then_updates(self, client):
        created = client.put("/api/profiles/u1", json={"full_name": "Asha"}).json()
        assert created["preferred_language"] == "en"

        updated = client.put("/api/profiles/u1", json={"preferred_language": "hi"}).json()
        assert updated["id"] == created["id"]
        assert updated["full_name"] == "Asha"
        assert client.get("/api/profiles/u1").json()["preferred_language"] == "hi"

    def test_unsupported_language(self, client):
        assert client.put("/api/profiles/u1", json={"preferred_language": "fr"}).status_code == 422


class TestStoreFailure:
    def test_store_error_is_502(self, broken_store):
        from fastapi.testclient import TestClient
        from routes import app
        from store import get_store

        app.dependency_overrides[get_store] = lambda: broken_store
        try:
            response = TestClient(app).get("/api/incidents")
        finally:
            app.dependency_overrides.clear()
        assert response.status_code == 502
        assert response.json() == {"detail": "Data store unavailable"}


def test_rate_limit(client, monkeypatch):
    monkeypatch.setattr(routes, "RATE_LIMIT", 2)
    assert client.get("/api/health").status_code == 200
    assert client.get("/api/health").status_code == 200
    response = client.get("/api/health")
    assert response.status_code == 429
    assert "Rate limit" in response.json()["detail"]
