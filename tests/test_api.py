"""Tests for the HTTP API, run against the offline mock provider."""
import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, patch

from roamwarrior.errors import GenerationTimeoutError
from roamwarrior.main import app


LOCATIONS = {
    "destination": "Japan",
    "arrivalCity": "Tokyo",
    "departureCity": "Osaka",
    "numberOfDays": 4,
}


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def session_id(client):
    return client.post("/api/session").json()["session_id"]


def _plan_ready(client, session_id):
    client.post(f"/api/wizard/{session_id}/locations-and-dates", json=LOCATIONS)
    client.post(f"/api/wizard/{session_id}/activities", json={"desiredActivities": ["food", "temples"]})
    return client.post(f"/api/wizard/{session_id}/itinerary")


class TestSessionEndpoints:
    """Test session lifecycle."""

    def test_health(self, client):
        """Test the health check."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_progress(self, client, session_id):
        """Test that a new session has no step data."""
        response = client.get(f"/api/session/{session_id}")

        assert response.status_code == 200
        assert not any(response.json()["progress"].values())

    def test_unknown_session(self, client):
        """Test that an unknown session is a 404."""
        response = client.get("/api/itinerary/missing")

        assert response.status_code == 404
        assert response.json()["notification"]["title"] == "Session Not Found"

    def test_end_session(self, client, session_id):
        """Test that ending a session removes it."""
        assert client.delete(f"/api/session/{session_id}").status_code == 200
        assert client.get(f"/api/session/{session_id}").status_code == 404


class TestWizardEndpoints:
    """Test the wizard through HTTP."""

    def test_full_flow(self, client, session_id):
        """Test going from places to a stored itinerary."""
        response = _plan_ready(client, session_id)

        assert response.status_code == 200
        body = response.json()
        assert body["response_type"] == "itinerary"
        assert len(body["data"]["itinerary"]["plan"]) == 4

        current = client.get(f"/api/itinerary/{session_id}").json()
        assert current["itinerary"]["total_days"] == 4
        assert current["rendered"].startswith("📅 **4 day itinerary**")

    def test_validation_notification(self, client, session_id):
        """Test that a rejected step comes back as a destructive notification."""
        response = client.post(f"/api/wizard/{session_id}/locations-and-dates", json={"destination": "Japan"})

        assert response.status_code == 422
        body = response.json()
        assert body["notification"]["variant"] == "destructive"
        assert body["notification"]["title"] == "Missing Information"
        assert [v["field"] for v in body["violations"]] == ["arrivalCity", "departureCity", "arrivalDate"]

    def test_non_numeric_day_count(self, client, session_id):
        """Test that a day count that is not a number comes back as a notification."""
        response = client.post(f"/api/wizard/{session_id}/locations-and-dates", json={
            "destination": "Japan",
            "arrivalCity": "Tokyo",
            "departureCity": "Osaka",
            "numberOfDays": "five",
        })

        assert response.status_code == 422
        body = response.json()
        assert body["notification"]["variant"] == "destructive"
        assert body["violations"] == [{"field": "numberOfDays", "message": "must be a whole number"}]

    def test_step_out_of_order(self, client, session_id):
        """Test that skipping a step is a conflict."""
        response = client.post(f"/api/wizard/{session_id}/activities", json={"desiredActivities": ["food"]})

        assert response.status_code == 409
        assert response.json()["notification"]["title"] == "Previous Step Required"

    def test_suggested_places(self, client, session_id):
        """Test that the mock provider suggests places."""
        client.post(f"/api/wizard/{session_id}/locations-and-dates", json=LOCATIONS)
        client.post(f"/api/wizard/{session_id}/activities", json={"desiredActivities": ["food"]})

        response = client.post(f"/api/wizard/{session_id}/suggested-places")

        assert response.status_code == 200
        assert response.json()["data"]["suggestedPlaces"][0]["location"] == "Tokyo"

    def test_refine_and_reorder(self, client, session_id):
        """Test refining and then reordering the stored plan."""
        _plan_ready(client, session_id)

        refined = client.post(f"/api/itinerary/{session_id}/refine", json={"feedback": "more food"})
        assert refined.status_code == 200
        assert "more food" in refined.json()["data"]["itinerary"]["plan"][0]["description"]

        reordered = client.post(f"/api/itinerary/{session_id}/reorder", json={"fromIndex": 3, "toIndex": 0})
        assert reordered.status_code == 200
        assert reordered.json()["data"]["itinerary"]["plan"][0]["day"] == "Day 4"

    def test_blank_feedback(self, client, session_id):
        """Test that empty feedback is rejected."""
        _plan_ready(client, session_id)

        response = client.post(f"/api/itinerary/{session_id}/refine", json={"feedback": " "})

        assert response.status_code == 422

    def test_timeout_is_504(self, client, session_id):
        """Test that a timed out refinement reports 504 and keeps the plan."""
        _plan_ready(client, session_id)
        before = client.get(f"/api/itinerary/{session_id}").json()

        with patch(
            "roamwarrior.services.planner.ItineraryPlanner.refine",
            new=AsyncMock(side_effect=GenerationTimeoutError("too slow"))
        ):
            response = client.post(f"/api/itinerary/{session_id}/refine", json={"feedback": "more food"})

        assert response.status_code == 504
        assert response.json()["notification"]["title"] == "Request Timed Out"
        assert client.get(f"/api/itinerary/{session_id}").json() == before

    def test_grounded_recommendation(self, client, session_id):
        """Test picking lodging and transport from supplied candidates."""
        _plan_ready(client, session_id)
        payload = {
            "accommodations": [
                {"name": "Budget Inn", "location": "Tokyo", "price": 40, "rating": 3.5},
                {"name": "Grand Hotel", "location": "Tokyo", "price": 300, "rating": 4.8},
            ],
            "transportationOptions": [
                {"type": "train", "departureLocation": "Tokyo", "arrivalLocation": "Osaka", "price": 110},
            ],
        }

        response = client.post(f"/api/itinerary/{session_id}/accommodation-transport", json=payload)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["grounded"] is True
        assert [a["name"] for a in data["accommodations"]] == ["Budget Inn"]
        assert data["transportationOptions"][0]["type"] == "train"


class TestRecommendationEndpoints:
    """Test the session-free endpoints."""

    def test_places(self, client):
        """Test recommending places directly."""
        response = client.post("/api/recommendations/places", json={
            "destination": "Japan",
            "arrivalCity": "Tokyo",
            "departureCity": "Osaka",
            "activityPreferences": "food, temples",
        })

        assert response.status_code == 200
        assert len(response.json()["places"]) == 2

    def test_places_missing_input(self, client):
        """Test that missing inputs are a validation error."""
        response = client.post("/api/recommendations/places", json={"destination": "Japan"})

        assert response.status_code == 422
        assert len(response.json()["violations"]) == 3

    def test_generate_directly(self, client):
        """Test generating an itinerary from a raw travel request."""
        response = client.post("/api/itinerary/generate", json={
            "destination": "Japan",
            "arrivalCity": "Tokyo",
            "departureCity": "Osaka",
            "dates": "3 days",
            "desiredActivities": "food",
        })

        assert response.status_code == 200
        assert len(response.json()["itinerary"]["plan"]) == 3

    def test_ungrounded_accommodation(self, client):
        """Test that options without candidates are flagged."""
        response = client.post("/api/recommendations/accommodation-transport", json={
            "destination": "Kyoto",
            "itinerary": {"plan": [{"day": "Day 1", "headline": "Kyoto", "description": "Temples"}]},
        })

        assert response.status_code == 200
        assert response.json()["grounded"] is False
        assert response.json()["accommodations"][0]["name"] == "Kyoto Central Hotel"
