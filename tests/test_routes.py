"""Tests for the HTTP boundary."""
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient

from conftest import make_place
from travel_atlas.main import create_app, find_available_port
from travel_atlas.services import build_services
from travel_atlas.services.llm_client import LLMClient

ACTIVITY_REPLY = {
    "activity": "theaters and performing arts",
    "followUpQuestion": "Which kind of performance?",
    "availableInterests": ["Opera", "Ballet"],
}


def places_handler(request):
    """Answer Places requests like the real API for a couple of Paris museums."""
    path = request.url.path
    if path.endswith("/nearbysearch/json"):
        return httpx.Response(200, json={"status": "OK", "results": [
            make_place("Louvre", place_id="louvre", types=["museum"]),
            make_place("Hotel Louvre", place_id="hotel", types=["lodging"]),
        ]})
    if path.endswith("/details/json"):
        return httpx.Response(200, json={"status": "NOT_FOUND"})
    if path.endswith("/photo"):
        return httpx.Response(200, content=b"jpeg-bytes", headers={"content-type": "image/jpeg"})
    if path == "/search":
        return httpx.Response(200, json=[{
            "place_id": 42, "lat": "48.8606", "lon": "2.3376", "type": "museum",
            "display_name": "Louvre Museum, Rue de Rivoli, Paris, France", "importance": 0.9,
        }])
    return httpx.Response(404)


@pytest.fixture
def llm():
    return AsyncMock(spec=LLMClient)


@pytest.fixture
def make_client(settings, cache, mock_http, llm):
    def factory(handler=places_handler, raise_server_exceptions=True):
        services = build_services(settings, http_client=mock_http(handler), llm=llm, cache=cache)
        app = create_app(settings, services=services)
        return TestClient(app, raise_server_exceptions=raise_server_exceptions)
    return factory


class TestPlaceRoutes:
    """Test the place search, details and photo endpoints."""

    def test_search_returns_filtered_results(self, make_client):
        client = make_client()
        response = client.get("/api/places/search", params={"location": "48.8566,2.3522", "type": "museum"})
        assert response.status_code == 200
        results = response.json()["results"]
        assert [r["id"] for r in results] == ["louvre"]
        assert results[0]["category"] == "museum"

    def test_missing_location_is_400(self, make_client):
        response = make_client().get("/api/places/search", params={"type": "museum"})
        assert response.status_code == 400
        assert response.json() == {"error": "Location parameter is required"}

    def test_malformed_location_is_400(self, make_client):
        response = make_client().get("/api/places/search", params={"location": "paris"})
        assert response.status_code == 400

    def test_denied_is_403(self, make_client):
        """A denied key surfaces as 403 with the error body."""
        def denied(request):
            return httpx.Response(200, json={
                "status": "REQUEST_DENIED", "error_message": "The provided API key is invalid.",
            })

        response = make_client(denied).get("/api/places/search", params={"location": "48.8566,2.3522"})

        assert response.status_code == 403
        assert response.json()["error"] == "Google Places API request denied"

    def test_missing_key_is_500(self, make_client, settings):
        settings.google_places_api_key = ""
        response = make_client().get("/api/places/search", params={"location": "48.8566,2.3522"})
        assert response.status_code == 500
        assert response.json() == {"error": "Google Places API key not configured"}

    def test_photo_keeps_content_type(self, make_client):
        response = make_client().get("/api/places/photo", params={"photo_reference": "ref123"})
        assert response.status_code == 200
        assert response.content == b"jpeg-bytes"
        assert response.headers["content-type"] == "image/jpeg"

    def test_photo_requires_reference(self, make_client):
        assert make_client().get("/api/places/photo").status_code == 400

    def test_unknown_landmark_is_placeholder(self, make_client):
        """Unresolvable ids yield the 'Unknown Place' placeholder, not an error."""
        response = make_client().get("/api/places/landmark/ghost-id")
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == "ghost-id"
        assert body["name"] == "Unknown Place"


    def test_osm_search_returns_landmarks(self, make_client):
        response = make_client().get("/api/places/osm-search", params={"q": "Louvre", "countrycodes": "fr"})
        assert response.status_code == 200
        results = response.json()["results"]
        assert results[0]["id"] == "osm-42"
        assert results[0]["source"] == "openstreetmap"
        assert results[0]["country"] == "France"

    def test_osm_search_requires_query(self, make_client):
        response = make_client().get("/api/places/osm-search")
        assert response.status_code == 400
        assert response.json() == {"error": "q parameter is required"}


class TestRecommendRoute:
    """Test the dialogue and itinerary endpoint."""

    def test_dialogue_turn_returns_state(self, make_client, llm):
        llm.chat_json.return_value = ACTIVITY_REPLY
        response = make_client().post("/api/ai-recommend", json={
            "query": "I love theater", "type": "activity_identification",
        })
        assert response.status_code == 200
        body = response.json()
        assert body["content"]["followUpQuestion"] == "Which kind of performance?"
        assert body["state"]["stage"] == "activity_identified"
        assert body["state"]["currentActivity"] == "theaters and performing arts"

    def test_invalid_ai_reply_is_500(self, make_client, llm):
        llm.chat_json.return_value = {"activity": "theater"}
        response = make_client().post("/api/ai-recommend", json={"query": "hi"})
        assert response.status_code == 500
        assert response.json()["error"] == "Invalid response format from AI"

    def test_itinerary_returns_markdown(self, make_client, llm):
        llm.chat.return_value = "# Travel Planning Report"
        response = make_client().post("/api/ai-recommend", json={
            "query": "Plan it", "type": "itinerary", "totalDays": 2,
        })
        assert response.status_code == 200
        assert response.json() == {"content": "# Travel Planning Report"}

    def test_invalid_body_is_400(self, make_client):
        response = make_client().post("/api/ai-recommend", json={"type": "itinerary", "travelers": 0})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"

    def test_unexpected_error_is_generic_500(self, make_client, llm):
        llm.chat_json.side_effect = RuntimeError("boom")
        client = make_client(raise_server_exceptions=False)
        response = client.post("/api/ai-recommend", json={"query": "hi"})
        assert response.status_code == 500
        assert response.json() == {"error": "Something broke!"}


def test_health(make_client):
    response = make_client().get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.json()["places_configured"] is True


def test_find_available_port_skips_busy_port():
    """An occupied port is skipped in favor of the next free one."""
    import socket

    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as busy:
        busy.bind(("127.0.0.1", 0))
        busy.listen()
        taken = busy.getsockname()[1]
        port = find_available_port("127.0.0.1", taken, attempts=20)
    assert port != taken
    assert taken < port < taken + 20
