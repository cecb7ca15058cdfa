from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from coach.main import app, websocket_manager

client = TestClient(app)


def test_health_check():
    """Test the health check endpoint returns correct response"""
    response = client.get("/health")
    assert response.status_code == 200

    response_json = response.json()
    assert response_json["status"] == "healthy"
    assert isinstance(response_json["elevenlabs_api_key_configured"], bool)
    assert set(response_json["personas_configured"]) == {
        "Language Coach",
        "Parent Support",
        "Child Mode",
    }
    assert response_json["active_connections"] == 0


def test_health_check_reports_configured_personas():
    env = {"ELEVENLABS_API_KEY": "sk_live_abc", "CHILD_MODE_AGENT_ID": "agent_cm_03"}
    with patch.dict("os.environ", env, clear=True):
        response_json = client.get("/health").json()

    assert response_json["elevenlabs_api_key_configured"] is True
    assert response_json["personas_configured"] == {
        "Language Coach": False,
        "Parent Support": False,
        "Child Mode": True,
    }


def test_root_endpoint():
    """Test the root endpoint returns the correct API information"""
    response = client.get("/")
    assert response.status_code == 200

    response_json = response.json()
    assert response_json["name"] == "Gestalt Coach"
    assert "description" in response_json
    assert response_json["version"] == "1.0.0"
    assert "/ws" in response_json["endpoints"]
    assert "/health" in response_json["endpoints"]


def test_websocket_endpoint_initialization():
    """Test that websocket_manager is properly initialized"""
    assert websocket_manager is not None
    assert "session.start" in websocket_manager.handlers
    assert "message.send" in websocket_manager.handlers
    assert "history.load" in websocket_manager.handlers


@pytest.mark.asyncio
async def test_websocket_endpoint():
    """Test that websocket endpoint calls the handle_websocket method"""
    with patch("coach.websocket_manager.WebSocketManager.handle_websocket") as mock_handle:
        mock_handle.return_value = None
        mock_websocket = MagicMock()

        websocket_route = next(route for route in app.routes if route.path == "/ws")
        await websocket_route.endpoint(mock_websocket)

        mock_handle.assert_called_once_with(mock_websocket)


def test_app_startup_configuration():
    """Test the app configuration on startup"""
    assert app.title == "Gestalt Coach"
    assert "ElevenLabs" in app.description
    assert app.version == "1.0.0"

    route_paths = [route.path for route in app.routes]
    assert "/ws" in route_paths
    assert "/health" in route_paths
    assert "/" in route_paths
