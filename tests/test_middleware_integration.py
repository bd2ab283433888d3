from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from jobalign.services.session_manager import session_manager
from jobalign.utils.exceptions import ExternalServiceError


@pytest.fixture
def test_app():
    from jobalign.main import app
    return app


@pytest.fixture
def client(test_app):
    return TestClient(test_app)


class TestMiddlewareIntegration:
    """Test the full app with its middleware stack"""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers
        assert "X-Processing-Time" in response.headers

    def test_root(self, client):
        data = client.get("/").json()

        assert data["status"] == "ok"
        assert data["version"] == "0.1.0"

    def test_error_response_carries_request_id(self, client):
        session_id = client.post("/api/sessions/").json()["session_id"]

        response = client.post(f"/api/sessions/{session_id}/context", json={"jd_text": "JD"})

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert body["request_id"] == response.headers["X-Request-ID"]
        assert body["error"]["error_code"] == "BUSINESS_LOGIC_ERROR"
        assert body["message"] == "Resume data missing. Please upload a resume first."

    def test_external_service_error_is_502(self, client, sample_document):
        session_id = client.post("/api/sessions/").json()["session_id"]
        failing = AsyncMock(side_effect=ExternalServiceError("Ollama unreachable", service_name="ollama"))

        with patch('jobalign.services.session_manager.build_index', new=failing):
            response = client.post(f"/api/sessions/{session_id}/document", json=sample_document.model_dump())

        assert response.status_code == 502
        assert response.json()["error"]["error_code"] == "EXTERNAL_SERVICE_ERROR"
        assert client.get(f"/api/sessions/{session_id}").json()["status"] == "failed"

    def test_unexpected_error_inside_operation_is_500(self, client, sample_document):
        session_id = client.post("/api/sessions/").json()["session_id"]

        with patch('jobalign.services.session_manager.build_index', new=AsyncMock(side_effect=RuntimeError("boom"))):
            response = client.post(f"/api/sessions/{session_id}/document", json=sample_document.model_dump())

        assert response.status_code == 500
        assert response.json()["error"]["error_code"] == "PROCESSING_ERROR"

    def test_unhandled_exception_is_hidden(self, client):
        with patch.object(session_manager, 'list_sessions', side_effect=RuntimeError("secret detail")):
            response = client.get("/api/sessions/all")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Internal server error"
        assert "secret detail" not in response.text

    def test_request_validation_is_422(self, client):
        session_id = client.post("/api/sessions/").json()["session_id"]

        response = client.post(f"/api/sessions/{session_id}/resume", json={"filename": "cv.pdf"})

        assert response.status_code == 422
