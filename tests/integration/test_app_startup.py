"""Integration test: the app imports and its routes are registered."""
import pytest

pytestmark = pytest.mark.integration


class TestAppStartup:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["service"] == "genie-studio"

    def test_routes_exist(self):
        from main import app
        paths = set(app.openapi()["paths"])
        assert "/api/v1/interviewers" in paths
        assert "/api/v1/guided/{draft_id}/publish" in paths
        assert "/api/v1/public/interviews/{link_id}" in paths
        assert "/api/v1/admin/flags" in paths

    def test_requires_user_header(self, client):
        assert client.get("/api/v1/users/me").status_code == 401
        assert client.get("/api/v1/users/me", headers={"X-User-Id": "ghost"}).status_code == 401
