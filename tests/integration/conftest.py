"""
Integration test fixtures.

Integration tests:
- Drive the FastAPI app through TestClient
- Share one in-memory SQLite connection per test
- Never enter the client as a context manager, so startup hooks stay off
"""
import pytest
from fastapi.testclient import TestClient

from database import get_db
from main import app
from models import UserRole


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(client):
    """Create a profile through the API and return its auth headers."""
    def make(email, name=None, department=""):
        response = client.post("/api/v1/users", json={"email": email, "name": name, "department": department})
        assert response.status_code == 200, response.text
        user_id = response.json()["id"]
        return {"X-User-Id": user_id}
    return make


@pytest.fixture
def owner(make_user):
    return make_user("owner@example.com", "Olive Owner", "Strategy")


@pytest.fixture
def admin(make_user, session_factory):
    headers = make_user("admin@example.com", "Ada Admin")
    db = session_factory()
    db.add(UserRole(user_id=headers["X-User-Id"], role="admin"))
    db.commit()
    db.close()
    return headers


@pytest.fixture
def project_id(client, owner):
    response = client.post("/api/v1/projects", json={"name": "Retail pricing", "project_type": "b2b"}, headers=owner)
    assert response.status_code == 200, response.text
    return response.json()["id"]


@pytest.fixture
def make_interviewer(client, owner, project_id):
    def make(name="Buyer interviews", channel="web_link", headers=None):
        response = client.post(
            "/api/v1/interviewers",
            json={"project_id": project_id, "name": name, "channel": channel},
            headers=headers or owner,
        )
        assert response.status_code == 200, response.text
        return response.json()
    return make
