"""Integration tests: projects, members and user search."""
import pytest

pytestmark = pytest.mark.integration


class TestProjects:

    def test_creator_is_owner(self, client, owner, project_id):
        response = client.get(f"/api/v1/projects/{project_id}", headers=owner)
        body = response.json()
        assert body["role"] == "owner"
        assert body["interviewer_counts"] == {"overview": 0, "archive": 0, "trash": 0}

        perms = client.get(f"/api/v1/projects/{project_id}/permissions", headers=owner).json()
        assert perms["can_manage_members"]

    def test_list_only_member_projects(self, client, owner, make_user, project_id):
        other = make_user("other@example.com")
        assert client.get("/api/v1/projects", headers=other).json()["total"] == 0
        assert client.get("/api/v1/projects", headers=owner).json()["total"] == 1

    def test_outsider_gets_404(self, client, make_user, project_id):
        other = make_user("other@example.com")
        response = client.get(f"/api/v1/projects/{project_id}", headers=other)
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"

    def test_blank_name_rejected(self, client, owner):
        assert client.post("/api/v1/projects", json={"name": "  "}, headers=owner).status_code == 400


class TestMembers:

    def test_add_update_remove(self, client, owner, make_user, project_id):
        viewer = make_user("viewer@example.com", "Vic Viewer")
        viewer_id = viewer["X-User-Id"]

        response = client.post(f"/api/v1/projects/{project_id}/members",
                               json={"user_id": viewer_id, "role": "viewer"}, headers=owner)
        assert response.status_code == 200
        assert response.json()["role"] == "viewer"

        duplicate = client.post(f"/api/v1/projects/{project_id}/members",
                                json={"user_id": viewer_id, "role": "editor"}, headers=owner)
        assert duplicate.status_code == 409

        # viewers can read but not edit or manage
        assert client.get(f"/api/v1/projects/{project_id}", headers=viewer).json()["role"] == "viewer"
        assert client.put(f"/api/v1/projects/{project_id}", json={"name": "x"}, headers=viewer).status_code == 403
        forbidden = client.delete(f"/api/v1/projects/{project_id}/members/{viewer_id}", headers=viewer)
        assert forbidden.status_code == 403

        promoted = client.patch(f"/api/v1/projects/{project_id}/members/{viewer_id}",
                                json={"role": "editor"}, headers=owner)
        assert promoted.json()["role"] == "editor"
        assert client.put(f"/api/v1/projects/{project_id}", json={"name": "Renamed"}, headers=viewer).status_code == 200

        removed = client.delete(f"/api/v1/projects/{project_id}/members/{viewer_id}", headers=owner)
        assert removed.status_code == 200
        assert client.get(f"/api/v1/projects/{project_id}", headers=viewer).status_code == 404

    def test_last_owner_cannot_leave(self, client, owner, project_id):
        owner_id = owner["X-User-Id"]
        response = client.delete(f"/api/v1/projects/{project_id}/members/{owner_id}", headers=owner)
        assert response.status_code == 409


class TestUsers:

    def test_me_and_update(self, client, owner):
        me = client.get("/api/v1/users/me", headers=owner).json()
        assert me["email"] == "owner@example.com"
        assert me["is_admin"] is False

        updated = client.patch("/api/v1/users/me", json={"department": "Research"}, headers=owner).json()
        assert updated["department"] == "Research"

    def test_duplicate_email(self, client, owner):
        response = client.post("/api/v1/users", json={"email": "OWNER@example.com"})
        assert response.status_code == 409

    def test_search_excludes_self(self, client, owner, make_user):
        make_user("olga@example.com", "Olga Analyst")
        results = client.get("/api/v1/users/search", params={"q": "ol"}, headers=owner).json()["users"]
        assert [u["email"] for u in results] == ["olga@example.com"]

    def test_short_query_returns_nothing(self, client, owner):
        assert client.get("/api/v1/users/search", params={"q": "o"}, headers=owner).json() == {"users": []}
