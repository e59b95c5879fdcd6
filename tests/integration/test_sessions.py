"""Integration tests: public interview sessions, transcripts, Q&A and feedback."""
import pytest

pytestmark = pytest.mark.integration

TRANSCRIPT = {"sections": [
    {"id": "s1", "question": "What is your role?",
     "answer": {"summary": "Category manager for snacks", "bullet_points": ["Owns supplier relationships"],
                "raw_text": "I manage the snacks category."}},
    {"id": "s2", "question": "How do discounts work?",
     "answer": {"summary": "Quarterly volume discounts", "bullet_points": ["Rebates on volume"],
                "raw_text": "We get discounts every quarter."}},
]}


@pytest.fixture
def live_interviewer(client, owner, make_interviewer):
    interviewer = make_interviewer(channel="web_link")
    client.post(f"/api/v1/interviewers/{interviewer['id']}/deploy", json={}, headers=owner)
    return interviewer


@pytest.fixture
def completed_session_id(client, live_interviewer):
    link_id = live_interviewer["contact"]["link_id"]
    started = client.post(f"/api/v1/public/interviews/{link_id}/sessions", json={"respondent_name": "Sam"})
    assert started.status_code == 200, started.text
    session_id = started.json()["session_id"]
    completed = client.post(f"/api/v1/public/sessions/{session_id}/complete", json={"transcript": TRANSCRIPT})
    assert completed.json()["status"] == "completed"
    return session_id


class TestPublicFlow:

    def test_lookup_live_interview(self, client, live_interviewer):
        link_id = live_interviewer["contact"]["link_id"]
        body = client.get(f"/api/v1/public/interviews/{link_id}").json()
        assert body["available"] is True
        assert body["channel"] == "web_link"

    def test_paused_interview_unavailable(self, client, owner, live_interviewer):
        client.post(f"/api/v1/interviewers/{live_interviewer['id']}/toggle-status", headers=owner)
        link_id = live_interviewer["contact"]["link_id"]

        body = client.get(f"/api/v1/public/interviews/{link_id}").json()
        assert body["available"] is False
        assert "channel" not in body

        response = client.post(f"/api/v1/public/interviews/{link_id}/sessions", json={})
        assert response.status_code == 409
        assert response.json()["code"] == "unavailable"

    def test_unknown_link(self, client):
        assert client.get("/api/v1/public/interviews/NOPE42").status_code == 404

    def test_complete_twice(self, client, completed_session_id):
        response = client.post(f"/api/v1/public/sessions/{completed_session_id}/complete",
                               json={"transcript": TRANSCRIPT})
        assert response.status_code == 409


class TestSessionInsights:

    def test_stats_and_session_list(self, client, owner, live_interviewer, completed_session_id):
        iid = live_interviewer["id"]
        stats = client.get(f"/api/v1/interviewers/{iid}/stats", headers=owner).json()
        assert stats["total_interviews"] == 1
        assert stats["completion_rate"] == 1
        assert stats["last_interview_date"]

        sessions = client.get(f"/api/v1/interviewers/{iid}/sessions", headers=owner).json()
        assert [s["id"] for s in sessions["sessions"]] == [completed_session_id]

    def test_transcript_search(self, client, owner, completed_session_id):
        result = client.get(f"/api/v1/sessions/{completed_session_id}/transcript/search",
                            params={"q": "discount"}, headers=owner).json()
        assert result["section_ids"] == ["s2"]
        assert result["match_count"] == 3

    def test_question_with_citations(self, client, owner, completed_session_id):
        url = f"/api/v1/sessions/{completed_session_id}/qa"
        answer = client.post(url, json={"question": "How do discounts work here?"}, headers=owner).json()
        assert answer["citations"][0] == "s2"
        citation = next(seg for seg in answer["segments"] if seg["type"] == "citation")
        assert citation == {"type": "citation", "number": 1, "section_id": "s2", "question": "How do discounts work?"}

        thread = client.get(url, headers=owner).json()["messages"]
        assert [m["role"] for m in thread] == ["user", "assistant"]

    def test_feedback(self, client, owner, completed_session_id):
        url = f"/api/v1/sessions/{completed_session_id}/feedback"
        assert client.post(url, json={"rating": "negative"}, headers=owner).status_code == 422
        saved = client.post(url, json={"rating": "negative", "negative_reason": "Missed a follow-up"},
                            headers=owner).json()
        assert saved["negative_reason"] == "Missed a follow-up"
        session = client.get(f"/api/v1/sessions/{completed_session_id}", headers=owner).json()
        assert session["feedback"]["rating"] == "negative"

    def test_outsider_cannot_read_session(self, client, make_user, completed_session_id):
        other = make_user("other@example.com")
        assert client.get(f"/api/v1/sessions/{completed_session_id}", headers=other).status_code == 404

    def test_cross_session_question(self, client, owner, live_interviewer, completed_session_id):
        iid = live_interviewer["id"]
        answer = client.post(f"/api/v1/interviewers/{iid}/insights/ask", json={"question": "discounts?"},
                             headers=owner).json()
        assert answer["session_count"] == 1
        assert answer["citations"][0] == f"{completed_session_id}:s2"

    def test_cross_session_summary(self, client, owner, live_interviewer, completed_session_id):
        iid = live_interviewer["id"]
        summary = client.get(f"/api/v1/interviewers/{iid}/insights/summary", headers=owner).json()
        assert summary["headline"] == "Executive Summary"
        assert summary["stats"]["session_count"] == 1
        assert summary["stats"]["total_duration_minutes"] == 0
        assert summary["stats"]["date_range"]["start"] == summary["stats"]["date_range"]["end"]
        assert summary["key_takeaways"][0] == "What is your role: Category manager for snacks"

    def test_cross_session_flag_off(self, client, owner, admin, live_interviewer):
        client.put("/api/v1/admin/flags/CROSS_SESSION_INSIGHTS", json={"enabled": False}, headers=admin)
        response = client.post(f"/api/v1/interviewers/{live_interviewer['id']}/insights/ask",
                               json={"question": "anything"}, headers=owner)
        assert response.status_code == 404
        summary = client.get(f"/api/v1/interviewers/{live_interviewer['id']}/insights/summary", headers=owner)
        assert summary.status_code == 404

    def test_test_session(self, client, owner, make_interviewer):
        iid = make_interviewer()["id"]
        session = client.post(f"/api/v1/interviewers/{iid}/test-session", headers=owner).json()
        assert session["conversation_type"] == "test"
        assert session["status"] == "in_progress"
