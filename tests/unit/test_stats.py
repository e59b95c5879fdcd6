"""Tests for per-interviewer session statistics."""
from datetime import datetime, timedelta

from models import InterviewSession
from services.stats import interviewer_stats, last_interview_date

NOW = datetime(2024, 6, 1)


def _session(days_ago, completed=True, duration=None):
    return InterviewSession(started_at=NOW - timedelta(days=days_ago), completed=completed, duration_sec=duration)


class TestInterviewerStats:

    def test_no_sessions(self):
        assert interviewer_stats([], NOW) == {
            "total_interviews": 0,
            "completed_interviews": 0,
            "average_duration_sec": 0,
            "completion_rate": 0,
            "last_7_days": 0,
            "last_interview_date": None,
        }

    def test_mixed_sessions(self):
        sessions = [
            _session(1, duration=600),
            _session(3, completed=False, duration=120),
            _session(10, duration=None),
            _session(20, duration=900),
        ]
        stats = interviewer_stats(sessions, NOW)
        assert stats["total_interviews"] == 4
        assert stats["completed_interviews"] == 3
        assert stats["completion_rate"] == 0.75
        assert stats["average_duration_sec"] == 405
        assert stats["last_7_days"] == 2
        assert stats["last_interview_date"] == (NOW - timedelta(days=1)).isoformat()

    def test_last_interview_date(self):
        assert last_interview_date([_session(5), _session(2)]) == NOW - timedelta(days=2)
        assert last_interview_date([]) is None
