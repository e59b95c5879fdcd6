"""Per-interviewer session statistics."""
from datetime import datetime, timedelta
from typing import List, Optional

from models import InterviewSession


def last_interview_date(sessions: List[InterviewSession]) -> Optional[datetime]:
    dates = [s.started_at for s in sessions if s.started_at]
    return max(dates) if dates else None


def interviewer_stats(sessions: List[InterviewSession], now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    total = len(sessions)
    completed = sum(1 for s in sessions if s.completed)
    durations = [s.duration_sec or 0 for s in sessions]
    week_ago = now - timedelta(days=7)
    last = last_interview_date(sessions)

    return {
        "total_interviews": total,
        "completed_interviews": completed,
        "average_duration_sec": round(sum(durations) / total) if total else 0,
        "completion_rate": completed / total if total else 0,
        "last_7_days": sum(1 for s in sessions if s.started_at and s.started_at > week_ago),
        "last_interview_date": last.isoformat() if last else None,
    }
