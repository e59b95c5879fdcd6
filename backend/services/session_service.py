"""Interview sessions: start, complete, feedback, transcript Q&A and cross-session summaries."""
import json
import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from models import Interviewer, InterviewSession
from agents.session_summarizer import summarize_sessions, SessionSummaryInput
from agents.transcript_qa import answer_question, TranscriptQAInput
from services.citations import render_citations
from services.errors import ConflictError, ValidationError

logger = logging.getLogger("genie.sessions")

ACCEPTING_STATUSES = ("live",)


def load_transcript(session: InterviewSession) -> dict:
    return json.loads(session.transcript) if session.transcript else {"sections": []}


def load_messages(session: InterviewSession) -> List[dict]:
    return json.loads(session.qa_messages or "[]")


def session_to_response(session: InterviewSession) -> dict:
    return {
        "id": session.id,
        "interviewer_id": session.interviewer_id,
        "interviewer_name": session.interviewer.name if session.interviewer else None,
        "conversation_type": session.conversation_type,
        "respondent_name": session.respondent_name,
        "respondent_email": session.respondent_email,
        "status": session.status,
        "started_at": session.started_at.isoformat() if session.started_at else None,
        "ended_at": session.ended_at.isoformat() if session.ended_at else None,
        "duration_sec": session.duration_sec,
        "completed": bool(session.completed),
        "transcript": load_transcript(session),
        "feedback": json.loads(session.feedback) if session.feedback else None,
    }


def is_accepting_sessions(interviewer: Interviewer) -> bool:
    return interviewer.status in ACCEPTING_STATUSES and interviewer.deleted_at is None


def start_session(db: Session, interviewer: Interviewer, conversation_type: str = "live",
                  respondent_name: Optional[str] = None, respondent_email: Optional[str] = None) -> InterviewSession:
    # Test conversations are allowed before the interviewer goes live
    if conversation_type == "live" and not is_accepting_sessions(interviewer):
        raise ConflictError("This interview is currently unavailable", code="unavailable")
    if conversation_type == "test" and interviewer.deleted_at is not None:
        raise ConflictError("Interviewer is in the trash")

    session = InterviewSession(
        interviewer_id=interviewer.id,
        conversation_type=conversation_type,
        respondent_name=respondent_name,
        respondent_email=respondent_email,
        status="in_progress",
        started_at=datetime.utcnow(),
    )
    db.add(session)
    db.flush()
    logger.info(f"Session {session.id} started for interviewer {interviewer.id} ({conversation_type})")
    return session


def complete_session(session: InterviewSession, transcript: dict, completed: bool = True,
                     now: Optional[datetime] = None) -> InterviewSession:
    if session.status != "in_progress":
        raise ConflictError("Session has already ended")
    now = now or datetime.utcnow()
    session.transcript = json.dumps(transcript)
    session.ended_at = now
    session.duration_sec = int((now - session.started_at).total_seconds()) if session.started_at else 0
    session.completed = completed
    session.status = "completed" if completed else "abandoned"
    return session


def record_feedback(session: InterviewSession, rating: str, negative_reason: Optional[str] = None) -> dict:
    if rating == "negative" and not (negative_reason or "").strip():
        raise ValidationError("Tell us what went wrong")
    feedback = {
        "rating": rating,
        "negative_reason": negative_reason.strip() if rating == "negative" else None,
        "submitted_at": datetime.utcnow().isoformat(),
    }
    session.feedback = json.dumps(feedback)
    return feedback


def _message(role: str, content: str, citations: Optional[List[str]] = None, segments: Optional[List[dict]] = None) -> dict:
    return {
        "role": role,
        "content": content,
        "citations": citations or [],
        "segments": segments or [{"type": "text", "text": content}],
        "created_at": datetime.utcnow().isoformat(),
    }


async def ask_session_question(session: InterviewSession, question: str) -> dict:
    """Append the question and a cited answer to the session's Q&A thread."""
    question = question.strip()
    if not question:
        raise ValidationError("Question cannot be empty")

    transcript = load_transcript(session)
    messages = load_messages(session)
    messages.append(_message("user", question))

    result = await answer_question(TranscriptQAInput(question=question, sections=transcript.get("sections", [])))
    answer = _message(
        "assistant",
        result.content,
        citations=result.citations,
        segments=render_citations(result.content, result.citations, transcript),
    )
    messages.append(answer)
    session.qa_messages = json.dumps(messages)
    return answer


def combined_transcript(sessions: List[InterviewSession]) -> dict:
    """Merge completed session transcripts; section ids become "<session_id>:<section_id>"."""
    sections = []
    for session in sessions:
        if not session.completed:
            continue
        for section in load_transcript(session).get("sections", []):
            merged = dict(section)
            merged["id"] = f"{session.id}:{section.get('id')}"
            merged["session_id"] = session.id
            sections.append(merged)
    return {"sections": sections}


async def ask_across_sessions(sessions: List[InterviewSession], question: str) -> dict:
    question = question.strip()
    if not question:
        raise ValidationError("Question cannot be empty")
    transcript = combined_transcript(sessions)
    result = await answer_question(TranscriptQAInput(question=question, sections=transcript["sections"]))
    return {
        "content": result.content,
        "citations": result.citations,
        "segments": render_citations(result.content, result.citations, transcript),
        "session_count": len({s["session_id"] for s in transcript["sections"]}),
    }


def summary_stats(sessions: List[InterviewSession]) -> dict:
    """Session count, date range and total duration of the completed sessions."""
    done = [s for s in sessions if s.completed]
    dates = [s.started_at for s in done if s.started_at]
    return {
        "session_count": len(done),
        "date_range": {"start": min(dates).isoformat(), "end": max(dates).isoformat()} if dates else None,
        "total_duration_minutes": round(sum(s.duration_sec or 0 for s in done) / 60),
    }


async def summarize_across_sessions(sessions: List[InterviewSession]) -> dict:
    stats = summary_stats(sessions)
    transcript = combined_transcript(sessions)
    result = await summarize_sessions(SessionSummaryInput(
        sections=transcript["sections"],
        session_count=stats["session_count"],
    ))
    return {
        "headline": result.headline,
        "narrative_paragraph": result.narrative_paragraph,
        "key_takeaways": result.key_takeaways,
        "stats": stats,
    }
