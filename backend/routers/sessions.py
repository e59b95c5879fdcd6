"""Session endpoints: transcript, search, Q&A, feedback, and the public respondent flow."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from database import get_db
from deps import get_current_user
from models import Profile, Interviewer, InterviewSession
from schemas import SessionStart, SessionComplete, SessionFeedbackRequest, QuestionRequest
from services import session_service
from services.citations import search_transcript
from services.contact import contact_for
from services.permissions import require_interviewer_role

router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])
public_router = APIRouter(prefix="/api/v1/public", tags=["public"])


def _load_session(db: Session, session_id: str) -> InterviewSession:
    session = db.query(InterviewSession).filter(InterviewSession.id == session_id).first()
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _load_visible_session(db: Session, session_id: str, user: Profile) -> InterviewSession:
    session = _load_session(db, session_id)
    require_interviewer_role(db, session.interviewer, user.id)
    return session


@router.get("/{session_id}")
async def get_session(
    session_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return session_service.session_to_response(_load_visible_session(db, session_id, user))


@router.get("/{session_id}/transcript/search")
async def search_session_transcript(
    session_id: str,
    q: str = "",
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    session = _load_visible_session(db, session_id, user)
    return search_transcript(session_service.load_transcript(session), q)


@router.post("/{session_id}/feedback")
async def submit_feedback(
    session_id: str,
    req: SessionFeedbackRequest,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    session = _load_visible_session(db, session_id, user)
    feedback = session_service.record_feedback(session, req.rating, req.negative_reason)
    db.commit()
    return feedback


@router.get("/{session_id}/qa")
async def get_qa_thread(
    session_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    session = _load_visible_session(db, session_id, user)
    return {"messages": session_service.load_messages(session)}


@router.post("/{session_id}/qa")
async def ask_question(
    session_id: str,
    req: QuestionRequest,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    session = _load_visible_session(db, session_id, user)
    answer = await session_service.ask_session_question(session, req.question)
    db.commit()
    return answer


# ═══════════════════════════════════════
# PUBLIC (respondent-facing, no auth)
# ═══════════════════════════════════════

@public_router.get("/interviews/{link_id}")
async def get_public_interview(link_id: str, db: Session = Depends(get_db)):
    interviewer = db.query(Interviewer).filter(Interviewer.link_id == link_id).first()
    if not interviewer:
        raise HTTPException(status_code=404, detail="Interview not found")

    available = session_service.is_accepting_sessions(interviewer)
    response = {
        "link_id": link_id,
        "available": available,
        "name": interviewer.name,
    }
    if available:
        response.update({
            "description": interviewer.description,
            "channel": interviewer.channel,
            "language": interviewer.language,
            "target_duration_min": interviewer.target_duration_min,
            "introduction": interviewer.guide.introduction if interviewer.guide else "",
            "contact": contact_for(interviewer),
        })
    return response


@public_router.post("/interviews/{link_id}/sessions")
async def start_public_session(link_id: str, req: SessionStart, db: Session = Depends(get_db)):
    interviewer = db.query(Interviewer).filter(Interviewer.link_id == link_id).first()
    if not interviewer:
        raise HTTPException(status_code=404, detail="Interview not found")
    session = session_service.start_session(
        db, interviewer, "live", respondent_name=req.respondent_name, respondent_email=req.respondent_email,
    )
    db.commit()
    db.refresh(session)
    return {"session_id": session.id, "status": session.status}


@public_router.post("/sessions/{session_id}/complete")
async def complete_public_session(session_id: str, req: SessionComplete, db: Session = Depends(get_db)):
    session = _load_session(db, session_id)
    session_service.complete_session(session, req.transcript.model_dump(), req.completed)
    db.commit()
    return {"session_id": session.id, "status": session.status, "duration_sec": session.duration_sec}
