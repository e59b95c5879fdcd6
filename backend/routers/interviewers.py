"""Interviewer endpoints: CRUD, lifecycle, guide, knowledge base, collaborators."""
from typing import Optional
import json
import logging
from datetime import datetime
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy import or_, select
from sqlalchemy.orm import Session
from database import get_db
from deps import get_current_user, require_flag
from models import (
    Profile, Interviewer, InterviewGuide, KnowledgeAsset, InterviewerCollaborator,
    ProjectMembership, Project, InterviewSession,
)
from schemas import (
    InterviewerCreate, InterviewerUpdate, DeployRequest, GuideUpdate, KnowledgeAssetCreate,
    CollaboratorInvite, CollaboratorRoleUpdate, OwnershipTransfer, QuestionRequest,
)
from services import lifecycle, session_service, sharing, sorting
from services.catalog import price_for_channel
from services.contact import provision_contact, contact_for
from services.document_service import extract_document_text
from services.errors import NotFoundError, ValidationError
from services.permissions import (
    get_interviewer_role, interviewer_capabilities, require_interviewer_role, require_project_role,
)
from services.stats import interviewer_stats, last_interview_date

logger = logging.getLogger("genie.interviewers")

router = APIRouter(prefix="/api/v1/interviewers", tags=["interviewers"])


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _interviewer_to_response(i: Interviewer, role: Optional[str] = None) -> dict:
    last = last_interview_date(i.sessions)
    response = {
        "id": i.id,
        "project_id": i.project_id,
        "project_name": i.project.name if i.project else "",
        "name": i.name,
        "description": i.description,
        "archetype": i.archetype,
        "status": i.status,
        "channel": i.channel,
        "language": i.language,
        "voice_id": i.voice_id,
        "persona_name": i.persona_name,
        "target_duration_min": i.target_duration_min,
        "contact": contact_for(i),
        "credentials_ready": bool(i.credentials_ready),
        "has_active_call": bool(i.has_active_call),
        "price_per_interview_usd": price_for_channel(i.channel),
        "interviews_count": len(i.sessions),
        "last_interview_date": _iso(last),
        "created_by": i.created_by,
        "created_at": _iso(i.created_at),
        "updated_at": _iso(i.updated_at),
        "archived_at": _iso(i.archived_at),
        "deleted_at": _iso(i.deleted_at),
        "days_until_deletion": lifecycle.days_until_deletion(i.deleted_at) if i.deleted_at else None,
    }
    if role is not None:
        response["permissions"] = interviewer_capabilities(role)
    return response


def _guide_to_response(g: InterviewGuide) -> dict:
    return {
        "id": g.id,
        "interviewer_id": g.interviewer_id,
        "raw_text": g.raw_text,
        "structured": json.loads(g.structured) if g.structured else None,
        "introduction": g.introduction,
        "closing_context": g.closing_context,
        "updated_at": _iso(g.updated_at),
    }


def _asset_to_response(a: KnowledgeAsset) -> dict:
    return {
        "id": a.id,
        "interviewer_id": a.interviewer_id,
        "title": a.title,
        "type": a.type,
        "content_text": a.content_text,
        "file_name": a.file_name,
        "file_size": a.file_size,
        "created_at": _iso(a.created_at),
    }


def _collaborator_to_response(c: InterviewerCollaborator) -> dict:
    return {
        "id": c.id,
        "interviewer_id": c.interviewer_id,
        "user_id": c.user_id,
        "user": {
            "id": c.user.id,
            "name": c.user.name,
            "email": c.user.email,
            "department": c.user.department,
        } if c.user else None,
        "role": c.role,
        "invited_by": c.invited_by,
        "created_at": _iso(c.created_at),
        "updated_at": _iso(c.updated_at),
    }


def _load(db: Session, interviewer_id: str) -> Interviewer:
    interviewer = db.query(Interviewer).filter(Interviewer.id == interviewer_id).first()
    if not interviewer:
        raise NotFoundError("Interviewer not found")
    return interviewer


def _visible_interviewers_query(db: Session, user_id: str):
    """Interviewers reachable through a project membership or a collaborator row."""
    project_ids = select(ProjectMembership.project_id).where(ProjectMembership.user_id == user_id)
    shared_ids = select(InterviewerCollaborator.interviewer_id).where(
        InterviewerCollaborator.user_id == user_id,
        InterviewerCollaborator.role != "none",
    )
    revoked_ids = select(InterviewerCollaborator.interviewer_id).where(
        InterviewerCollaborator.user_id == user_id,
        InterviewerCollaborator.role == "none",
    )
    return db.query(Interviewer).filter(
        or_(Interviewer.project_id.in_(project_ids), Interviewer.id.in_(shared_ids)),
        Interviewer.id.notin_(revoked_ids),
    )


# ═══════════════════════════════════════
# LISTING
# ═══════════════════════════════════════

@router.get("/sort-options")
async def get_sort_options(view: str = "overview"):
    if view not in lifecycle.VIEWS:
        raise HTTPException(status_code=400, detail=f"Unknown view '{view}'")
    field, direction = sorting.default_sort(view)
    return {
        "view": view,
        "options": sorting.sort_options_for_view(view),
        "default": {"field": field, "direction": direction},
    }


@router.get("")
async def list_interviewers(
    view: str = "overview",
    project_id: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
    direction: Optional[str] = None,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if view not in lifecycle.VIEWS:
        raise HTTPException(status_code=400, detail=f"Unknown view '{view}'")

    if view == "overview" and lifecycle.purge_expired_trash(db):
        db.commit()

    query = lifecycle.filter_view(_visible_interviewers_query(db, user.id), view)
    if project_id:
        query = query.filter(Interviewer.project_id == project_id)
    if search:
        query = query.filter(Interviewer.name.ilike(sharing.contains_pattern(search), escape="\\"))

    default_field, default_direction = sorting.default_sort(view)
    field = sort or default_field
    direction = direction or default_direction
    items = sorting.sort_items([_interviewer_to_response(i) for i in query.all()], field, direction)

    return {
        "interviewers": items,
        "total": len(items),
        "view": view,
        "sort": {"field": field, "direction": direction},
    }


# ═══════════════════════════════════════
# CRUD
# ═══════════════════════════════════════

@router.post("", dependencies=[Depends(require_flag("MANUAL_CONFIGURATION"))])
async def create_interviewer(
    req: InterviewerCreate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_project_role(db, req.project_id, user.id, "can_edit")
    interviewer = sharing.create_interviewer(db, user.id, **req.model_dump())
    db.commit()
    db.refresh(interviewer)
    return _interviewer_to_response(interviewer, "owner")


@router.get("/{interviewer_id}")
async def get_interviewer(
    interviewer_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    role = require_interviewer_role(db, interviewer, user.id)
    return _interviewer_to_response(interviewer, role)


@router.put("/{interviewer_id}")
async def update_interviewer(
    interviewer_id: str,
    req: InterviewerUpdate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    role = require_interviewer_role(db, interviewer, user.id, "can_edit")

    update_data = req.model_dump(exclude_unset=True, exclude_none=True)
    channel_changed = "channel" in update_data and update_data["channel"] != interviewer.channel
    for key, value in update_data.items():
        setattr(interviewer, key, value)
    if channel_changed:
        provision_contact(db, interviewer)

    interviewer.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(interviewer)
    return _interviewer_to_response(interviewer, role)


@router.post("/{interviewer_id}/provision-contact")
async def provision_interviewer_contact(
    interviewer_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    require_interviewer_role(db, interviewer, user.id, "can_edit")
    contact = provision_contact(db, interviewer)
    db.commit()
    return {"contact": contact, "credentials_ready": True}


# ═══════════════════════════════════════
# LIFECYCLE
# ═══════════════════════════════════════

@router.post("/{interviewer_id}/deploy")
async def deploy_interviewer(
    interviewer_id: str,
    req: DeployRequest,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    role = require_interviewer_role(db, interviewer, user.id, "can_edit")
    lifecycle.deploy(interviewer)
    project = db.query(Project).filter(Project.id == interviewer.project_id).first()
    if req.case_code and project and not project.case_code:
        project.case_code = req.case_code
    db.commit()
    db.refresh(interviewer)
    return _interviewer_to_response(interviewer, role)


def _transition(action: str, capability: str):
    async def endpoint(
        interviewer_id: str,
        user: Profile = Depends(get_current_user),
        db: Session = Depends(get_db),
    ):
        interviewer = _load(db, interviewer_id)
        role = require_interviewer_role(db, interviewer, user.id, capability)
        getattr(lifecycle, action)(interviewer)
        db.commit()
        db.refresh(interviewer)
        return _interviewer_to_response(interviewer, role)
    endpoint.__name__ = f"{action}_interviewer"
    return endpoint


router.add_api_route("/{interviewer_id}/toggle-status", _transition("toggle_status", "can_edit"), methods=["POST"])
router.add_api_route("/{interviewer_id}/activate", _transition("activate", "can_edit"), methods=["POST"])
router.add_api_route("/{interviewer_id}/archive", _transition("archive", "can_archive"), methods=["POST"])
router.add_api_route("/{interviewer_id}/unarchive", _transition("unarchive", "can_archive"), methods=["POST"])
router.add_api_route("/{interviewer_id}/trash", _transition("move_to_trash", "can_delete"), methods=["POST"])
router.add_api_route("/{interviewer_id}/restore", _transition("restore", "can_delete"), methods=["POST"])


@router.delete("/{interviewer_id}")
async def permanently_delete_interviewer(
    interviewer_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    require_interviewer_role(db, interviewer, user.id, "can_delete")
    lifecycle.permanently_delete(db, interviewer)
    db.commit()
    return {"status": "deleted"}


# ═══════════════════════════════════════
# SESSIONS & STATS
# ═══════════════════════════════════════

@router.get("/{interviewer_id}/stats")
async def get_interviewer_stats(
    interviewer_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    require_interviewer_role(db, interviewer, user.id)
    return interviewer_stats(interviewer.sessions)


@router.get("/{interviewer_id}/sessions")
async def list_interviewer_sessions(
    interviewer_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    require_interviewer_role(db, interviewer, user.id)
    sessions = db.query(InterviewSession).filter(
        InterviewSession.interviewer_id == interviewer.id,
    ).order_by(InterviewSession.started_at.desc()).all()
    return {
        "sessions": [
            {
                "id": s.id,
                "conversation_type": s.conversation_type,
                "respondent_name": s.respondent_name,
                "status": s.status,
                "started_at": _iso(s.started_at),
                "ended_at": _iso(s.ended_at),
                "duration_sec": s.duration_sec,
                "completed": bool(s.completed),
                "channel": interviewer.channel,
            }
            for s in sessions
        ],
        "total": len(sessions),
    }


# ═══════════════════════════════════════
# INTERVIEW GUIDE
# ═══════════════════════════════════════

@router.get("/{interviewer_id}/guide")
async def get_guide(
    interviewer_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    require_interviewer_role(db, interviewer, user.id)
    return _guide_to_response(interviewer.guide) if interviewer.guide else None


@router.put("/{interviewer_id}/guide")
async def update_guide(
    interviewer_id: str,
    req: GuideUpdate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    require_interviewer_role(db, interviewer, user.id, "can_edit")

    guide = interviewer.guide
    if guide is None:
        guide = InterviewGuide(interviewer_id=interviewer.id)
        db.add(guide)
    guide.raw_text = req.raw_text
    # Omitting the structured guide keeps the existing one
    if req.structured is not None:
        guide.structured = req.structured.model_dump_json()
    if req.introduction is not None:
        guide.introduction = req.introduction
    if req.closing_context is not None:
        guide.closing_context = req.closing_context
    guide.updated_at = datetime.utcnow()
    interviewer.updated_at = datetime.utcnow()

    db.commit()
    db.refresh(guide)
    return _guide_to_response(guide)


# ═══════════════════════════════════════
# KNOWLEDGE BASE
# ═══════════════════════════════════════

@router.get("/{interviewer_id}/knowledge")
async def list_knowledge(
    interviewer_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    require_interviewer_role(db, interviewer, user.id)
    return {"assets": [_asset_to_response(a) for a in interviewer.knowledge_assets]}


@router.post("/{interviewer_id}/knowledge")
async def add_knowledge(
    interviewer_id: str,
    req: KnowledgeAssetCreate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    require_interviewer_role(db, interviewer, user.id, "can_edit")
    if req.type == "text" and not req.content_text.strip():
        raise ValidationError("Text assets need content")
    asset = KnowledgeAsset(interviewer_id=interviewer.id, **req.model_dump())
    db.add(asset)
    db.commit()
    db.refresh(asset)
    return _asset_to_response(asset)


@router.post("/{interviewer_id}/knowledge/upload")
async def upload_knowledge(
    interviewer_id: str,
    file: UploadFile = File(...),
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    require_interviewer_role(db, interviewer, user.id, "can_edit")

    file_bytes = await file.read()
    filename = file.filename or "document.txt"
    text = extract_document_text(filename, file_bytes)

    asset = KnowledgeAsset(
        interviewer_id=interviewer.id,
        title=filename.rsplit(".", 1)[0],
        type="file",
        content_text=text,
        file_name=filename,
        file_size=len(file_bytes),
    )
    db.add(asset)
    db.commit()
    db.refresh(asset)
    return _asset_to_response(asset)


@router.delete("/{interviewer_id}/knowledge/{asset_id}")
async def remove_knowledge(
    interviewer_id: str,
    asset_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    require_interviewer_role(db, interviewer, user.id, "can_edit")
    asset = db.query(KnowledgeAsset).filter(
        KnowledgeAsset.id == asset_id,
        KnowledgeAsset.interviewer_id == interviewer.id,
    ).first()
    if asset:
        db.delete(asset)
        db.commit()
    return {"status": "deleted"}


# ═══════════════════════════════════════
# COLLABORATORS
# ═══════════════════════════════════════

@router.get("/{interviewer_id}/permissions")
async def get_my_permissions(
    interviewer_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    return interviewer_capabilities(get_interviewer_role(db, interviewer, user.id))


@router.get("/{interviewer_id}/collaborators")
async def list_collaborators(
    interviewer_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    require_interviewer_role(db, interviewer, user.id)
    return {"collaborators": [_collaborator_to_response(c) for c in interviewer.collaborators]}


@router.get("/{interviewer_id}/collaborators/search")
async def search_collaborator_candidates(
    interviewer_id: str,
    q: str = "",
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    require_interviewer_role(db, interviewer, user.id, "can_manage_collaborators")
    existing = [c.user_id for c in interviewer.collaborators]
    users = sharing.search_profiles(db, q, exclude_ids=existing)
    return {"users": [{"id": u.id, "name": u.name, "email": u.email, "department": u.department} for u in users]}


@router.post("/{interviewer_id}/collaborators")
async def invite_collaborator(
    interviewer_id: str,
    req: CollaboratorInvite,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    collab = sharing.invite_collaborator(db, interviewer, user.id, req.user_id, req.role)
    db.commit()
    db.refresh(collab)
    return _collaborator_to_response(collab)


@router.patch("/{interviewer_id}/collaborators/{collaborator_id}")
async def update_collaborator(
    interviewer_id: str,
    collaborator_id: str,
    req: CollaboratorRoleUpdate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    collab = sharing.update_collaborator_role(db, interviewer, user.id, collaborator_id, req.role)
    db.commit()
    db.refresh(collab)
    return _collaborator_to_response(collab)


@router.delete("/{interviewer_id}/collaborators/{collaborator_id}")
async def remove_collaborator(
    interviewer_id: str,
    collaborator_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    sharing.remove_collaborator(db, interviewer, user.id, collaborator_id)
    db.commit()
    return {"status": "removed"}


@router.post("/{interviewer_id}/transfer-ownership")
async def transfer_ownership(
    interviewer_id: str,
    req: OwnershipTransfer,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    sharing.transfer_ownership(db, interviewer, user.id, req.new_owner_id)
    db.commit()
    return {"status": "transferred"}


# ═══════════════════════════════════════
# TEST CONVERSATIONS & CROSS-SESSION INSIGHTS
# ═══════════════════════════════════════

@router.post("/{interviewer_id}/test-session")
async def start_test_session(
    interviewer_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    require_interviewer_role(db, interviewer, user.id, "can_edit")
    session = session_service.start_session(db, interviewer, "test", respondent_name=user.name)
    db.commit()
    db.refresh(session)
    return session_service.session_to_response(session)


@router.post("/{interviewer_id}/insights/ask", dependencies=[Depends(require_flag("CROSS_SESSION_INSIGHTS"))])
async def ask_interviewer_insights(
    interviewer_id: str,
    req: QuestionRequest,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    require_interviewer_role(db, interviewer, user.id)
    live_sessions = [s for s in interviewer.sessions if s.conversation_type == "live"]
    return await session_service.ask_across_sessions(live_sessions, req.question)


@router.get("/{interviewer_id}/insights/summary", dependencies=[Depends(require_flag("CROSS_SESSION_INSIGHTS"))])
async def get_interviewer_summary(
    interviewer_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    interviewer = _load(db, interviewer_id)
    require_interviewer_role(db, interviewer, user.id)
    live_sessions = [s for s in interviewer.sessions if s.conversation_type == "live"]
    return await session_service.summarize_across_sessions(live_sessions)
