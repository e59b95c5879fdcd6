"""Guided (assisted) interviewer configuration: draft state, AI assist, review and publish."""
import logging
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.orm import Session
from database import get_db
from deps import get_current_user, require_flag
from models import Profile, Project, GuidedDraft, InterviewGuide, KnowledgeAsset
from schemas import (
    GuidedConfigState, GuidedDraftCreate, GuidedContentUpdate, GuidedSettingsUpdate,
    GuidedTabUpdate, GuidedPublishRequest, GuideSchema, UploadedDocument,
)
from agents.research_assistant import analyze_context, draft_guide, ContextAnalysisInput, GuideDraftInput
from services import guided_config, lifecycle, sharing
from services.document_service import extract_document_text
from services.errors import ValidationError
from services.permissions import require_project_role

logger = logging.getLogger("genie.guided")

router = APIRouter(
    prefix="/api/v1/guided",
    tags=["guided"],
    dependencies=[Depends(require_flag("ASSISTED_CONFIGURATION"))],
)


def _load_state(draft: GuidedDraft) -> GuidedConfigState:
    return GuidedConfigState.model_validate_json(draft.state)


def _save_state(draft: GuidedDraft, state: GuidedConfigState):
    draft.state = state.model_dump_json()


def _draft_to_response(draft: GuidedDraft, state: GuidedConfigState = None, **extra) -> dict:
    state = state or _load_state(draft)
    response = {
        "id": draft.id,
        "interviewer_id": draft.interviewer_id,
        "created_at": draft.created_at.isoformat() if draft.created_at else None,
        "updated_at": draft.updated_at.isoformat() if draft.updated_at else None,
        **guided_config.describe_state(state),
    }
    response.update(extra)
    return response


def _load_draft(db: Session, draft_id: str, user: Profile) -> GuidedDraft:
    draft = db.query(GuidedDraft).filter(GuidedDraft.id == draft_id, GuidedDraft.user_id == user.id).first()
    if not draft:
        raise HTTPException(status_code=404, detail="Draft not found")
    return draft


def _ensure_editable(draft: GuidedDraft):
    if draft.interviewer_id:
        raise HTTPException(status_code=409, detail="Draft has already been published")


@router.post("")
async def create_draft(
    req: GuidedDraftCreate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if req.project_id:
        require_project_role(db, req.project_id, user.id, "can_edit")
    state = guided_config.new_state(req.project_id)
    draft = GuidedDraft(user_id=user.id, state=state.model_dump_json())
    db.add(draft)
    db.commit()
    db.refresh(draft)
    return _draft_to_response(draft, state)


@router.get("")
async def list_drafts(
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    drafts = db.query(GuidedDraft).filter(
        GuidedDraft.user_id == user.id,
        GuidedDraft.interviewer_id.is_(None),
    ).order_by(GuidedDraft.updated_at.desc()).all()
    result = []
    for d in drafts:
        state = _load_state(d)
        result.append({
            "id": d.id,
            "title": state.settings.title,
            "project_id": state.settings.project_id,
            "current_step": state.current_step,
            "updated_at": d.updated_at.isoformat() if d.updated_at else None,
        })
    return {"drafts": result, "total": len(result)}


@router.get("/{draft_id}")
async def get_draft(
    draft_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _draft_to_response(_load_draft(db, draft_id, user))


@router.patch("/{draft_id}/content")
async def update_content(
    draft_id: str,
    req: GuidedContentUpdate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    draft = _load_draft(db, draft_id, user)
    _ensure_editable(draft)
    state = _load_state(draft)
    for key, value in req.model_dump(exclude_unset=True, exclude_none=True).items():
        if key == "interview_guide":
            value = GuideSchema.model_validate(value)
        setattr(state, key, value)
    _save_state(draft, state)
    db.commit()
    return _draft_to_response(draft, state)


@router.patch("/{draft_id}/settings")
async def update_settings(
    draft_id: str,
    req: GuidedSettingsUpdate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    draft = _load_draft(db, draft_id, user)
    _ensure_editable(draft)
    if req.project_id:
        require_project_role(db, req.project_id, user.id, "can_edit")
    state = guided_config.update_settings(_load_state(draft), req)
    _save_state(draft, state)
    db.commit()
    return _draft_to_response(draft, state)


@router.put("/{draft_id}/tab")
async def switch_tab(
    draft_id: str,
    req: GuidedTabUpdate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    draft = _load_draft(db, draft_id, user)
    state = _load_state(draft)
    state.active_tab = req.tab
    _save_state(draft, state)
    db.commit()
    return _draft_to_response(draft, state)


@router.post("/{draft_id}/documents")
async def upload_document(
    draft_id: str,
    file: UploadFile = File(...),
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    draft = _load_draft(db, draft_id, user)
    _ensure_editable(draft)
    file_bytes = await file.read()
    filename = file.filename or "document.txt"
    text = extract_document_text(filename, file_bytes)

    state = _load_state(draft)
    state.uploaded_documents.append(UploadedDocument(file_name=filename, file_size=len(file_bytes), text=text))
    _save_state(draft, state)
    db.commit()
    return _draft_to_response(draft, state)


@router.delete("/{draft_id}/documents/{index}")
async def remove_document(
    draft_id: str,
    index: int,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    draft = _load_draft(db, draft_id, user)
    _ensure_editable(draft)
    state = _load_state(draft)
    if not 0 <= index < len(state.uploaded_documents):
        raise HTTPException(status_code=404, detail="Document not found")
    state.uploaded_documents.pop(index)
    _save_state(draft, state)
    db.commit()
    return _draft_to_response(draft, state)


# ═══════════════════════════════════════
# AI ASSIST
# ═══════════════════════════════════════

@router.post("/{draft_id}/analyze")
async def analyze_draft_context(
    draft_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    draft = _load_draft(db, draft_id, user)
    _ensure_editable(draft)
    state = _load_state(draft)
    if not state.context_dump.strip():
        raise ValidationError("Describe your research before asking Genie to analyze it")

    result = await analyze_context(ContextAnalysisInput(
        context_dump=state.context_dump,
        document_texts=[d.text for d in state.uploaded_documents if d.text],
    ))

    state.needs_clarification = result.needs_clarification
    state.clarification_questions = result.clarification_questions
    state.interview_context = result.interview_context
    # Keep anything the user already typed on the settings tab
    if not state.settings.title:
        state.settings.title = result.title
    if not state.settings.description:
        state.settings.description = result.description
    if not state.settings_reviewed:
        state.settings.archetype = result.archetype
        state.settings.archetype_confidence = result.archetype_confidence
        state.settings.target_duration = result.target_duration

    _save_state(draft, state)
    db.commit()
    logger.info(f"Draft {draft.id} analyzed (needs_clarification={result.needs_clarification})")
    return _draft_to_response(draft, state)


@router.post("/{draft_id}/draft-guide")
async def draft_interview_guide(
    draft_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    draft = _load_draft(db, draft_id, user)
    _ensure_editable(draft)
    state = _load_state(draft)
    if not state.interview_context.strip():
        raise ValidationError("The research brief is empty")

    result = await draft_guide(GuideDraftInput(
        interview_context=state.interview_context,
        follow_up_answers=state.follow_up_answers,
        archetype=state.settings.archetype,
        target_duration=state.settings.target_duration,
    ))
    state.introduction = result.introduction
    state.interview_guide = GuideSchema.model_validate(result.guide)
    state.closing_context = result.closing_context

    _save_state(draft, state)
    db.commit()
    return _draft_to_response(draft, state)


# ═══════════════════════════════════════
# NAVIGATION
# ═══════════════════════════════════════

@router.post("/{draft_id}/next")
async def next_step(
    draft_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    draft = _load_draft(db, draft_id, user)
    state = _load_state(draft)
    outcome = guided_config.go_next(state)
    _save_state(draft, state)
    db.commit()
    return _draft_to_response(draft, state, outcome=outcome)


@router.post("/{draft_id}/previous")
async def previous_step(
    draft_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    draft = _load_draft(db, draft_id, user)
    state = _load_state(draft)
    outcome = guided_config.go_previous(state)
    _save_state(draft, state)
    db.commit()
    return _draft_to_response(draft, state, outcome=outcome)


@router.get("/{draft_id}/review")
async def review_draft(
    draft_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    draft = _load_draft(db, draft_id, user)
    state = _load_state(draft)
    project = None
    if state.settings.project_id:
        p = db.query(Project).filter(Project.id == state.settings.project_id).first()
        if p:
            project = {"id": p.id, "name": p.name, "case_code": p.case_code}
    problems = guided_config.review_problems(state)
    return _draft_to_response(draft, state, project=project, problems=problems, ready=not problems)


@router.post("/{draft_id}/publish")
async def publish_draft(
    draft_id: str,
    req: GuidedPublishRequest,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    draft = _load_draft(db, draft_id, user)
    _ensure_editable(draft)
    state = _load_state(draft)
    problems = guided_config.review_problems(state)
    if problems:
        raise ValidationError("; ".join(problems))

    settings = state.settings
    require_project_role(db, settings.project_id, user.id, "can_edit")

    interviewer = sharing.create_interviewer(
        db,
        user.id,
        status="draft",
        project_id=settings.project_id,
        name=settings.title.strip(),
        description=settings.description,
        archetype=settings.archetype,
        channel=settings.channel,
        language=settings.language,
        voice_id=settings.voice_id or None,
        persona_name=settings.name.strip() or "Alex",
        target_duration_min=settings.target_duration,
    )
    db.add(InterviewGuide(
        interviewer_id=interviewer.id,
        raw_text=state.context_dump,
        structured=state.interview_guide.model_dump_json(),
        introduction=state.introduction,
        closing_context=state.closing_context,
    ))
    if state.interview_context.strip():
        db.add(KnowledgeAsset(
            interviewer_id=interviewer.id,
            title="Research brief",
            type="text",
            content_text=state.interview_context,
        ))
    for doc in state.uploaded_documents:
        db.add(KnowledgeAsset(
            interviewer_id=interviewer.id,
            title=doc.file_name.rsplit(".", 1)[0],
            type="file",
            content_text=doc.text,
            file_name=doc.file_name,
            file_size=doc.file_size,
        ))
    if req.deploy:
        lifecycle.deploy(interviewer)

    draft.interviewer_id = interviewer.id
    db.commit()
    logger.info(f"Draft {draft.id} published as interviewer {interviewer.id}")
    return {"interviewer_id": interviewer.id, "status": interviewer.status, "draft_id": draft.id}


@router.delete("/{draft_id}")
async def delete_draft(
    draft_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    draft = _load_draft(db, draft_id, user)
    db.delete(draft)
    db.commit()
    return {"status": "deleted"}
