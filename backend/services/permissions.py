"""Role lookups and the capabilities each role grants."""
from typing import Optional
from sqlalchemy.orm import Session

from models import ProjectMembership, InterviewerCollaborator, Interviewer
from services.errors import ForbiddenError, NotFoundError

PROJECT_ROLES = ("owner", "editor", "viewer")
INTERVIEWER_ROLES = ("owner", "editor", "viewer", "none")


def project_capabilities(role: Optional[str]) -> dict:
    return {
        "role": role,
        "is_owner": role == "owner",
        "can_edit": role in ("owner", "editor"),
        "can_view": role is not None,
        "can_manage_members": role == "owner",
        "can_delete": role == "owner",
    }


def interviewer_capabilities(role: Optional[str]) -> dict:
    # 'none' is an explicit revocation and grants nothing
    if role == "none":
        role = None
    return {
        "role": role,
        "is_owner": role == "owner",
        "can_edit": role in ("owner", "editor"),
        "can_view": role is not None,
        "can_manage_collaborators": role == "owner",
        "can_archive": role == "owner",
        "can_delete": role == "owner",
    }


def get_project_role(db: Session, project_id: str, user_id: str) -> Optional[str]:
    membership = db.query(ProjectMembership).filter(
        ProjectMembership.project_id == project_id,
        ProjectMembership.user_id == user_id,
    ).first()
    return membership.role if membership else None


def get_interviewer_role(db: Session, interviewer: Interviewer, user_id: str) -> Optional[str]:
    """Collaborator override first, then the project membership role."""
    collab = db.query(InterviewerCollaborator).filter(
        InterviewerCollaborator.interviewer_id == interviewer.id,
        InterviewerCollaborator.user_id == user_id,
    ).first()
    if collab:
        return None if collab.role == "none" else collab.role
    return get_project_role(db, interviewer.project_id, user_id)


def require_project_role(db: Session, project_id: str, user_id: str, capability: str = "can_view") -> str:
    role = get_project_role(db, project_id, user_id)
    caps = project_capabilities(role)
    if not caps["can_view"]:
        # Don't leak the existence of projects the user can't see
        raise NotFoundError("Project not found")
    if not caps[capability]:
        raise ForbiddenError(f"Your role ({role}) does not allow this action")
    return role


def require_interviewer_role(db: Session, interviewer: Interviewer, user_id: str, capability: str = "can_view") -> str:
    role = get_interviewer_role(db, interviewer, user_id)
    caps = interviewer_capabilities(role)
    if not caps["can_view"]:
        raise NotFoundError("Interviewer not found")
    if not caps[capability]:
        raise ForbiddenError(f"Your role ({role}) does not allow this action")
    return role
