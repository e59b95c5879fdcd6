"""Project membership and interviewer collaborator rules."""
import logging
from datetime import datetime
from typing import List
from sqlalchemy import or_
from sqlalchemy.orm import Session

from models import Profile, Project, ProjectMembership, Interviewer, InterviewerCollaborator
from services.contact import provision_contact
from services.errors import ConflictError, ForbiddenError, NotFoundError
from services.permissions import get_project_role, get_interviewer_role

logger = logging.getLogger("genie.sharing")

USER_SEARCH_LIMIT = 20


def contains_pattern(query: str) -> str:
    """LIKE pattern matching the query as a literal substring; use with escape="\\"."""
    escaped = query.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def search_profiles(db: Session, query: str, exclude_ids: List[str] = ()) -> List[Profile]:
    """Active users whose name, email or department contains the query."""
    pattern = contains_pattern(query)
    q = db.query(Profile).filter(
        Profile.is_active.is_(True),
        or_(
            Profile.name.ilike(pattern, escape="\\"),
            Profile.email.ilike(pattern, escape="\\"),
            Profile.department.ilike(pattern, escape="\\"),
        ),
    )
    if exclude_ids:
        q = q.filter(Profile.id.notin_(list(exclude_ids)))
    return q.order_by(Profile.name).limit(USER_SEARCH_LIMIT).all()


def _require_user(db: Session, user_id: str) -> Profile:
    user = db.query(Profile).filter(Profile.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


# ─── Project members ───

def _require_project_owner(db: Session, project_id: str, acting_user_id: str):
    if get_project_role(db, project_id, acting_user_id) != "owner":
        raise ForbiddenError("Only project owners can manage members")


def _owner_count(db: Session, project_id: str) -> int:
    return db.query(ProjectMembership).filter(
        ProjectMembership.project_id == project_id,
        ProjectMembership.role == "owner",
    ).count()


def create_project(db: Session, creator_id: str, **fields) -> Project:
    project = Project(**fields)
    db.add(project)
    db.flush()
    db.add(ProjectMembership(project_id=project.id, user_id=creator_id, role="owner"))
    db.flush()
    logger.info(f"Project {project.id} created by {creator_id}")
    return project


def create_interviewer(db: Session, creator_id: str, status: str = "ready_to_test", **fields) -> Interviewer:
    """Create an interviewer with provisioned contact details and its creator as owner."""
    interviewer = Interviewer(status=status, created_by=creator_id, **fields)
    db.add(interviewer)
    db.flush()
    provision_contact(db, interviewer)
    db.add(InterviewerCollaborator(interviewer_id=interviewer.id, user_id=creator_id, role="owner"))
    db.flush()
    logger.info(f"Interviewer {interviewer.id} created in project {interviewer.project_id} ({status})")
    return interviewer


def add_member(db: Session, project_id: str, acting_user_id: str, user_id: str, role: str) -> ProjectMembership:
    _require_project_owner(db, project_id, acting_user_id)
    _require_user(db, user_id)
    if get_project_role(db, project_id, user_id) is not None:
        raise ConflictError("User is already a member of this project")
    membership = ProjectMembership(project_id=project_id, user_id=user_id, role=role)
    db.add(membership)
    db.flush()
    return membership


def _get_membership(db: Session, project_id: str, user_id: str) -> ProjectMembership:
    membership = db.query(ProjectMembership).filter(
        ProjectMembership.project_id == project_id,
        ProjectMembership.user_id == user_id,
    ).first()
    if not membership:
        raise NotFoundError("Membership not found")
    return membership


def update_member_role(db: Session, project_id: str, acting_user_id: str, user_id: str, role: str) -> ProjectMembership:
    _require_project_owner(db, project_id, acting_user_id)
    membership = _get_membership(db, project_id, user_id)
    if membership.role == "owner" and role != "owner" and _owner_count(db, project_id) == 1:
        raise ConflictError("A project must keep at least one owner")
    membership.role = role
    membership.updated_at = datetime.utcnow()
    return membership


def remove_member(db: Session, project_id: str, acting_user_id: str, user_id: str):
    _require_project_owner(db, project_id, acting_user_id)
    membership = _get_membership(db, project_id, user_id)
    if membership.role == "owner" and _owner_count(db, project_id) == 1:
        raise ConflictError("A project must keep at least one owner")
    db.delete(membership)


# ─── Interviewer collaborators ───

def _require_interviewer_owner(db: Session, interviewer: Interviewer, acting_user_id: str, action: str):
    if get_interviewer_role(db, interviewer, acting_user_id) != "owner":
        raise ForbiddenError(f"Only owners can {action}")


def _get_collaborator(db: Session, interviewer: Interviewer, collaborator_id: str) -> InterviewerCollaborator:
    collab = db.query(InterviewerCollaborator).filter(
        InterviewerCollaborator.id == collaborator_id,
        InterviewerCollaborator.interviewer_id == interviewer.id,
    ).first()
    if not collab:
        raise NotFoundError("Collaborator not found")
    return collab


def invite_collaborator(db: Session, interviewer: Interviewer, acting_user_id: str, user_id: str, role: str) -> InterviewerCollaborator:
    _require_interviewer_owner(db, interviewer, acting_user_id, "invite collaborators")
    _require_user(db, user_id)
    existing = db.query(InterviewerCollaborator).filter(
        InterviewerCollaborator.interviewer_id == interviewer.id,
        InterviewerCollaborator.user_id == user_id,
    ).first()
    if existing:
        raise ConflictError("User already has access to this interviewer")
    collab = InterviewerCollaborator(
        interviewer_id=interviewer.id,
        user_id=user_id,
        role=role,
        invited_by=acting_user_id,
    )
    db.add(collab)
    db.flush()
    return collab


def update_collaborator_role(db: Session, interviewer: Interviewer, acting_user_id: str, collaborator_id: str, role: str) -> InterviewerCollaborator:
    _require_interviewer_owner(db, interviewer, acting_user_id, "change permissions")
    collab = _get_collaborator(db, interviewer, collaborator_id)
    if collab.user_id == acting_user_id:
        raise ConflictError("Cannot change your own permission")
    collab.role = role
    collab.updated_at = datetime.utcnow()
    return collab


def remove_collaborator(db: Session, interviewer: Interviewer, acting_user_id: str, collaborator_id: str):
    _require_interviewer_owner(db, interviewer, acting_user_id, "remove collaborators")
    collab = _get_collaborator(db, interviewer, collaborator_id)
    if collab.user_id == acting_user_id:
        raise ConflictError("Cannot remove yourself. Transfer ownership first.")
    db.delete(collab)


def transfer_ownership(db: Session, interviewer: Interviewer, acting_user_id: str, new_owner_id: str):
    current = db.query(InterviewerCollaborator).filter(
        InterviewerCollaborator.interviewer_id == interviewer.id,
        InterviewerCollaborator.user_id == acting_user_id,
        InterviewerCollaborator.role == "owner",
    ).first()
    if not current:
        raise ForbiddenError("Only owners can transfer ownership")
    new_owner = db.query(InterviewerCollaborator).filter(
        InterviewerCollaborator.interviewer_id == interviewer.id,
        InterviewerCollaborator.user_id == new_owner_id,
    ).first()
    if not new_owner:
        raise ConflictError("New owner must be an existing collaborator")

    now = datetime.utcnow()
    current.role = "editor"
    current.updated_at = now
    new_owner.role = "owner"
    new_owner.updated_at = now
    logger.info(f"Interviewer {interviewer.id} ownership: {acting_user_id} -> {new_owner_id}")
