"""Project endpoints: CRUD, members and the caller's capabilities."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from database import get_db
from deps import get_current_user
from models import Profile, Project, ProjectMembership
from schemas import ProjectCreate, ProjectUpdate, MemberAdd, MemberRoleUpdate
from services import lifecycle, sharing
from services.permissions import get_project_role, project_capabilities, require_project_role

router = APIRouter(prefix="/api/v1/projects", tags=["projects"])


def _project_to_response(p: Project, role: str = None) -> dict:
    counts = {view: len(items) for view, items in lifecycle.partition_by_view(p.interviewers).items()}
    return {
        "id": p.id,
        "name": p.name,
        "case_code": p.case_code,
        "project_type": p.project_type,
        "description": p.description,
        "role": role,
        "interviewer_counts": counts,
        "member_count": len(p.memberships),
        "created_at": p.created_at.isoformat() if p.created_at else None,
        "updated_at": p.updated_at.isoformat() if p.updated_at else None,
    }


def _member_to_response(m: ProjectMembership) -> dict:
    return {
        "id": m.id,
        "project_id": m.project_id,
        "user_id": m.user_id,
        "name": m.user.name if m.user else None,
        "email": m.user.email if m.user else None,
        "department": m.user.department if m.user else None,
        "role": m.role,
        "created_at": m.created_at.isoformat() if m.created_at else None,
    }


def _load(db: Session, project_id: str) -> Project:
    project = db.query(Project).filter(Project.id == project_id).first()
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.post("")
async def create_project(
    req: ProjectCreate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not req.name.strip():
        raise HTTPException(status_code=400, detail="Project name is required")
    project = sharing.create_project(db, user.id, **req.model_dump())
    db.commit()
    db.refresh(project)
    return _project_to_response(project, "owner")


@router.get("")
async def list_projects(
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    memberships = db.query(ProjectMembership).filter(ProjectMembership.user_id == user.id).all()
    projects = sorted(
        (_project_to_response(m.project, m.role) for m in memberships),
        key=lambda p: p["name"].casefold(),
    )
    return {"projects": projects, "total": len(projects)}


@router.get("/{project_id}")
async def get_project(
    project_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    role = require_project_role(db, project_id, user.id)
    return _project_to_response(_load(db, project_id), role)


@router.put("/{project_id}")
async def update_project(
    project_id: str,
    req: ProjectUpdate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    role = require_project_role(db, project_id, user.id, "can_edit")
    project = _load(db, project_id)
    for key, value in req.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(project, key, value)
    db.commit()
    db.refresh(project)
    return _project_to_response(project, role)


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_project_role(db, project_id, user.id, "can_delete")
    db.delete(_load(db, project_id))
    db.commit()
    return {"status": "deleted"}


@router.get("/{project_id}/permissions")
async def get_my_permissions(
    project_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return project_capabilities(get_project_role(db, project_id, user.id))


# ═══════════════════════════════════════
# MEMBERS
# ═══════════════════════════════════════

@router.get("/{project_id}/members")
async def list_members(
    project_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_project_role(db, project_id, user.id)
    project = _load(db, project_id)
    return {"members": [_member_to_response(m) for m in project.memberships]}


@router.post("/{project_id}/members")
async def add_member(
    project_id: str,
    req: MemberAdd,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_project_role(db, project_id, user.id)
    membership = sharing.add_member(db, project_id, user.id, req.user_id, req.role)
    db.commit()
    db.refresh(membership)
    return _member_to_response(membership)


@router.patch("/{project_id}/members/{user_id}")
async def update_member(
    project_id: str,
    user_id: str,
    req: MemberRoleUpdate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_project_role(db, project_id, user.id)
    membership = sharing.update_member_role(db, project_id, user.id, user_id, req.role)
    db.commit()
    db.refresh(membership)
    return _member_to_response(membership)


@router.delete("/{project_id}/members/{user_id}")
async def remove_member(
    project_id: str,
    user_id: str,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_project_role(db, project_id, user.id)
    sharing.remove_member(db, project_id, user.id, user_id)
    db.commit()
    return {"status": "removed"}
