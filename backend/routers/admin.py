"""Admin endpoints: feature flags, archetypes, user roles, agent config and LLM usage."""
import json
import logging
import importlib
from typing import Optional
from pydantic import BaseModel
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from deps import require_admin
from models import Profile, Archetype, UserRole
from schemas import ArchetypeCreate, ArchetypeUpdate, FeatureFlagUpdate, UserRoleUpdate
from services import feature_flags
from services.llm_tracker import get_usage_report, get_all_logs
from routers.settings import _archetype_to_response

logger = logging.getLogger("genie.admin")

router = APIRouter(prefix="/api/v1/admin", tags=["admin"], dependencies=[Depends(require_admin)])


# ═══════════════════════════════════════
# FEATURE FLAGS
# ═══════════════════════════════════════

@router.get("/flags")
async def list_flags(category: Optional[str] = None, db: Session = Depends(get_db)):
    if category and category not in feature_flags.FLAG_CATEGORIES:
        raise HTTPException(status_code=400, detail=f"Unknown category '{category}'")
    return {"flags": feature_flags.list_flags(db, category)}


@router.put("/flags/{key}")
async def set_flag(key: str, req: FeatureFlagUpdate, db: Session = Depends(get_db)):
    return feature_flags.set_flag(db, key, req.enabled)


@router.post("/flags/{key}/reset")
async def reset_flag(key: str, db: Session = Depends(get_db)):
    return feature_flags.reset_flag(db, key)


@router.post("/flags/refresh")
async def refresh_flags(db: Session = Depends(get_db)):
    return {"flags": feature_flags.flag_cache.refresh(db)}


# ═══════════════════════════════════════
# ARCHETYPES
# ═══════════════════════════════════════

@router.post("/archetypes")
async def create_archetype(req: ArchetypeCreate, db: Session = Depends(get_db)):
    if db.query(Archetype).filter(Archetype.id == req.id).first():
        raise HTTPException(status_code=409, detail=f"Archetype '{req.id}' already exists")
    data = req.model_dump()
    data["examples"] = json.dumps(data["examples"])
    archetype = Archetype(**data)
    db.add(archetype)
    db.commit()
    db.refresh(archetype)
    return _archetype_to_response(archetype)


@router.put("/archetypes/{archetype_id}")
async def update_archetype(archetype_id: str, req: ArchetypeUpdate, db: Session = Depends(get_db)):
    archetype = db.query(Archetype).filter(Archetype.id == archetype_id).first()
    if not archetype:
        raise HTTPException(status_code=404, detail="Archetype not found")
    for key, value in req.model_dump(exclude_unset=True, exclude_none=True).items():
        if key == "examples":
            value = json.dumps(value or [])
        setattr(archetype, key, value)
    db.commit()
    db.refresh(archetype)
    return _archetype_to_response(archetype)


@router.delete("/archetypes/{archetype_id}")
async def delete_archetype(archetype_id: str, db: Session = Depends(get_db)):
    archetype = db.query(Archetype).filter(Archetype.id == archetype_id).first()
    if not archetype:
        raise HTTPException(status_code=404, detail="Archetype not found")
    db.delete(archetype)
    db.commit()
    return {"status": "deleted"}


# ═══════════════════════════════════════
# USER ROLES
# ═══════════════════════════════════════

@router.put("/users/{user_id}/role")
async def set_user_role(
    user_id: str,
    req: UserRoleUpdate,
    admin: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = db.query(Profile).filter(Profile.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.id == admin.id and req.role != "admin":
        raise HTTPException(status_code=400, detail="You cannot remove your own admin role")

    existing = db.query(UserRole).filter(UserRole.user_id == user_id, UserRole.role == "admin").first()
    if req.role == "admin" and not existing:
        db.add(UserRole(user_id=user_id, role="admin"))
    elif req.role == "user" and existing:
        db.delete(existing)
    db.commit()
    logger.info(f"User {user_id} role set to {req.role} by {admin.id}")
    return {"user_id": user_id, "role": req.role}


# ═══════════════════════════════════════
# AGENT CONFIGURATION
# ═══════════════════════════════════════

class AgentConfigUpdate(BaseModel):
    use_mock: Optional[bool] = None
    model: Optional[str] = None


AGENT_MODULES = {
    "research_assistant": {
        "module": "agents.research_assistant",
        "display_name": "Research Assistant",
        "description": "Analyzes research descriptions and drafts interview guides",
    },
    "transcript_qa": {
        "module": "agents.transcript_qa",
        "display_name": "Transcript Q&A",
        "description": "Answers questions about transcripts with section citations",
    },
    "session_summarizer": {
        "module": "agents.session_summarizer",
        "display_name": "Session Summarizer",
        "description": "Writes the executive summary across completed sessions",
    },
}


def _agent_to_response(key: str, info: dict) -> dict:
    mod = importlib.import_module(info["module"])
    use_mock = getattr(mod, "USE_MOCK", True)
    return {
        "key": key,
        "display_name": info["display_name"],
        "description": info["description"],
        "model": getattr(mod, "MODEL", ""),
        "use_mock": use_mock,
        "status": "mock" if use_mock else "active",
    }


@router.get("/agents")
async def list_agents():
    return {"agents": [_agent_to_response(key, info) for key, info in AGENT_MODULES.items()]}


@router.patch("/agents/{agent_key}")
async def update_agent_config(agent_key: str, req: AgentConfigUpdate):
    """Switch an agent between mock and live mode, or change its model, for this process."""
    info = AGENT_MODULES.get(agent_key)
    if not info:
        raise HTTPException(status_code=404, detail=f"Agent '{agent_key}' not found")
    mod = importlib.import_module(info["module"])
    if req.use_mock is not None:
        setattr(mod, "USE_MOCK", req.use_mock)
    if req.model:
        setattr(mod, "MODEL", req.model)
    return _agent_to_response(agent_key, info)


# ═══════════════════════════════════════
# LLM USAGE REPORTING
# ═══════════════════════════════════════

@router.get("/llm/usage")
async def llm_usage_report(days: int = 7):
    """Get LLM usage report for the last N days."""
    return get_usage_report(days)


@router.get("/llm/logs")
async def llm_usage_logs(limit: int = 100):
    """Get raw LLM usage logs."""
    return {"logs": get_all_logs(limit)}
