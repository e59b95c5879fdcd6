"""Settings endpoints: flags the client needs, the archetype catalog, system config."""
import os
import json
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from deps import get_current_user
from models import Profile, Archetype
from services.catalog import CHANNELS, PRICE_BY_CHANNEL, PROJECT_TYPES
from services.feature_flags import FEATURE_FLAGS, is_enabled

router = APIRouter(prefix="/api/v1/settings", tags=["settings"])


def _archetype_to_response(a: Archetype) -> dict:
    return {
        "id": a.id,
        "title": a.title,
        "description": a.description,
        "icon": a.icon,
        "use_case": a.use_case,
        "examples": json.loads(a.examples or "[]"),
    }


@router.get("/flags")
async def get_enabled_flags(
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Current value of every known flag, read through the cache."""
    return {"flags": {key: is_enabled(db, key) for key in FEATURE_FLAGS}}


@router.get("/archetypes")
async def list_archetypes(db: Session = Depends(get_db)):
    archetypes = db.query(Archetype).order_by(Archetype.title).all()
    return {"archetypes": [_archetype_to_response(a) for a in archetypes]}


@router.get("/catalog")
async def get_catalog():
    return {
        "channels": [{"id": c, "price_per_interview_usd": PRICE_BY_CHANNEL[c]} for c in CHANNELS],
        "project_types": list(PROJECT_TYPES),
    }


# ═══════════════════════════════════════
# SYSTEM CONFIGURATION
# ═══════════════════════════════════════

@router.get("/system")
async def system_config():
    """Get system configuration and environment info."""
    return {
        "mistral_api_key_set": bool(os.environ.get("MISTRAL_API_KEY")),
        "database_url_set": bool(os.environ.get("DATABASE_URL")),
        "frontend_url": os.environ.get("FRONTEND_URL", "http://localhost:3000"),
        "environment": os.environ.get("ENVIRONMENT", "development"),
        "version": "1.0.0",
    }
