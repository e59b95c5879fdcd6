"""Profile endpoints: sign-up, the current user and user search."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from database import get_db
from deps import get_current_user, is_admin
from models import Profile
from schemas import ProfileCreate, ProfileUpdate
from services.sharing import search_profiles

router = APIRouter(prefix="/api/v1/users", tags=["users"])


def _profile_to_response(p: Profile, db: Session = None) -> dict:
    response = {
        "id": p.id,
        "email": p.email,
        "name": p.name,
        "department": p.department,
        "avatar_url": p.avatar_url,
        "is_active": bool(p.is_active),
        "created_at": p.created_at.isoformat() if p.created_at else None,
    }
    if db is not None:
        response["is_admin"] = is_admin(db, p.id)
    return response


@router.post("")
async def create_profile(req: ProfileCreate, db: Session = Depends(get_db)):
    email = req.email.strip().lower()
    if "@" not in email:
        raise HTTPException(status_code=400, detail="A valid email is required")
    if db.query(Profile).filter(Profile.email == email).first():
        raise HTTPException(status_code=409, detail="A profile with this email already exists")
    profile = Profile(email=email, name=req.name or email.split("@")[0], department=req.department)
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return _profile_to_response(profile, db)


@router.get("/me")
async def get_me(user: Profile = Depends(get_current_user), db: Session = Depends(get_db)):
    return _profile_to_response(user, db)


@router.patch("/me")
async def update_me(
    req: ProfileUpdate,
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    for key, value in req.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(user, key, value)
    db.commit()
    db.refresh(user)
    return _profile_to_response(user, db)


@router.get("/search")
async def search_users(
    q: str = "",
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if len(q.strip()) < 2:
        return {"users": []}
    return {"users": [_profile_to_response(p) for p in search_profiles(db, q, exclude_ids=[user.id])]}
