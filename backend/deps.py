"""Request dependencies: the calling user, admin gate and feature-flag gates."""
from typing import Optional
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from database import get_db
from models import Profile, UserRole
from services.feature_flags import is_enabled


def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> Profile:
    """Resolve the caller from the X-User-Id header set by the auth proxy."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    user = db.query(Profile).filter(Profile.id == x_user_id).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def is_admin(db: Session, user_id: str) -> bool:
    return db.query(UserRole).filter(
        UserRole.user_id == user_id,
        UserRole.role == "admin",
    ).first() is not None


def require_admin(
    user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Profile:
    if not is_admin(db, user.id):
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def require_flag(key: str):
    def dependency(db: Session = Depends(get_db)):
        if not is_enabled(db, key):
            raise HTTPException(status_code=404, detail="Not found")
    return dependency
