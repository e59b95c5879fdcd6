"""
Feature flags backed by the feature_flags table.

Reads go through a process-wide cache keyed by flag name. The cache is
filled on the first read (or an explicit refresh) and considered stale
60 seconds after it was filled. Writes invalidate it.
"""
import time
import logging
import threading
from typing import Callable, Dict, List, Optional
from sqlalchemy.orm import Session

from models import FeatureFlag
from services.errors import NotFoundError

logger = logging.getLogger("genie.flags")

CACHE_TTL_SECONDS = 60

FEATURE_FLAGS = {
    "ASSISTED_CONFIGURATION": {
        "default_enabled": True,
        "description": "Genie-assisted interviewer creation flow",
        "category": "production",
    },
    "MANUAL_CONFIGURATION": {
        "default_enabled": True,
        "description": "Manual step-by-step interviewer creation",
        "category": "production",
    },
    "CROSS_SESSION_INSIGHTS": {
        "default_enabled": True,
        "description": "Cross-session Q&A and summary features",
        "category": "production",
    },
    "CHATBOT": {
        "default_enabled": True,
        "description": "Genie assistant chatbot in header",
        "category": "production",
    },
    "ROADMAP_EXAMPLE": {
        "default_enabled": False,
        "description": "Example future feature for exploration and design",
        "category": "roadmap",
    },
}

FLAG_CATEGORIES = ("production", "experimental", "roadmap")


class FlagCache:
    def __init__(self, ttl: float = CACHE_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._values: Dict[str, bool] = {}
        self._loaded_at: Optional[float] = None
        self._lock = threading.Lock()

    def is_stale(self) -> bool:
        return self._loaded_at is None or self.clock() - self._loaded_at >= self.ttl

    def refresh(self, db: Session) -> Dict[str, bool]:
        rows = db.query(FeatureFlag).all()
        with self._lock:
            self._values = {row.key: bool(row.enabled) for row in rows}
            self._loaded_at = self.clock()
            logger.debug(f"Feature flag cache refreshed ({len(self._values)} flags)")
            return dict(self._values)

    def invalidate(self):
        with self._lock:
            self._values = {}
            self._loaded_at = None

    def get(self, db: Session, key: str) -> bool:
        if self.is_stale():
            self.refresh(db)
        with self._lock:
            if key in self._values:
                return self._values[key]
        definition = FEATURE_FLAGS.get(key)
        return definition["default_enabled"] if definition else False


flag_cache = FlagCache()


def is_enabled(db: Session, key: str) -> bool:
    return flag_cache.get(db, key)


def _flag_to_response(flag: FeatureFlag) -> dict:
    definition = FEATURE_FLAGS.get(flag.key)
    default = definition["default_enabled"] if definition else None
    return {
        "key": flag.key,
        "enabled": bool(flag.enabled),
        "description": flag.description,
        "category": flag.category,
        "default_enabled": default,
        "has_override": default is not None and bool(flag.enabled) != default,
        "updated_at": flag.updated_at.isoformat() if flag.updated_at else None,
    }


def list_flags(db: Session, category: Optional[str] = None) -> List[dict]:
    query = db.query(FeatureFlag)
    if category:
        query = query.filter(FeatureFlag.category == category)
    return [_flag_to_response(f) for f in query.order_by(FeatureFlag.key).all()]


def _get_or_create(db: Session, key: str) -> FeatureFlag:
    flag = db.query(FeatureFlag).filter(FeatureFlag.key == key).first()
    if flag:
        return flag
    definition = FEATURE_FLAGS.get(key)
    if not definition:
        raise NotFoundError(f"Feature flag '{key}' not found")
    flag = FeatureFlag(
        key=key,
        enabled=definition["default_enabled"],
        description=definition["description"],
        category=definition["category"],
    )
    db.add(flag)
    return flag


def set_flag(db: Session, key: str, enabled: bool) -> dict:
    flag = _get_or_create(db, key)
    flag.enabled = enabled
    db.commit()
    db.refresh(flag)
    flag_cache.invalidate()
    logger.info(f"Feature flag {key} set to {enabled}")
    return _flag_to_response(flag)


def reset_flag(db: Session, key: str) -> dict:
    definition = FEATURE_FLAGS.get(key)
    if not definition:
        raise NotFoundError(f"Feature flag '{key}' has no default to reset to")
    return set_flag(db, key, definition["default_enabled"])
