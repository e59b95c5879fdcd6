"""
Interviewer lifecycle.

  draft -> ready_to_test -> live <-> paused -> archived -> deleted (trash) -> gone

Transitions mutate the Interviewer in place; the caller commits.
"""
import math
import logging
from datetime import datetime, timedelta
from typing import Optional, List
from sqlalchemy.orm import Session

from models import Interviewer
from services.errors import ConflictError, ActiveCallInProgress

logger = logging.getLogger("genie.lifecycle")

STATUSES = ("draft", "ready_to_test", "live", "paused", "archived", "deleted")
TRASH_RETENTION_DAYS = 30

VIEWS = ("overview", "archive", "trash")


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.utcnow()


def _set_status(interviewer: Interviewer, status: str, now: datetime):
    logger.info(f"Interviewer {interviewer.id}: {interviewer.status} -> {status}")
    interviewer.status = status
    interviewer.updated_at = now


def _ensure_not_trashed(interviewer: Interviewer):
    if interviewer.deleted_at is not None:
        raise ConflictError("Interviewer is in the trash; restore it first")


def deploy(interviewer: Interviewer, now: Optional[datetime] = None) -> Interviewer:
    _ensure_not_trashed(interviewer)
    if interviewer.status == "live":
        return interviewer
    if interviewer.status not in ("draft", "ready_to_test"):
        raise ConflictError(f"Cannot deploy an interviewer that is {interviewer.status}")
    _set_status(interviewer, "live", _now(now))
    return interviewer


def toggle_status(interviewer: Interviewer, now: Optional[datetime] = None) -> Interviewer:
    _ensure_not_trashed(interviewer)
    if interviewer.status == "live":
        _set_status(interviewer, "paused", _now(now))
    elif interviewer.status == "paused":
        _set_status(interviewer, "live", _now(now))
    else:
        raise ConflictError(f"Only live or paused interviewers can be toggled (status: {interviewer.status})")
    return interviewer


def activate(interviewer: Interviewer, now: Optional[datetime] = None) -> Interviewer:
    _ensure_not_trashed(interviewer)
    if interviewer.status == "live":
        return interviewer
    if interviewer.status != "paused":
        raise ConflictError(f"Cannot activate an interviewer that is {interviewer.status}")
    _set_status(interviewer, "live", _now(now))
    return interviewer


def archive(interviewer: Interviewer, now: Optional[datetime] = None) -> Interviewer:
    _ensure_not_trashed(interviewer)
    now = _now(now)
    interviewer.archived_at = now
    _set_status(interviewer, "archived", now)
    return interviewer


def unarchive(interviewer: Interviewer, now: Optional[datetime] = None) -> Interviewer:
    _ensure_not_trashed(interviewer)
    if interviewer.archived_at is None:
        raise ConflictError("Interviewer is not archived")
    interviewer.archived_at = None
    _set_status(interviewer, "paused", _now(now))
    return interviewer


def move_to_trash(interviewer: Interviewer, now: Optional[datetime] = None) -> Interviewer:
    if interviewer.deleted_at is not None:
        return interviewer
    if interviewer.has_active_call:
        raise ActiveCallInProgress()
    now = _now(now)
    # A live interviewer must not come back live after a restore
    interviewer.previous_status = "paused" if interviewer.status == "live" else interviewer.status
    interviewer.deleted_at = now
    _set_status(interviewer, "deleted", now)
    return interviewer


def restore(interviewer: Interviewer, now: Optional[datetime] = None) -> Interviewer:
    if interviewer.deleted_at is None:
        raise ConflictError("Interviewer is not in the trash")
    interviewer.deleted_at = None
    status = interviewer.previous_status or ("archived" if interviewer.archived_at else "paused")
    interviewer.previous_status = None
    _set_status(interviewer, status, _now(now))
    return interviewer


def permanently_delete(db: Session, interviewer: Interviewer):
    if interviewer.deleted_at is None:
        raise ConflictError("Move the interviewer to the trash before deleting it permanently")
    logger.info(f"Permanently deleting interviewer {interviewer.id}")
    # Guide, knowledge assets, collaborators and sessions cascade
    db.delete(interviewer)


def purge_expired_trash(db: Session, now: Optional[datetime] = None) -> int:
    cutoff = _now(now) - timedelta(days=TRASH_RETENTION_DAYS)
    expired = db.query(Interviewer).filter(
        Interviewer.deleted_at.isnot(None),
        Interviewer.deleted_at < cutoff,
    ).all()
    for interviewer in expired:
        db.delete(interviewer)
    if expired:
        logger.info(f"Purged {len(expired)} interviewer(s) past the {TRASH_RETENTION_DAYS}-day trash retention")
    return len(expired)


def days_until_deletion(deleted_at: datetime, now: Optional[datetime] = None) -> int:
    delete_at = deleted_at + timedelta(days=TRASH_RETENTION_DAYS)
    days_left = math.ceil((delete_at - _now(now)).total_seconds() / 86400)
    return max(0, days_left)


def filter_view(query, view: str):
    """Restrict an Interviewer query to one of the list views."""
    if view == "trash":
        return query.filter(Interviewer.deleted_at.isnot(None))
    if view == "archive":
        return query.filter(Interviewer.archived_at.isnot(None), Interviewer.deleted_at.is_(None))
    return query.filter(Interviewer.archived_at.is_(None), Interviewer.deleted_at.is_(None))


def in_view(interviewer: Interviewer, view: str) -> bool:
    if view == "trash":
        return interviewer.deleted_at is not None
    if view == "archive":
        return interviewer.archived_at is not None and interviewer.deleted_at is None
    return interviewer.archived_at is None and interviewer.deleted_at is None


def partition_by_view(interviewers: List[Interviewer]) -> dict:
    return {view: [i for i in interviewers if in_view(i, view)] for view in VIEWS}
