"""Sort options and ordering for the interviewer list views."""
from datetime import datetime
from typing import List, Optional

from services.errors import ValidationError

SORT_FIELDS = ("name", "created_at", "last_interview", "last_modified", "archived_at", "deleted_at")
SORT_DIRECTIONS = ("asc", "desc")

SORT_LABELS = {
    "name": "Name",
    "created_at": "Created",
    "last_interview": "Last Interview",
    "last_modified": "Modified",
    "archived_at": "Archived",
    "deleted_at": "Deleted",
}

BASE_SORT_OPTIONS = [
    {"field": "name", "direction": "asc", "label": "Name (A → Z)"},
    {"field": "name", "direction": "desc", "label": "Name (Z → A)"},
    {"field": "created_at", "direction": "desc", "label": "Created (Newest)"},
    {"field": "created_at", "direction": "asc", "label": "Created (Oldest)"},
    {"field": "last_interview", "direction": "desc", "label": "Last Interview (Recent)"},
    {"field": "last_interview", "direction": "asc", "label": "Last Interview (Oldest)"},
    {"field": "last_modified", "direction": "desc", "label": "Modified (Recent)"},
    {"field": "last_modified", "direction": "asc", "label": "Modified (Oldest)"},
]

ARCHIVE_SORT_OPTIONS = [
    {"field": "archived_at", "direction": "desc", "label": "Archived (Recent)"},
    {"field": "archived_at", "direction": "asc", "label": "Archived (Oldest)"},
] + BASE_SORT_OPTIONS

TRASH_SORT_OPTIONS = [
    {"field": "deleted_at", "direction": "desc", "label": "Deleted (Recent)"},
    {"field": "deleted_at", "direction": "asc", "label": "Deleted (Oldest)"},
] + BASE_SORT_OPTIONS

DEFAULT_SORT = {
    "overview": ("created_at", "desc"),
    "archive": ("archived_at", "desc"),
    "trash": ("deleted_at", "desc"),
}


def sort_options_for_view(view: str) -> List[dict]:
    if view == "archive":
        return ARCHIVE_SORT_OPTIONS
    if view == "trash":
        return TRASH_SORT_OPTIONS
    return BASE_SORT_OPTIONS


def default_sort(view: str) -> tuple:
    return DEFAULT_SORT.get(view, DEFAULT_SORT["overview"])


def _timestamp(value) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.timestamp()
    return datetime.fromisoformat(str(value).replace("Z", "+00:00")).timestamp()


def _sort_key(field: str):
    if field == "name":
        return lambda item: (item.get("name") or "").casefold()
    if field == "created_at":
        return lambda item: _timestamp(item.get("created_at")) or 0
    if field == "last_modified":
        return lambda item: _timestamp(item.get("updated_at")) or _timestamp(item.get("created_at")) or 0
    if field == "last_interview":
        # Missing dates sort below every real date, so they land first
        # ascending and last descending
        def key(item):
            ts = _timestamp(item.get("last_interview_date"))
            return (0, 0) if ts is None else (1, ts)
        return key
    # archived_at / deleted_at: missing counts as the epoch
    return lambda item: _timestamp(item.get(field)) or 0


def sort_items(items: List[dict], field: str, direction: str) -> List[dict]:
    """Return a new, stably sorted list of interviewer dicts."""
    if field not in SORT_FIELDS:
        raise ValidationError(f"Unknown sort field '{field}'")
    if direction not in SORT_DIRECTIONS:
        raise ValidationError(f"Unknown sort direction '{direction}'")
    return sorted(items, key=_sort_key(field), reverse=direction == "desc")
