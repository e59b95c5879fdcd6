"""
Unit test fixtures.

Unit tests:
- Exercise one service module at a time
- Use transient model objects or the in-memory database from the root conftest
"""
from datetime import datetime

import pytest

from models import Interviewer


@pytest.fixture
def make_interviewer():
    def make(status="ready_to_test", **fields):
        fields.setdefault("id", "int-1")
        fields.setdefault("project_id", "proj-1")
        fields.setdefault("name", "Pricing study")
        fields.setdefault("channel", "web_link")
        fields.setdefault("has_active_call", False)
        fields.setdefault("created_at", datetime(2024, 1, 1))
        return Interviewer(status=status, **fields)
    return make
