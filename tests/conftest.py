"""Shared fixtures: every test talks to an in-memory Supabase."""

import pytest

from course_intake import db
from fake_supabase import FakeSupabase


@pytest.fixture
def fake_db(monkeypatch) -> FakeSupabase:
    fake = FakeSupabase()
    monkeypatch.setattr(db, "_client", fake)
    return fake
