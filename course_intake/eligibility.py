"""Merge update-eligibility for catalog entries.

A catalog entry may have its updated_at refreshed only when no learner is
actively working through it: either no in_progress rows exist, or every
in_progress row is older than the eligibility window (14 days by default).
Any lookup failure answers "not eligible".
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from course_intake.db import PROGRESS_TABLE, get_supabase
from course_intake.settings import IntakeSettings


async def can_update_course(course_id: str, settings: Optional[IntakeSettings] = None) -> bool:
    settings = settings or IntakeSettings()
    try:
        client = await get_supabase()
        in_progress = await client.table(PROGRESS_TABLE) \
            .select("id") \
            .eq("course_id", course_id) \
            .eq("status", "in_progress") \
            .limit(1) \
            .execute()
        if not in_progress.data:
            return True

        cutoff = datetime.now(timezone.utc) - timedelta(days=settings.eligibility_window_days)
        recent = await client.table(PROGRESS_TABLE) \
            .select("updated_at") \
            .eq("course_id", course_id) \
            .eq("status", "in_progress") \
            .gt("updated_at", cutoff.isoformat()) \
            .limit(1) \
            .execute()
    except Exception as e:
        print(f"[eligibility] Error checking progress for course {course_id}: {e}")
        return False

    return not recent.data
