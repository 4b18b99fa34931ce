"""Detector and review tunables.

Defaults live on IntakeSettings; any row in the `scraper_settings` table
(key, value) whose key matches a field overrides it for the current call.
"""
from pydantic import BaseModel, ValidationError

from course_intake.db import SETTINGS_TABLE, get_supabase


class IntakeSettings(BaseModel):
    # Confidence assigned per detection step
    hash_confidence: int = 100
    url_confidence: int = 95

    # Title similarity: same-source match needs > same_source_threshold,
    # any-source match needs > cross_source_threshold
    same_source_threshold: float = 0.8
    same_source_scale: int = 90
    cross_source_threshold: float = 0.9
    cross_source_scale: int = 80
    title_prefix_length: int = 10
    title_match_limit: int = 5

    # Candidates at or above this confidence merge into duplicate_of on approve
    merge_confidence: int = 90
    # Activity log severity cut-off for detected duplicates
    warning_confidence: int = 90

    # Learner progress younger than this blocks a merge timestamp bump
    eligibility_window_days: int = 14


async def load_settings() -> IntakeSettings:
    overrides: dict = {}
    try:
        client = await get_supabase()
        res = await client.table(SETTINGS_TABLE).select("key,value").execute()
        for row in (res.data or []):
            k = row.get("key")
            if k in IntakeSettings.model_fields:
                overrides[k] = row.get("value")
    except Exception as e:
        print(f"[settings] Warning: Could not load settings: {e}")
        return IntakeSettings()

    try:
        return IntakeSettings(**overrides)
    except ValidationError as e:
        print(f"[settings] Warning: Ignoring invalid settings {sorted(overrides)}: {e}")
        return IntakeSettings()
