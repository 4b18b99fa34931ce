"""Approval / rejection of scraped candidates.

Each candidate leaves the queue exactly once. The terminal update is
conditioned on is_reviewed = false, so when two moderators race the second
write matches no row and becomes a no-op instead of a second promotion.

approve():
  merge   — high-confidence duplicate of an existing catalog row: refresh
            that row's updated_at (if no active learners) and return its id
  publish — otherwise insert a new catalog row and return the new id
reject():
  record the moderator's reason, no catalog change
"""
from datetime import datetime, timezone
from typing import Any, Optional

from course_intake.activity_log import log_scraper_activity
from course_intake.db import CANDIDATES_TABLE, CATALOG_TABLE, get_supabase
from course_intake.eligibility import can_update_course
from course_intake.hashing import generate_course_hash
from course_intake.models import CourseCandidate
from course_intake.settings import IntakeSettings, load_settings

_CONTENT_FIELDS = {
    "title", "summary", "category", "level", "hosting_type",
    "video_embed_url", "external_link", "image_url",
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def course_row_from_candidate(candidate: CourseCandidate) -> dict[str, Any]:
    """Catalog insert payload for a candidate being published."""
    row = candidate.model_dump(mode="json", include=_CONTENT_FIELDS)
    row.update({
        "is_published": True,
        "source_platform": candidate.scraper_source,
        "source_url": candidate.source_url,
        "hash_identifier": candidate.hash_identifier
            or generate_course_hash(candidate.title, candidate.scraper_source),
    })
    return row


def is_merge_candidate(candidate: CourseCandidate, settings: IntakeSettings) -> bool:
    return (
        candidate.is_duplicate
        and candidate.duplicate_confidence >= settings.merge_confidence
        and bool(candidate.duplicate_of)
    )


async def _fetch_candidate(client, candidate_id: str) -> Optional[CourseCandidate]:
    res = await client.table(CANDIDATES_TABLE).select("*").eq("id", candidate_id).limit(1).execute()
    if not res.data:
        return None
    return CourseCandidate.model_validate(res.data[0])


async def _catalog_exists(client, course_id: str) -> bool:
    res = await client.table(CATALOG_TABLE).select("id").eq("id", course_id).limit(1).execute()
    return bool(res.data)


async def _mark_reviewed(client, candidate_id: str, changes: dict[str, Any]) -> bool:
    """Conditional terminal update. False when the candidate was already reviewed."""
    res = await client.table(CANDIDATES_TABLE) \
        .update({**changes, "is_reviewed": True, "updated_at": _now()}) \
        .eq("id", candidate_id) \
        .eq("is_reviewed", False) \
        .execute()
    return bool(res.data)


async def _merge(client, candidate: CourseCandidate, settings: IntakeSettings) -> Optional[str]:
    target_id = candidate.duplicate_of

    if await can_update_course(target_id, settings):
        try:
            await client.table(CATALOG_TABLE).update({"updated_at": _now()}).eq("id", target_id).execute()
        except Exception as e:
            print(f"  [review] Error updating existing course {target_id}: {e}")
    else:
        print(f"  [review] Course {target_id} has active learners (or check failed), timestamp kept")

    try:
        marked = await _mark_reviewed(client, candidate.id, {"is_approved": True})
    except Exception as e:
        print(f"[review] Error marking merged candidate {candidate.id} approved: {e}")
        return None
    if not marked:
        print(f"[review] Candidate {candidate.id} was reviewed concurrently, merge skipped")
        return None

    await log_scraper_activity(candidate.scraper_source, "course_merged", "success", {
        "scrapedCourseId": candidate.id,
        "existingCourseId": target_id,
        "confidence": candidate.duplicate_confidence,
        "title": candidate.title,
    })
    return target_id


async def _discard_course(client, course_id: str):
    try:
        await client.table(CATALOG_TABLE).delete().eq("id", course_id).execute()
    except Exception as e:
        print(f"  [review] Error removing uncommitted course {course_id}: {e}")


async def _publish(client, candidate: CourseCandidate) -> Optional[str]:
    try:
        res = await client.table(CATALOG_TABLE).insert(course_row_from_candidate(candidate)).execute()
        course_id = res.data[0]["id"]
    except Exception as e:
        print(f"[review] Error creating new course from {candidate.id}: {e}")
        return None

    try:
        marked = await _mark_reviewed(client, candidate.id, {"is_approved": True})
    except Exception as e:
        print(f"[review] Error marking candidate {candidate.id} approved: {e}")
        marked = False

    if not marked:
        # Candidate stays pending, so the new row must not survive a retry
        print(f"[review] Candidate {candidate.id} not marked approved, rolling back course {course_id}")
        await _discard_course(client, course_id)
        return None

    await log_scraper_activity(candidate.scraper_source, "course_published", "success", {
        "scrapedCourseId": candidate.id,
        "courseId": course_id,
        "title": candidate.title,
    })
    return course_id


async def approve(candidate_id: str, settings: Optional[IntakeSettings] = None) -> Optional[str]:
    """Publish or merge a candidate.

    Returns:
        The catalog course id the candidate now lives under, or None when the
        candidate is missing, already reviewed, or a storage write failed.
    """
    if settings is None:
        settings = await load_settings()

    try:
        client = await get_supabase()
        candidate = await _fetch_candidate(client, candidate_id)
        if candidate is None:
            print(f"[review] Scraped course {candidate_id} not found")
            return None
        if candidate.is_reviewed:
            print(f"[review] Scraped course {candidate_id} already reviewed")
            return None

        if is_merge_candidate(candidate, settings):
            if await _catalog_exists(client, candidate.duplicate_of):
                return await _merge(client, candidate, settings)
            print(f"  [review] Duplicate target {candidate.duplicate_of} is not a catalog course, publishing new row")

        return await _publish(client, candidate)
    except Exception as e:
        print(f"[review] Error approving scraped course {candidate_id}: {e}")
        return None


async def reject(candidate_id: str, reason: str) -> bool:
    """Mark a candidate rejected with the moderator's reason (may be empty)."""
    try:
        client = await get_supabase()
        marked = await _mark_reviewed(client, candidate_id, {"is_approved": False, "review_notes": reason})
    except Exception as e:
        print(f"[review] Error rejecting scraped course {candidate_id}: {e}")
        return False

    if not marked:
        print(f"[review] Scraped course {candidate_id} not found or already reviewed")
        return False
    return True
