"""Candidate submission: sanitise, score for duplicates, enqueue.

Duplicates are still enqueued with their metadata attached; the moderator
decides between merge and reject.
"""
import uuid
from typing import Any, Optional

from course_intake.activity_log import log_scraper_activity
from course_intake.db import CANDIDATES_TABLE, get_supabase
from course_intake.duplicates import detect_duplicate
from course_intake.hashing import generate_course_hash
from course_intake.models import CourseCandidate, CourseLevel, HostingType
from course_intake.settings import IntakeSettings
from course_intake.similarity import SimilarityStrategy

_TEXT_FIELDS = ("title", "summary", "external_link", "image_url", "video_embed_url")


def sanitize_scraped_course(data: dict[str, Any]) -> dict[str, Any]:
    """Trim text fields and fill defaults for a raw scraper record."""
    clean = dict(data)
    for field in _TEXT_FIELDS:
        clean[field] = (clean.get(field) or "").strip()
    clean["scraper_source"] = (clean.get("scraper_source") or "manual").strip()
    clean["category"] = clean.get("category") or "model"
    clean["level"] = clean.get("level") or CourseLevel.BEGINNER.value
    if not clean.get("hosting_type"):
        clean["hosting_type"] = (HostingType.EMBEDDED if clean["video_embed_url"] else HostingType.EXTERNAL).value
    clean["hash_identifier"] = clean.get("hash_identifier") \
        or generate_course_hash(clean["title"], clean["scraper_source"])
    return clean


async def submit_candidate(
    data: dict[str, Any],
    settings: Optional[IntakeSettings] = None,
    similarity: Optional[SimilarityStrategy] = None,
) -> Optional[CourseCandidate]:
    """Store one scraped course in the review queue.

    Returns:
        The stored candidate (with duplicate metadata), or None if the insert failed.
    """
    clean = sanitize_scraped_course(data)
    candidate_id = clean.get("id") or str(uuid.uuid4())
    source_url = clean["external_link"] or clean["video_embed_url"] or None

    check = await detect_duplicate(
        clean["title"],
        clean["scraper_source"],
        source_url,
        candidate_id=candidate_id,
        settings=settings,
        similarity=similarity,
    )

    try:
        candidate = CourseCandidate(**{
            **clean,
            "id": candidate_id,
            "is_reviewed": False,
            "is_approved": False,
            "review_notes": "",
            "is_duplicate": check.is_duplicate,
            "duplicate_of": check.existing_id,
            "duplicate_confidence": check.confidence,
        })
        row = candidate.model_dump(mode="json", exclude={"created_at", "updated_at"})
        client = await get_supabase()
        res = await client.table(CANDIDATES_TABLE).insert(row).execute()
    except Exception as e:
        print(f"[intake] Error inserting '{clean['title'][:60]}': {e}")
        await log_scraper_activity(clean["scraper_source"], "insert_course", "error", {
            "course": clean["title"],
            "error": str(e),
        })
        return None

    if res.data:
        candidate = CourseCandidate.model_validate(res.data[0])
    print(f"  [intake] queued '{candidate.title[:70]}'"
          + (f" (duplicate of {candidate.duplicate_of}, {candidate.duplicate_confidence}%)"
             if candidate.is_duplicate else ""))
    return candidate
