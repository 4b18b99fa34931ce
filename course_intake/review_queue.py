"""Review queue — read-only listings of scraped candidates.

Listing failures return [] so the moderation UI keeps working.
"""
import asyncio
import sys

from pydantic import ValidationError

from course_intake.db import CANDIDATES_TABLE, get_supabase
from course_intake.models import CourseCandidate


async def _list(filter_column: str, value, label: str) -> list[CourseCandidate]:
    try:
        client = await get_supabase()
        res = await client.table(CANDIDATES_TABLE) \
            .select("*") \
            .eq(filter_column, value) \
            .order("created_at", desc=True) \
            .execute()
    except Exception as e:
        print(f"[queue] Error getting {label}: {e}")
        return []

    candidates: list[CourseCandidate] = []
    for row in (res.data or []):
        try:
            candidates.append(CourseCandidate.model_validate(row))
        except ValidationError as e:
            print(f"  [queue] Skipping malformed candidate {row.get('id')}: {e.error_count()} invalid field(s)")
    return candidates


async def list_pending() -> list[CourseCandidate]:
    """Unreviewed candidates, newest first."""
    return await _list("is_reviewed", False, "pending scraped courses")


async def list_by_source(source: str) -> list[CourseCandidate]:
    """Every candidate (reviewed or not) from one scraper source, newest first."""
    return await _list("scraper_source", source, f"courses from source '{source}'")


def _print_backlog(candidates: list[CourseCandidate]):
    print(f"{len(candidates)} candidate(s)")
    for c in candidates:
        if c.is_reviewed:
            state = "approved" if c.is_approved else "rejected"
        else:
            state = "pending"
        dup = f"  dup={c.duplicate_of} ({c.duplicate_confidence}%)" if c.is_duplicate else ""
        print(f"  [{state:8}] {c.id}  {c.scraper_source:12} {c.title[:60]}{dup}")


async def _main(argv: list[str]):
    if argv:
        candidates = await list_by_source(argv[0])
    else:
        candidates = await list_pending()
    _print_backlog(candidates)


if __name__ == "__main__":
    asyncio.run(_main(sys.argv[1:]))
