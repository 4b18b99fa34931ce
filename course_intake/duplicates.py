"""Duplicate detection for scraped course candidates — CHECK ONLY.

Checks run in strict priority order, first match wins:
  1. Hash   — normalized title+source hash equals an existing row   -> hash_confidence (100)
  2. URL    — source URL equals an existing row's link exactly       -> url_confidence (95)
  3. Title  — best fuzzy match among rows sharing the title prefix:
                similarity > 0.8 and same source -> round(similarity * 90)
                similarity > 0.9, any source     -> round(similarity * 80)
  4. None   -> is_duplicate=False, confidence=0

Each step looks at the published catalog before the candidate queue, so a
candidate duplicating published content points duplicate_of at the catalog
row a merge can update.

Detection is advisory: lookup errors are printed and count as "no match".
"""
import math
from typing import Optional

from course_intake.activity_log import log_scraper_activity
from course_intake.db import CANDIDATES_TABLE, CATALOG_TABLE, get_supabase
from course_intake.hashing import generate_course_hash, normalize_source
from course_intake.models import DuplicateCheck, DuplicateStats
from course_intake.settings import IntakeSettings, load_settings
from course_intake.similarity import DEFAULT_SIMILARITY, SimilarityStrategy

# table -> (source column, URL columns)
_LOOKUP_TABLES = {
    CATALOG_TABLE: ("source_platform", ("source_url", "external_link", "video_embed_url")),
    CANDIDATES_TABLE: ("scraper_source", ("external_link", "video_embed_url")),
}


def _scaled(similarity: float, scale: int) -> int:
    return int(math.floor(similarity * scale + 0.5))


async def _first_id(client, table: str, column: str, value: str) -> Optional[str]:
    try:
        res = await client.table(table).select("id").eq(column, value).limit(1).execute()
    except Exception as e:
        print(f"  [detector] {table}.{column} lookup error: {e}")
        return None
    if res.data:
        return res.data[0]["id"]
    return None


async def _hash_match(client, course_hash: str) -> Optional[str]:
    for table in _LOOKUP_TABLES:
        existing_id = await _first_id(client, table, "hash_identifier", course_hash)
        if existing_id:
            return existing_id
    return None


async def _url_match(client, source_url: str) -> Optional[str]:
    for table, (_, url_columns) in _LOOKUP_TABLES.items():
        for column in url_columns:
            existing_id = await _first_id(client, table, column, source_url)
            if existing_id:
                return existing_id
    return None


async def _title_candidates(client, title: str, settings: IntakeSettings) -> list[tuple[str, str, str]]:
    """Rows whose title contains the title prefix, as (id, title, source).

    At most ``title_match_limit`` rows in total, catalog rows first.
    """
    prefix = title[:settings.title_prefix_length]
    rows: list[tuple[str, str, str]] = []
    for table, (source_column, _) in _LOOKUP_TABLES.items():
        try:
            res = await client.table(table) \
                .select(f"id,title,{source_column}") \
                .ilike("title", f"%{prefix}%") \
                .limit(settings.title_match_limit) \
                .execute()
        except Exception as e:
            print(f"  [detector] {table} title lookup error: {e}")
            continue
        for r in (res.data or []):
            rows.append((r["id"], r.get("title") or "", r.get(source_column) or ""))
    return rows[:settings.title_match_limit]


def score_title_match(
    similarity: float,
    same_source: bool,
    settings: IntakeSettings,
) -> int:
    """Confidence for a title-similarity match, 0 when below both thresholds."""
    if similarity > settings.same_source_threshold and same_source:
        return _scaled(similarity, settings.same_source_scale)
    if similarity > settings.cross_source_threshold:
        return _scaled(similarity, settings.cross_source_scale)
    return 0


async def _title_match(
    client,
    title: str,
    source_platform: str,
    settings: IntakeSettings,
    similarity: SimilarityStrategy,
) -> Optional[tuple[str, int]]:
    rows = await _title_candidates(client, title, settings)
    if not rows:
        return None

    # Ties keep the earlier row, so catalog rows win over queued candidates
    best_id, best_source, best_score = None, "", -1.0
    for row_id, row_title, row_source in rows:
        score = similarity.similarity(title, row_title)
        if score > best_score:
            best_id, best_source, best_score = row_id, row_source, score

    same_source = normalize_source(best_source) == normalize_source(source_platform)
    confidence = score_title_match(best_score, same_source, settings)
    if confidence:
        return best_id, confidence
    return None


async def handle_duplicate_detection(
    candidate_id: Optional[str],
    title: str,
    source: str,
    check: DuplicateCheck,
    settings: IntakeSettings,
) -> None:
    """Record a detected duplicate in the activity log (no-op for non-duplicates)."""
    if not check.is_duplicate:
        return
    status = "warning" if check.confidence >= settings.warning_confidence else "info"
    await log_scraper_activity(
        source,
        "duplicate_detected",
        status,
        {
            "scrapedCourseId": candidate_id,
            "existingCourseId": check.existing_id,
            "confidence": check.confidence,
            "matchType": check.match_type,
            "title": title,
        },
    )


async def detect_duplicate(
    title: str,
    source_platform: str,
    source_url: Optional[str] = None,
    *,
    candidate_id: Optional[str] = None,
    settings: Optional[IntakeSettings] = None,
    similarity: Optional[SimilarityStrategy] = None,
) -> DuplicateCheck:
    """Decide whether a scraped course already exists.

    Args:
        title:           Candidate title (empty titles are still compared)
        source_platform: Scraper source name, e.g. "youtube"
        source_url:      Embed URL or external link, enables the URL check
        candidate_id:    Id of the candidate being scored, recorded in the activity log
        settings:        Thresholds; loaded from scraper_settings when omitted
        similarity:      Title similarity strategy; Levenshtein ratio by default

    Returns:
        DuplicateCheck — never raises.
    """
    title = title or ""
    source_platform = source_platform or ""
    if settings is None:
        settings = await load_settings()
    if similarity is None:
        similarity = DEFAULT_SIMILARITY

    try:
        client = await get_supabase()
        check = DuplicateCheck()

        existing_id = await _hash_match(client, generate_course_hash(title, source_platform))
        if existing_id:
            check = DuplicateCheck(is_duplicate=True, existing_id=existing_id,
                                   confidence=settings.hash_confidence, match_type="hash")

        if not check.is_duplicate and source_url:
            existing_id = await _url_match(client, source_url)
            if existing_id:
                check = DuplicateCheck(is_duplicate=True, existing_id=existing_id,
                                       confidence=settings.url_confidence, match_type="url")

        if not check.is_duplicate:
            match = await _title_match(client, title, source_platform, settings, similarity)
            if match:
                check = DuplicateCheck(is_duplicate=True, existing_id=match[0],
                                       confidence=match[1], match_type="title")
    except Exception as e:
        print(f"[detector] Error checking for duplicate course '{title[:60]}': {e}")
        return DuplicateCheck()

    await handle_duplicate_detection(candidate_id, title, source_platform, check, settings)
    return check


async def get_duplicate_stats() -> DuplicateStats:
    """Totals for the moderation dashboard: scraped, flagged duplicate, per source."""
    try:
        client = await get_supabase()
        total = await client.table(CANDIDATES_TABLE).select("id", count="exact").execute()
        dupes = await client.table(CANDIDATES_TABLE) \
            .select("scraper_source", count="exact") \
            .eq("is_duplicate", True) \
            .execute()
    except Exception as e:
        print(f"[detector] Error getting duplicate stats: {e}")
        return DuplicateStats()

    by_source: dict[str, int] = {}
    for row in (dupes.data or []):
        source = row.get("scraper_source")
        if source:
            by_source[source] = by_source.get(source, 0) + 1

    return DuplicateStats(
        total_scraped=total.count or 0,
        duplicates_detected=dupes.count if dupes.count is not None else len(dupes.data or []),
        duplicates_by_source=by_source,
    )
