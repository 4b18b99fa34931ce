"""Tests for the duplicate detector."""

import pytest

from course_intake.db import ACTIVITY_TABLE, CANDIDATES_TABLE, CATALOG_TABLE
from course_intake.duplicates import detect_duplicate, get_duplicate_stats, score_title_match
from course_intake.hashing import generate_course_hash
from course_intake.settings import IntakeSettings
from course_intake.similarity import LevenshteinSimilarity, TokenSetSimilarity


def _candidate(fake_db, title: str, source: str, **extra) -> dict:
    return fake_db.add(CANDIDATES_TABLE, {
        "title": title,
        "scraper_source": source,
        "hash_identifier": generate_course_hash(title, source),
        "is_reviewed": False,
        "is_approved": False,
        **extra,
    })


class _AlwaysSimilar:
    def similarity(self, a: str, b: str) -> float:
        return 1.0


@pytest.mark.asyncio
async def test_hash_match_is_full_confidence(fake_db) -> None:
    existing = _candidate(fake_db, "Intro to Pattern Making", "youtube")

    check = await detect_duplicate("  intro to  Pattern MAKING", "YouTube ")

    assert check.is_duplicate
    assert check.existing_id == existing["id"]
    assert check.confidence == 100
    assert check.match_type == "hash"


@pytest.mark.asyncio
async def test_hash_match_prefers_catalog_row(fake_db) -> None:
    _candidate(fake_db, "Runway Walk", "vimeo")
    course = fake_db.add(CATALOG_TABLE, {
        "title": "Runway Walk",
        "source_platform": "vimeo",
        "hash_identifier": generate_course_hash("Runway Walk", "vimeo"),
    })

    check = await detect_duplicate("Runway Walk", "vimeo")

    assert check.existing_id == course["id"]
    assert check.confidence == 100


@pytest.mark.asyncio
async def test_url_match_outranks_title_similarity(fake_db) -> None:
    existing = _candidate(
        fake_db, "Fashion Basics", "youtube",
        video_embed_url="https://www.youtube.com/watch?v=abc",
    )

    check = await detect_duplicate("Fashion Basics", "vimeo", "https://www.youtube.com/watch?v=abc")

    assert check.is_duplicate
    assert check.existing_id == existing["id"]
    assert check.confidence == 95
    assert check.match_type == "url"


@pytest.mark.asyncio
async def test_url_match_on_catalog_source_url(fake_db) -> None:
    course = fake_db.add(CATALOG_TABLE, {
        "title": "Something Else Entirely",
        "source_platform": "alison",
        "source_url": "https://alison.com/course/fashion-design",
    })

    check = await detect_duplicate("Fashion Design", "alison", "https://alison.com/course/fashion-design")

    assert check.existing_id == course["id"]
    assert check.confidence == 95


@pytest.mark.asyncio
async def test_confidence_grows_with_title_similarity(fake_db) -> None:
    _candidate(fake_db, "Fashion Basics 101", "youtube")
    settings = IntakeSettings()

    close = await detect_duplicate("Fashion Basics 10", "youtube", settings=settings)
    looser = await detect_duplicate("Fashion Basics", "youtube", settings=settings)
    unrelated = await detect_duplicate("Completely Unrelated Title", "youtube", settings=settings)

    assert close.is_duplicate and close.match_type == "title"
    assert looser.is_duplicate and looser.confidence == 79
    assert close.confidence > looser.confidence
    assert not unrelated.is_duplicate
    assert unrelated.confidence == 0


@pytest.mark.asyncio
async def test_cross_source_needs_very_high_similarity(fake_db) -> None:
    _candidate(fake_db, "Fashion Basics 101", "youtube")

    near_identical = await detect_duplicate("Fashion Basics 10", "vimeo")
    similar = await detect_duplicate("Fashion Basics", "vimeo")

    assert near_identical.is_duplicate
    assert near_identical.confidence == 78
    assert not similar.is_duplicate
    assert similar.confidence == 0


@pytest.mark.asyncio
async def test_same_source_below_threshold_is_not_duplicate(fake_db) -> None:
    _candidate(fake_db, "Fashion Basics 101", "youtube")

    check = await detect_duplicate("Fashion Basics for Kids", "youtube")

    assert not check.is_duplicate
    assert check.existing_id is None


@pytest.mark.asyncio
async def test_title_step_scores_at_most_limit_rows(fake_db) -> None:
    """The row budget is shared across tables; catalog rows take it first."""
    fake_db.add(CATALOG_TABLE, {"title": "Fashion Basics for Kids", "source_platform": "youtube"})
    fake_db.add(CATALOG_TABLE, {"title": "Fashion Basics for Teens", "source_platform": "youtube"})
    _candidate(fake_db, "Fashion Basics 101", "youtube")

    check = await detect_duplicate("Fashion Basics 10", "youtube", settings=IntakeSettings(title_match_limit=2))

    assert not check.is_duplicate
    assert check.existing_id is None


@pytest.mark.asyncio
async def test_empty_catalog_is_not_duplicate(fake_db) -> None:
    check = await detect_duplicate("Intro to Pattern Making", "youtube", "https://youtube.com/watch?v=x")

    assert not check.is_duplicate
    assert check.confidence == 0
    assert fake_db.rows(ACTIVITY_TABLE) == []


@pytest.mark.asyncio
async def test_empty_title_is_still_checked(fake_db) -> None:
    check = await detect_duplicate("", "youtube")
    assert not check.is_duplicate


@pytest.mark.asyncio
async def test_similarity_strategy_is_pluggable(fake_db) -> None:
    existing = _candidate(fake_db, "Fashion Basics 101", "youtube")

    check = await detect_duplicate("Fashion Basics", "youtube", similarity=_AlwaysSimilar())

    assert check.existing_id == existing["id"]
    assert check.confidence == 90


@pytest.mark.asyncio
async def test_thresholds_come_from_settings(fake_db) -> None:
    _candidate(fake_db, "Fashion Basics 101", "youtube")
    strict = IntakeSettings(same_source_threshold=0.95, cross_source_threshold=0.99)

    check = await detect_duplicate("Fashion Basics 10", "youtube", settings=strict)

    assert not check.is_duplicate


@pytest.mark.asyncio
async def test_lookup_failures_mean_no_match(fake_db) -> None:
    _candidate(fake_db, "Intro to Pattern Making", "youtube")
    fake_db.fail(CANDIDATES_TABLE)
    fake_db.fail(CATALOG_TABLE)

    check = await detect_duplicate("Intro to Pattern Making", "youtube", "https://x.test/a")

    assert not check.is_duplicate
    assert check.confidence == 0


@pytest.mark.asyncio
async def test_hash_lookup_failure_falls_through_to_next_check(fake_db) -> None:
    _candidate(fake_db, "Intro to Pattern Making", "youtube", external_link="https://x.test/a")
    fake_db.fail(CATALOG_TABLE)

    check = await detect_duplicate("Intro to Pattern Making", "youtube", "https://x.test/a")

    assert check.is_duplicate
    assert check.confidence == 100


@pytest.mark.asyncio
async def test_duplicate_writes_warning_activity(fake_db) -> None:
    existing = _candidate(fake_db, "Intro to Pattern Making", "youtube")

    await detect_duplicate("Intro to Pattern Making", "youtube", candidate_id="new-1")

    [log] = fake_db.rows(ACTIVITY_TABLE)
    assert log["function_name"] == "scraper:youtube"
    results = log["results"]
    assert results["action"] == "duplicate_detected"
    assert results["status"] == "warning"
    assert results["details"]["scrapedCourseId"] == "new-1"
    assert results["details"]["existingCourseId"] == existing["id"]
    assert results["details"]["confidence"] == 100
    assert results["details"]["title"] == "Intro to Pattern Making"


@pytest.mark.asyncio
async def test_lower_confidence_duplicate_logged_as_info(fake_db) -> None:
    _candidate(fake_db, "Fashion Basics 101", "youtube")

    await detect_duplicate("Fashion Basics", "youtube", candidate_id="new-2")

    [log] = fake_db.rows(ACTIVITY_TABLE)
    assert log["results"]["status"] == "info"
    assert log["results"]["details"]["confidence"] == 79


@pytest.mark.asyncio
async def test_activity_log_failure_does_not_block_detection(fake_db) -> None:
    _candidate(fake_db, "Intro to Pattern Making", "youtube")
    fake_db.fail(ACTIVITY_TABLE)

    check = await detect_duplicate("Intro to Pattern Making", "youtube")

    assert check.confidence == 100


def test_score_title_match_thresholds() -> None:
    settings = IntakeSettings()

    assert score_title_match(1.0, True, settings) == 90
    assert score_title_match(0.9, True, settings) == 81
    assert score_title_match(0.8, True, settings) == 0
    assert score_title_match(0.95, False, settings) == 76
    assert score_title_match(0.85, False, settings) == 0
    assert score_title_match(0.9, False, settings) == 0


def test_levenshtein_similarity_bounds() -> None:
    sim = LevenshteinSimilarity()

    assert sim.similarity("Fashion Basics", "  fashion basics ") == 1.0
    assert sim.similarity("abc", "xyz") == 0.0
    assert sim.similarity("Fashion Basics", "Fashion Basics 101") == 0.875


def test_token_set_similarity_ignores_word_order() -> None:
    sim = TokenSetSimilarity()

    assert sim.similarity("Fashion Draping Basics", "basics draping fashion") == 1.0
    assert sim.similarity("Fashion Draping", "Portrait Lighting") < 0.5


@pytest.mark.asyncio
async def test_duplicate_stats(fake_db) -> None:
    _candidate(fake_db, "A", "youtube", is_duplicate=True)
    _candidate(fake_db, "B", "youtube", is_duplicate=True)
    _candidate(fake_db, "C", "vimeo", is_duplicate=True)
    _candidate(fake_db, "D", "vimeo", is_duplicate=False)

    stats = await get_duplicate_stats()

    assert stats.total_scraped == 4
    assert stats.duplicates_detected == 3
    assert stats.duplicates_by_source == {"youtube": 2, "vimeo": 1}


@pytest.mark.asyncio
async def test_duplicate_stats_failure_returns_zeroes(fake_db) -> None:
    fake_db.fail(CANDIDATES_TABLE)

    stats = await get_duplicate_stats()

    assert stats.total_scraped == 0
    assert stats.duplicates_by_source == {}
