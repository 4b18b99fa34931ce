"""Supabase async client shared by every intake module.

Tables:
  scraped_courses       candidates awaiting review
  courses               published catalog
  automation_logs       append-only activity log
  user_course_progress  learner progress (read-only, merge eligibility)
  scraper_settings      key/value tunables
"""
import os

from dotenv import load_dotenv
from supabase import AsyncClient, acreate_client

load_dotenv()

CANDIDATES_TABLE = "scraped_courses"
CATALOG_TABLE = "courses"
ACTIVITY_TABLE = "automation_logs"
PROGRESS_TABLE = "user_course_progress"
SETTINGS_TABLE = "scraper_settings"

_client: AsyncClient | None = None


async def get_supabase() -> AsyncClient:
    """Return the process-wide async client, creating it on first use."""
    global _client
    if _client is None:
        url = os.environ.get("SUPABASE_URL", "")
        key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY") or os.environ.get("SUPABASE_ANON_KEY", "")
        if not url or not key:
            raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_ANON_KEY) must be set")
        _client = await acreate_client(url, key)
    return _client
