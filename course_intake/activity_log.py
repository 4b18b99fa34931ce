"""Append-only scraper activity log (automation_logs).

Logging is best effort: a failed insert is printed and dropped so it can
never block detection, submission or review.
"""
from datetime import datetime, timezone
from typing import Any

from course_intake.db import ACTIVITY_TABLE, get_supabase


async def log_scraper_activity(
    source: str,
    action: str,
    status: str,
    details: dict[str, Any],
) -> None:
    """Write one activity row.

    Args:
        source:  scraper source name, e.g. "youtube"
        action:  what happened, e.g. "duplicate_detected", "insert_course"
        status:  "info" | "warning" | "error" | "success"
        details: free-form JSON payload
    """
    now = datetime.now(timezone.utc).isoformat()
    row = {
        "function_name": f"scraper:{source}",
        "executed_at": now,
        "results": {
            "source": source,
            "action": action,
            "status": status,
            "details": details,
            "timestamp": now,
        },
    }
    try:
        client = await get_supabase()
        await client.table(ACTIVITY_TABLE).insert(row).execute()
    except Exception as e:
        print(f"[activity] Error logging {action} for {source}: {e}")
