"""Course Intake — scraped-course duplicate detection and moderation.

Pipeline:
  submit_candidate  -> sanitise, hash, score against catalog + queue, store
  detect_duplicate  -> hash (100) / URL (95) / title similarity (scaled)
  list_pending      -> unreviewed backlog for moderators, newest first
  approve / reject  -> exactly-once terminal transition per candidate

Storage: Supabase (async client). Every public operation returns a safe
default on backend failure instead of raising.
"""
