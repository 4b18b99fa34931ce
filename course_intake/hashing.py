"""Hash identifier for exact-duplicate lookup.

hash = normalized title + "-" + normalized source
- title:  lowercase, trimmed, internal whitespace runs collapsed to one space
- source: lowercase, trimmed
"""
import re


def normalize_title(title: str) -> str:
    return re.sub(r"\s+", " ", (title or "").strip().lower())


def normalize_source(source: str) -> str:
    return (source or "").strip().lower()


def generate_course_hash(title: str, source: str) -> str:
    return f"{normalize_title(title)}-{normalize_source(source)}"
