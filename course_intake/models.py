from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, field_validator


class HostingType(str, Enum):
    HOSTED = "hosted"
    EMBEDDED = "embedded"
    EXTERNAL = "external"


class CourseLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class _CourseContent(BaseModel):
    title: str = ""
    summary: str = ""
    category: str = "model"
    level: CourseLevel = CourseLevel.BEGINNER
    hosting_type: HostingType = HostingType.EXTERNAL
    video_embed_url: str = ""
    external_link: str = ""
    image_url: str = ""
    hash_identifier: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Supabase returns NULL for unset text columns
    @field_validator(
        "title", "summary", "video_embed_url", "external_link", "image_url", "hash_identifier",
        mode="before",
    )
    @classmethod
    def _null_text(cls, v):
        return v or ""

    @field_validator("category", mode="before")
    @classmethod
    def _null_category(cls, v):
        return v or "model"

    @field_validator("level", mode="before")
    @classmethod
    def _null_level(cls, v):
        return v or CourseLevel.BEGINNER

    @field_validator("hosting_type", mode="before")
    @classmethod
    def _null_hosting(cls, v):
        return v or HostingType.EXTERNAL


class CourseCandidate(_CourseContent):
    """A scraped course waiting in (or decided by) the review queue."""
    id: str
    scraper_source: str = "manual"

    is_reviewed: bool = False
    is_approved: bool = False
    review_notes: str = ""

    # Filled in by the duplicate detector at submission time
    is_duplicate: bool = False
    duplicate_of: Optional[str] = None
    duplicate_confidence: int = 0

    @field_validator("scraper_source", mode="before")
    @classmethod
    def _null_source(cls, v):
        return v or "manual"

    @field_validator("review_notes", mode="before")
    @classmethod
    def _null_notes(cls, v):
        return v or ""

    @field_validator("is_reviewed", "is_approved", "is_duplicate", mode="before")
    @classmethod
    def _null_flag(cls, v):
        return v is True

    @field_validator("duplicate_of", mode="before")
    @classmethod
    def _blank_ref(cls, v):
        return v or None

    @field_validator("duplicate_confidence", mode="before")
    @classmethod
    def _null_confidence(cls, v):
        return v or 0

    @property
    def source_url(self) -> str:
        """External link preferred over the embed URL."""
        return self.external_link or self.video_embed_url


class PublishedCourse(_CourseContent):
    """A catalog entry visible to learners."""
    id: str
    is_published: bool = False
    source_platform: str = ""
    source_url: str = ""

    @field_validator("source_platform", "source_url", mode="before")
    @classmethod
    def _null_provenance(cls, v):
        return v or ""


class DuplicateCheck(BaseModel):
    is_duplicate: bool = False
    existing_id: Optional[str] = None
    confidence: int = 0
    match_type: str = ""   # "hash" | "url" | "title" | ""


class DuplicateStats(BaseModel):
    total_scraped: int = 0
    duplicates_detected: int = 0
    duplicates_by_source: dict[str, int] = {}
