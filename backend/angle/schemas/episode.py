"""
Angle Backend — Pydantic Response Schemas
==========================================

What:  Pydantic models defining the JSON contract consumed by the SPA.
How:   FastAPI serializes route return values through these models.
       Field names are snake_case in Python and camelCase on the wire.
Who:   Returned by the episode, category and health routes.

Envelope:
    Every JSON API response is wrapped as
        {"success": true, "data": ...}        on success
        {"success": false, "error": "..."}    on failure
"""

from datetime import datetime
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


# ══════════════════════════════════════════════════════════════════════════
# Episode
# ══════════════════════════════════════════════════════════════════════════


class EpisodeOut(BaseModel):
    """
    What:  Public representation of a completed episode.
    Who:   Returned by GET /api/episodes and GET /api/episodes/{id}; also used
           internally by the page renderer, image generator and sitemap.

    Column mapping (table → JSON):
        excerpt      → description
        description  → fullDescription
        cover_url    → coverImage
        created_at   → createdAt
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(description="Opaque episode identifier")
    title: str = Field(description="Episode title")
    description: Optional[str] = Field(default=None, description="Short description")
    cover_image: Optional[str] = Field(default=None, description="Cover image URL (absolute or site-relative)")
    created_at: datetime = Field(description="Creation timestamp (UTC)")
    category: Optional[str] = Field(default=None, description="Canonical category label")
    duration: Optional[int] = Field(default=None, description="Duration in seconds")
    audio_url: Optional[str] = Field(default=None)
    transcript: Optional[str] = Field(default=None)
    host: Optional[str] = Field(default=None)
    episode_number: Optional[int] = Field(default=None)
    tags: Optional[List[str]] = Field(default=None)
    full_description: Optional[str] = Field(default=None, description="Long-form description")

    @classmethod
    def from_row(cls, row: Any) -> "EpisodeOut":
        """Maps an `Episode` ORM row to the public shape."""
        return cls(
            id=row.id,
            title=row.title,
            description=row.excerpt,
            cover_image=row.cover_url,
            created_at=row.created_at,
            category=row.category,
            duration=row.duration or None,
            audio_url=row.audio_url or None,
            transcript=row.transcript or None,
            host=row.host or None,
            episode_number=row.episode_number or None,
            tags=row.tags or None,
            full_description=row.description or None,
        )


# ══════════════════════════════════════════════════════════════════════════
# Envelopes
# ══════════════════════════════════════════════════════════════════════════


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope: {"success": true, "data": ...}."""

    success: bool = Field(default=True)
    data: T


class ErrorResponse(BaseModel):
    """
    Failure envelope: {"success": false, "error": "..."}.

    `detail` and `stack` are only populated when ENVIRONMENT=development.
    """

    success: bool = Field(default=False)
    error: str = Field(description="Human-readable error description")
    detail: Optional[dict] = Field(default=None)
    stack: Optional[str] = Field(default=None)


class HealthResponse(BaseModel):
    """Returned by GET /api/health."""

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
