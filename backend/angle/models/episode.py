"""
Angle Backend — Episode SQLAlchemy Model
=========================================

What:  Read-only ORM mapping of the `episodes` table in the hosted database.
How:   Inherits from the shared DeclarativeBase. The schema is owned by the
       hosting backend; this mapping declares only the columns we read.
Who:   Used by EpisodeService for every query.

Visibility:
    Only rows with status = 'completed' are ever exposed. The other statuses
    (drafts, in-progress renders) exist in the table but are filtered out by
    every query in EpisodeService.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from angle.database import Base

# The only externally visible status value
STATUS_COMPLETED = "completed"


class Episode(Base):
    """
    An episode record as stored by the ingestion/editorial process.

    Query Patterns:
        - List: WHERE status = 'completed' ORDER BY created_at DESC
        - Detail: WHERE id = :id AND status = 'completed'
        - Categories: SELECT DISTINCT category WHERE status = 'completed'
          AND category IS NOT NULL
    """

    __tablename__ = "episodes"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    title: Mapped[str] = mapped_column(Text, nullable=False)

    # Short description shown on cards
    excerpt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Long-form description shown on the episode page
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    cover_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    audio_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    transcript: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    host: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Seconds
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    episode_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # text[] on PostgreSQL; JSON on SQLite (test suite)
    tags: Mapped[Optional[List[str]]] = mapped_column(
        ARRAY(Text).with_variant(JSON(), "sqlite"),
        nullable=True,
    )

    # Free-text label, e.g. "Business & Economy"
    category: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(50), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<Episode(id={self.id}, status='{self.status}', "
            f"category='{self.category}', created_at='{self.created_at}')>"
        )
