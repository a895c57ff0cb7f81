"""
Ocularr Server - Nomination Model

One movie submitted by one member for a cycle.
"""

from typing import Any, Dict

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from ocularr.utils.ts import utc_now

from .base import Base


class Nomination(Base):
    """A member's single movie submission for a cycle."""

    __tablename__ = "nominations"

    id = Column(Integer, primary_key=True, index=True)

    cycle_id = Column(
        Integer,
        ForeignKey("cycles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(Integer, nullable=False, index=True, comment="Nominator")

    # Movie metadata (TMDB)
    tmdb_id = Column(Integer, nullable=False, index=True, comment="External movie id")
    title = Column(String(255), nullable=False)
    year = Column(Integer, nullable=True)
    poster_path = Column(String(255), nullable=True)
    overview = Column(Text, nullable=True)
    release_date = Column(Date, nullable=True)
    director = Column(String(255), nullable=True)
    runtime = Column(Integer, nullable=True, comment="Runtime in minutes")

    submitted_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    __table_args__ = (
        UniqueConstraint("cycle_id", "user_id", name="uq_nomination_user"),
        UniqueConstraint("cycle_id", "tmdb_id", name="uq_nomination_movie"),
    )

    def __repr__(self) -> str:
        return (
            f"<Nomination(id={self.id}, cycle_id={self.cycle_id}, user_id={self.user_id}, "
            f"tmdb_id={self.tmdb_id}, title='{self.title}')>"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "cycle_id": self.cycle_id,
            "user_id": self.user_id,
            "tmdb_id": self.tmdb_id,
            "title": self.title,
            "year": self.year,
            "poster_path": self.poster_path,
            "overview": self.overview,
            "release_date": self.release_date.isoformat()
            if self.release_date
            else None,
            "director": self.director,
            "runtime": self.runtime,
            "submitted_at": self.submitted_at.isoformat()
            if self.submitted_at
            else None,
        }
