"""
Ocularr Server - Watch Progress Model

Tracks whether a member has watched a nomination of the current cycle.
"""

from typing import Any, Dict

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
)

from .base import Base


class WatchProgress(Base):
    __tablename__ = "watch_progress"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, nullable=False)
    cycle_id = Column(
        Integer, ForeignKey("cycles.id", ondelete="CASCADE"), nullable=False
    )
    nomination_id = Column(
        Integer, ForeignKey("nominations.id", ondelete="CASCADE"), nullable=False
    )

    watched = Column(Boolean, nullable=False, default=False)
    watched_at = Column(DateTime(timezone=True), nullable=True)
    rating = Column(Float, nullable=True, comment="0..10")
    personal_notes = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "user_id", "cycle_id", "nomination_id", name="uq_watch_progress"
        ),
        CheckConstraint(
            "rating IS NULL OR (rating >= 0 AND rating <= 10)",
            name="ck_watch_progress_rating",
        ),
        Index("idx_watch_progress_user_cycle", "user_id", "cycle_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<WatchProgress(user_id={self.user_id}, nomination_id={self.nomination_id}, "
            f"watched={self.watched})>"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "cycle_id": self.cycle_id,
            "nomination_id": self.nomination_id,
            "watched": self.watched,
            "watched_at": self.watched_at.isoformat() if self.watched_at else None,
            "rating": self.rating,
            "personal_notes": self.personal_notes,
        }
