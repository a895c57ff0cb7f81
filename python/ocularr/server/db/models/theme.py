"""
Ocularr Server - Theme Model

A club's theme pool. Starting a cycle consumes one unused theme.
"""

from typing import Any, Dict

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String
from sqlalchemy.sql import func

from .base import Base


class Theme(Base):
    """Theme submitted by a member to a club's pool."""

    __tablename__ = "themes"

    id = Column(Integer, primary_key=True, index=True)

    club_id = Column(Integer, nullable=False, index=True, comment="Owning club id")
    submitted_by = Column(Integer, nullable=True, comment="Submitting user id")
    theme_text = Column(String(200), nullable=False, comment="Theme text")
    is_used = Column(Boolean, nullable=False, default=False)

    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("idx_themes_unused", "club_id", "is_used"),)

    def __repr__(self) -> str:
        return f"<Theme(id={self.id}, club_id={self.club_id}, text='{self.theme_text}', used={self.is_used})>"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "club_id": self.club_id,
            "submitted_by": self.submitted_by,
            "theme_text": self.theme_text,
            "is_used": self.is_used,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
