"""
Ocularr Server - Club Member Model

Roster rows for a club. The cycle engine only reads them (active members and
their club display names); membership management lives elsewhere.
"""

from typing import Any, Dict

from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from .base import Base

CLUB_ROLES = ("critic", "director", "producer")


class ClubMember(Base):
    """Membership of one user in one club."""

    __tablename__ = "club_members"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, nullable=False, index=True, comment="Member user id")
    club_id = Column(Integer, nullable=False, index=True, comment="Club id")
    role = Column(
        String(20),
        nullable=False,
        default="critic",
        comment="Club role: critic/director/producer",
    )
    club_display_name = Column(
        String(100), nullable=True, comment="Per-club display name"
    )
    is_active = Column(Boolean, nullable=False, default=True)

    joined_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("user_id", "club_id", name="uq_club_member"),
    )

    def __repr__(self) -> str:
        return (
            f"<ClubMember(user_id={self.user_id}, club_id={self.club_id}, "
            f"role='{self.role}', is_active={self.is_active})>"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "club_id": self.club_id,
            "role": self.role,
            "club_display_name": self.club_display_name,
            "is_active": self.is_active,
            "joined_at": self.joined_at.isoformat() if self.joined_at else None,
        }
