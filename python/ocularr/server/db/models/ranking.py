"""
Ocularr Server - Ranking Model

A member's rank position for one nomination. Positions are unique per
(user, cycle) and a nomination is ranked at most once per user.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
)

from ocularr.utils.ts import utc_now

from .base import Base


class Ranking(Base):
    __tablename__ = "rankings"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, nullable=False, comment="Ranker")
    cycle_id = Column(
        Integer, ForeignKey("cycles.id", ondelete="CASCADE"), nullable=False
    )
    nomination_id = Column(
        Integer, ForeignKey("nominations.id", ondelete="CASCADE"), nullable=False
    )
    rank_position = Column(Integer, nullable=False, comment="1 = best")

    submitted_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "user_id", "cycle_id", "nomination_id", name="uq_ranking_nomination"
        ),
        UniqueConstraint(
            "user_id", "cycle_id", "rank_position", name="uq_ranking_position"
        ),
        CheckConstraint("rank_position > 0", name="ck_ranking_position"),
        Index("idx_rankings_user_cycle", "user_id", "cycle_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Ranking(user_id={self.user_id}, nomination_id={self.nomination_id}, "
            f"rank={self.rank_position})>"
        )
