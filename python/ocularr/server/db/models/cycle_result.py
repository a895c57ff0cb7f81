"""
Ocularr Server - Cycle Result Model

One row per scored (cycle, user), written once by the scoring engine.
"""

from typing import Any, Dict

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    UniqueConstraint,
)

from ocularr.utils.ts import utc_now

from .base import Base


class CycleResult(Base):
    __tablename__ = "cycle_results"

    id = Column(Integer, primary_key=True, index=True)

    cycle_id = Column(
        Integer,
        ForeignKey("cycles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(Integer, nullable=False, index=True)
    nomination_id = Column(
        Integer, ForeignKey("nominations.id", ondelete="CASCADE"), nullable=False
    )

    final_rank = Column(Integer, nullable=False, comment="1 = best")
    average_rank = Column(Float, nullable=False)
    points_earned = Column(Float, nullable=False, default=0)
    guess_accuracy = Column(Float, nullable=False, default=0, comment="Percent")
    total_votes_received = Column(Integer, nullable=False, default=0)

    calculated_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    __table_args__ = (
        UniqueConstraint("cycle_id", "user_id", name="uq_cycle_result_user"),
    )

    def __repr__(self) -> str:
        return (
            f"<CycleResult(cycle_id={self.cycle_id}, user_id={self.user_id}, "
            f"final_rank={self.final_rank}, points={self.points_earned})>"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cycle_id": self.cycle_id,
            "user_id": self.user_id,
            "nomination_id": self.nomination_id,
            "final_rank": self.final_rank,
            "average_rank": self.average_rank,
            "points_earned": self.points_earned,
            "guess_accuracy": self.guess_accuracy,
            "total_votes_received": self.total_votes_received,
            "calculated_at": self.calculated_at.isoformat()
            if self.calculated_at
            else None,
        }
