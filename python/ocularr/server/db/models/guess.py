"""
Ocularr Server - Guess Model

A member's guess of who nominated a movie. Correctness is fixed at write time.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
)

from ocularr.utils.ts import utc_now

from .base import Base


class Guess(Base):
    __tablename__ = "guesses"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, nullable=False, comment="Guesser")
    cycle_id = Column(
        Integer, ForeignKey("cycles.id", ondelete="CASCADE"), nullable=False
    )
    nomination_id = Column(
        Integer, ForeignKey("nominations.id", ondelete="CASCADE"), nullable=False
    )
    guessed_nominator_id = Column(Integer, nullable=False)
    is_correct = Column(Boolean, nullable=False)

    submitted_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "cycle_id", "nomination_id", name="uq_guess"),
        Index("idx_guesses_user_cycle", "user_id", "cycle_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Guess(user_id={self.user_id}, nomination_id={self.nomination_id}, "
            f"guessed={self.guessed_nominator_id}, correct={self.is_correct})>"
        )
