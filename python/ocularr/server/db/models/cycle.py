"""
Ocularr Server - Cycle Model

One round of theme -> nominate -> watch -> rank -> results for a club.
"""

from typing import Any, Dict

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    UniqueConstraint,
    text,
)

from ocularr.utils.ts import utc_now

from .base import Base

_ACTIVE_PHASE = text("phase != 'idle'")


class Cycle(Base):
    """Cycle row; `phase` holds the state machine's current state."""

    __tablename__ = "cycles"

    id = Column(Integer, primary_key=True, index=True)

    club_id = Column(Integer, nullable=False, index=True, comment="Owning club id")
    theme_id = Column(Integer, nullable=True, comment="Theme drawn from the pool")
    theme_text = Column(String(200), nullable=True, comment="Theme text snapshot")

    phase = Column(
        String(20),
        nullable=False,
        default="nomination",
        comment="nomination/watching/ranking/results/idle",
    )
    cycle_number = Column(Integer, nullable=False, comment="1-based per club")
    season_year = Column(Integer, nullable=False, comment="Season bucket (UTC year)")

    started_by = Column(Integer, nullable=True, comment="Director who started it")
    started_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    winner_user_id = Column(Integer, nullable=True)
    winner_nomination_id = Column(Integer, nullable=True)
    winner_points = Column(Float, nullable=True)

    # Optimistic lock for phase transitions
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        UniqueConstraint("club_id", "cycle_number", name="uq_cycle_number"),
        # At most one non-idle cycle per club
        Index(
            "uq_cycles_one_active_per_club",
            "club_id",
            unique=True,
            sqlite_where=_ACTIVE_PHASE,
            postgresql_where=_ACTIVE_PHASE,
        ),
        Index("idx_cycles_club_phase", "club_id", "phase"),
        Index("idx_cycles_season", "club_id", "season_year"),
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<Cycle(id={self.id}, club_id={self.club_id}, number={self.cycle_number}, "
            f"phase='{self.phase}', version={self.version})>"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "club_id": self.club_id,
            "theme_id": self.theme_id,
            "theme_text": self.theme_text,
            "phase": self.phase,
            "cycle_number": self.cycle_number,
            "season_year": self.season_year,
            "started_by": self.started_by,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat()
            if self.completed_at
            else None,
            "winner_user_id": self.winner_user_id,
            "winner_nomination_id": self.winner_nomination_id,
            "winner_points": self.winner_points,
        }
