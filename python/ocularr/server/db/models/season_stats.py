"""
Ocularr Server - Season Stats Model

Running per-user totals for one club and season year. Only the season
aggregator writes these rows.
"""

from typing import Any, Dict

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from .base import Base


class SeasonStats(Base):
    __tablename__ = "user_season_stats"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, nullable=False)
    club_id = Column(Integer, nullable=False)
    season_year = Column(Integer, nullable=False)

    cycles_participated = Column(Integer, nullable=False, default=0)
    cycles_won = Column(Integer, nullable=False, default=0)
    total_points = Column(Float, nullable=False, default=0)
    average_points = Column(Float, nullable=False, default=0)
    average_rank = Column(Float, nullable=False, default=0)
    guess_accuracy = Column(Float, nullable=False, default=0)
    movies_watched = Column(Integer, nullable=False, default=0)

    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "club_id", "season_year", name="uq_season_stats"),
        Index("idx_season_stats_club_season", "club_id", "season_year"),
    )

    def __repr__(self) -> str:
        return (
            f"<SeasonStats(user_id={self.user_id}, club_id={self.club_id}, "
            f"season={self.season_year}, points={self.total_points})>"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "club_id": self.club_id,
            "season_year": self.season_year,
            "cycles_participated": self.cycles_participated,
            "cycles_won": self.cycles_won,
            "total_points": self.total_points,
            "average_points": self.average_points,
            "average_rank": self.average_rank,
            "guess_accuracy": self.guess_accuracy,
            "movies_watched": self.movies_watched,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
