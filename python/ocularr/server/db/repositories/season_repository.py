"""
Ocularr Server - Season Stats Repository

Reads and writes the per-user season rows folded by the season aggregator.
"""

from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from ocularr.core.cycle.models import SeasonTotals

from ..models.season_stats import SeasonStats


class SeasonStatsRepository:
    def __init__(self, db_session: Session):
        self.db_session = db_session

    def get(self, user_id: int, club_id: int, season_year: int) -> Optional[SeasonStats]:
        return (
            self.db_session.query(SeasonStats)
            .filter(
                SeasonStats.user_id == user_id,
                SeasonStats.club_id == club_id,
                SeasonStats.season_year == season_year,
            )
            .first()
        )

    def get_totals(self, user_id: int, club_id: int, season_year: int) -> Optional[SeasonTotals]:
        row = self.get(user_id, club_id, season_year)
        if row is None:
            return None
        return SeasonTotals(
            cycles_participated=row.cycles_participated,
            cycles_won=row.cycles_won,
            total_points=row.total_points,
            average_points=row.average_points,
            average_rank=row.average_rank,
            guess_accuracy=row.guess_accuracy,
            movies_watched=row.movies_watched,
        )

    def save_totals(
        self, user_id: int, club_id: int, season_year: int, totals: SeasonTotals
    ) -> SeasonStats:
        """Insert the row or overwrite its figures with `totals`."""
        row = self.get(user_id, club_id, season_year)
        if row is None:
            row = SeasonStats(user_id=user_id, club_id=club_id, season_year=season_year)
            self.db_session.add(row)
        for key, value in totals.as_dict().items():
            setattr(row, key, value)
        self.db_session.flush()
        return row

    def list_for_season(self, club_id: int, season_year: int) -> List[SeasonStats]:
        """Season leaderboard: most points first, then best average."""
        return (
            self.db_session.query(SeasonStats)
            .filter(
                SeasonStats.club_id == club_id,
                SeasonStats.season_year == season_year,
            )
            .order_by(
                desc(SeasonStats.total_points),
                desc(SeasonStats.average_points),
                SeasonStats.user_id.asc(),
            )
            .all()
        )


def get_season_stats_repository(db_session: Session) -> SeasonStatsRepository:
    return SeasonStatsRepository(db_session)
