"""
Ocularr Server - Cycle Repository

Database access to cycles and everything recorded during a cycle:
nominations, watch progress, guesses, rankings and results.

Every repository is bound to the caller's session. Writes only flush; the
unit of work that owns the session decides when to commit.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from ..models.cycle import Cycle
from ..models.cycle_result import CycleResult
from ..models.guess import Guess
from ..models.nomination import Nomination
from ..models.ranking import Ranking
from ..models.watch_progress import WatchProgress


class CycleRepository:
    """Repository for cycles and their per-cycle rows."""

    def __init__(self, db_session: Session):
        self.db_session = db_session

    # Cycle access
    def get_cycle(self, cycle_id: int, lock: bool = False) -> Optional[Cycle]:
        query = self.db_session.query(Cycle).filter(Cycle.id == cycle_id)
        if lock:
            query = query.with_for_update()
        return query.first()

    def get_active_cycle(self, club_id: int) -> Optional[Cycle]:
        """Return the club's cycle whose phase is not idle, if any."""
        return (
            self.db_session.query(Cycle)
            .filter(Cycle.club_id == club_id, Cycle.phase != "idle")
            .order_by(desc(Cycle.started_at))
            .first()
        )

    def count_cycles(self, club_id: int) -> int:
        return (
            self.db_session.query(func.count(Cycle.id))
            .filter(Cycle.club_id == club_id)
            .scalar()
            or 0
        )

    def add_cycle(
        self,
        club_id: int,
        theme_id: int,
        theme_text: str,
        cycle_number: int,
        season_year: int,
        started_by: Optional[int],
        phase: str = "nomination",
        started_at: Optional[datetime] = None,
    ) -> Cycle:
        extra = {"started_at": started_at} if started_at is not None else {}
        cycle = Cycle(
            club_id=club_id,
            theme_id=theme_id,
            theme_text=theme_text,
            phase=phase,
            cycle_number=cycle_number,
            season_year=season_year,
            started_by=started_by,
            **extra,
        )
        self.db_session.add(cycle)
        self.db_session.flush()
        return cycle

    def list_completed_cycles(
        self, club_id: int, limit: Optional[int] = None, offset: int = 0
    ) -> List[Cycle]:
        query = (
            self.db_session.query(Cycle)
            .filter(Cycle.club_id == club_id, Cycle.phase == "idle")
            .order_by(desc(Cycle.completed_at), desc(Cycle.id))
        )
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)
        return query.all()

    def list_recent_winners(self, club_id: int, limit: int) -> List[Cycle]:
        """Completed cycles that produced a winner, most recent first."""
        return (
            self.db_session.query(Cycle)
            .filter(
                Cycle.club_id == club_id,
                Cycle.phase == "idle",
                Cycle.winner_user_id.isnot(None),
            )
            .order_by(desc(Cycle.completed_at), desc(Cycle.id))
            .limit(limit)
            .all()
        )

    def count_completed_cycles(self, club_id: int) -> int:
        return (
            self.db_session.query(func.count(Cycle.id))
            .filter(Cycle.club_id == club_id, Cycle.phase == "idle")
            .scalar()
            or 0
        )

    # Nominations
    def list_nominations(self, cycle_id: int) -> List[Nomination]:
        """Nominations in submission order."""
        return (
            self.db_session.query(Nomination)
            .filter(Nomination.cycle_id == cycle_id)
            .order_by(Nomination.submitted_at.asc(), Nomination.id.asc())
            .all()
        )

    def get_nomination(self, cycle_id: int, nomination_id: int) -> Optional[Nomination]:
        return (
            self.db_session.query(Nomination)
            .filter(Nomination.cycle_id == cycle_id, Nomination.id == nomination_id)
            .first()
        )

    def get_nomination_by_user(self, cycle_id: int, user_id: int) -> Optional[Nomination]:
        return (
            self.db_session.query(Nomination)
            .filter(Nomination.cycle_id == cycle_id, Nomination.user_id == user_id)
            .first()
        )

    def get_nomination_by_movie(self, cycle_id: int, tmdb_id: int) -> Optional[Nomination]:
        return (
            self.db_session.query(Nomination)
            .filter(Nomination.cycle_id == cycle_id, Nomination.tmdb_id == tmdb_id)
            .first()
        )

    def count_nominations(self, cycle_id: int) -> int:
        return (
            self.db_session.query(func.count(Nomination.id))
            .filter(Nomination.cycle_id == cycle_id)
            .scalar()
            or 0
        )

    def count_club_nominations(self, club_id: int) -> int:
        return (
            self.db_session.query(func.count(Nomination.id))
            .join(Cycle, Cycle.id == Nomination.cycle_id)
            .filter(Cycle.club_id == club_id)
            .scalar()
            or 0
        )

    def add_nomination(self, cycle_id: int, user_id: int, **movie) -> Nomination:
        nomination = Nomination(cycle_id=cycle_id, user_id=user_id, **movie)
        self.db_session.add(nomination)
        self.db_session.flush()
        return nomination

    def get_nominations_by_ids(self, nomination_ids: Iterable[int]) -> Dict[int, Nomination]:
        ids = list(set(nomination_ids))
        if not ids:
            return {}
        items = self.db_session.query(Nomination).filter(Nomination.id.in_(ids)).all()
        return {item.id: item for item in items}

    # Watch progress
    def existing_watch_keys(self, cycle_id: int) -> Set[Tuple[int, int]]:
        """(user_id, nomination_id) pairs that already have a row."""
        rows = (
            self.db_session.query(WatchProgress.user_id, WatchProgress.nomination_id)
            .filter(WatchProgress.cycle_id == cycle_id)
            .all()
        )
        return {(row[0], row[1]) for row in rows}

    def add_watch_progress_rows(
        self, cycle_id: int, rows: Iterable[Tuple[int, int, bool]], now: datetime
    ) -> int:
        """Insert (user_id, nomination_id, watched) rows; returns how many."""
        count = 0
        for user_id, nomination_id, watched in rows:
            self.db_session.add(
                WatchProgress(
                    user_id=user_id,
                    cycle_id=cycle_id,
                    nomination_id=nomination_id,
                    watched=watched,
                    watched_at=now if watched else None,
                )
            )
            count += 1
        if count:
            self.db_session.flush()
        return count

    def get_watch_progress(
        self, cycle_id: int, user_id: int, nomination_id: int
    ) -> Optional[WatchProgress]:
        return (
            self.db_session.query(WatchProgress)
            .filter(
                WatchProgress.cycle_id == cycle_id,
                WatchProgress.user_id == user_id,
                WatchProgress.nomination_id == nomination_id,
            )
            .first()
        )

    def list_user_watch_progress(self, cycle_id: int, user_id: int) -> List[WatchProgress]:
        return (
            self.db_session.query(WatchProgress)
            .filter(WatchProgress.cycle_id == cycle_id, WatchProgress.user_id == user_id)
            .order_by(WatchProgress.nomination_id.asc())
            .all()
        )

    def count_watched_others(self, cycle_id: int) -> Dict[int, int]:
        """Per user, how many other members' nominations they marked watched."""
        rows = (
            self.db_session.query(WatchProgress.user_id, func.count(WatchProgress.id))
            .join(Nomination, Nomination.id == WatchProgress.nomination_id)
            .filter(
                WatchProgress.cycle_id == cycle_id,
                WatchProgress.watched.is_(True),
                Nomination.user_id != WatchProgress.user_id,
            )
            .group_by(WatchProgress.user_id)
            .all()
        )
        return {user_id: count for user_id, count in rows}

    def add_watch_progress(self, cycle_id: int, user_id: int, nomination_id: int) -> WatchProgress:
        item = WatchProgress(
            user_id=user_id,
            cycle_id=cycle_id,
            nomination_id=nomination_id,
            watched=False,
        )
        self.db_session.add(item)
        return item

    # Guesses and rankings
    def has_rankings(self, cycle_id: int, user_id: int) -> bool:
        return (
            self.db_session.query(Ranking.id)
            .filter(Ranking.cycle_id == cycle_id, Ranking.user_id == user_id)
            .first()
            is not None
        )

    def add_guesses(self, cycle_id: int, user_id: int, guesses: Iterable[Tuple[int, int, bool]]) -> int:
        count = 0
        for nomination_id, guessed_nominator_id, is_correct in guesses:
            self.db_session.add(
                Guess(
                    user_id=user_id,
                    cycle_id=cycle_id,
                    nomination_id=nomination_id,
                    guessed_nominator_id=guessed_nominator_id,
                    is_correct=is_correct,
                )
            )
            count += 1
        return count

    def add_rankings(self, cycle_id: int, user_id: int, rankings: Iterable[Tuple[int, int]]) -> int:
        count = 0
        for nomination_id, rank_position in rankings:
            self.db_session.add(
                Ranking(
                    user_id=user_id,
                    cycle_id=cycle_id,
                    nomination_id=nomination_id,
                    rank_position=rank_position,
                )
            )
            count += 1
        return count

    def list_rankings(self, cycle_id: int) -> List[Ranking]:
        return (
            self.db_session.query(Ranking)
            .filter(Ranking.cycle_id == cycle_id)
            .order_by(Ranking.user_id.asc(), Ranking.rank_position.asc())
            .all()
        )

    def list_guesses(self, cycle_id: int) -> List[Guess]:
        return (
            self.db_session.query(Guess)
            .filter(Guess.cycle_id == cycle_id)
            .order_by(Guess.user_id.asc(), Guess.nomination_id.asc())
            .all()
        )

    # Results
    def has_results(self, cycle_id: int) -> bool:
        return (
            self.db_session.query(CycleResult.id)
            .filter(CycleResult.cycle_id == cycle_id)
            .first()
            is not None
        )

    def add_result(self, cycle_id: int, **fields) -> CycleResult:
        item = CycleResult(cycle_id=cycle_id, **fields)
        self.db_session.add(item)
        return item

    def list_results(self, cycle_id: int) -> List[CycleResult]:
        return (
            self.db_session.query(CycleResult)
            .filter(CycleResult.cycle_id == cycle_id)
            .order_by(CycleResult.final_rank.asc())
            .all()
        )

    def flush(self) -> None:
        self.db_session.flush()


def get_cycle_repository(db_session: Session) -> CycleRepository:
    """Create a cycle repository bound to the given session."""
    return CycleRepository(db_session)
