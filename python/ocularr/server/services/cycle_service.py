"""
Ocularr Server - Cycle Service

Entry point for every cycle operation. Each call is one unit of work on a
fresh session: the engine runs against repositories bound to that session
and the transaction commits only if the whole operation succeeded.

Store races surface as ``ConcurrencyConflict`` and the operation is retried
once; the retry re-reads state and reports the precise precondition that
now fails (for example ``AlreadyActive`` for a losing concurrent start).
"""

from __future__ import annotations

import math
import random
import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Type, TypeVar, Union

from loguru import logger
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ocularr.core.cycle.exceptions import (
    ConcurrencyConflict,
    CycleNotFound,
    NotClubMember,
    StorageError,
    ThemeAlreadyExists,
    ValidationError,
)
from ocularr.core.cycle.intake import CycleIntake
from ocularr.core.cycle.interfaces import BaseMovieCatalog
from ocularr.core.cycle.models import (
    GuessInput,
    MovieDetails,
    RankingInput,
    WatchProgressInput,
)
from ocularr.core.cycle.phase import Direction
from ocularr.core.cycle.state_machine import CycleStateMachine
from ocularr.server.config.settings import Settings, get_settings
from ocularr.server.db.connection import DatabaseManager, get_database_manager
from ocularr.server.db.repositories import (
    get_club_repository,
    get_cycle_repository,
    get_season_stats_repository,
)
from ocularr.server.schemas.cycle import (
    ClubOverview,
    ClubStatsData,
    CurrentCycleData,
    CycleData,
    CycleHistoryData,
    CycleResultData,
    CycleResultsData,
    GuessData,
    NominationData,
    Pagination,
    RankingData,
    RecentWinner,
    SeasonStatsData,
    ThemeData,
    TransitionData,
    WatchProgressData,
)
from ocularr.utils.ts import current_season_year, utc_now

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


def _project(schema: Type[M], row) -> M:
    return schema.model_validate(row, from_attributes=True)


def _parse(schema: Type[M], value: Union[M, Dict]) -> M:
    """Coerce caller input into the engine's input model."""
    if isinstance(value, schema):
        return value
    try:
        return schema.model_validate(value)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(f"Invalid {field or 'input'}: {first.get('msg')}") from exc


class CycleService:
    def __init__(
        self,
        db_manager: Optional[DatabaseManager] = None,
        settings: Optional[Settings] = None,
        catalog: Optional[BaseMovieCatalog] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.db = db_manager or get_database_manager()
        self.settings = settings or get_settings()
        self.catalog = catalog
        self.rng = rng or random.Random()
        self.clock = clock

    # Unit of work

    def _run(self, operation: str, work: Callable[[Session], T]) -> T:
        try:
            return self._attempt(operation, work)
        except ConcurrencyConflict as exc:
            logger.warning("{} hit a concurrency conflict, retrying once: {}", operation, exc)
        return self._attempt(operation, work)

    def _attempt(self, operation: str, work: Callable[[Session], T]) -> T:
        try:
            with self.db.transaction() as session:
                return work(session)
        except (IntegrityError, StaleDataError) as exc:
            raise ConcurrencyConflict(
                f"{operation} conflicted with a concurrent change"
            ) from exc
        except SQLAlchemyError as exc:
            logger.exception("Storage failure during {}", operation)
            raise StorageError(f"{operation} failed: storage error") from exc

    def _machine(self, session: Session) -> CycleStateMachine:
        return CycleStateMachine(
            cycles=get_cycle_repository(session),
            roster=get_club_repository(session),
            themes=get_club_repository(session),
            season_stats=get_season_stats_repository(session),
            rng=self.rng,
            clock=self.clock,
            points_per_place=self.settings.POINTS_PER_PLACE,
        )

    def _intake(self, session: Session) -> CycleIntake:
        return CycleIntake(
            cycles=get_cycle_repository(session),
            roster=get_club_repository(session),
            catalog=self.catalog,
            clock=self.clock,
        )

    # Phase control

    def start(self, club_id: int, started_by: Optional[int] = None) -> CycleData:
        def work(session: Session) -> CycleData:
            return _project(CycleData, self._machine(session).start(club_id, started_by))

        return self._run("start", work)

    def advance(
        self,
        cycle_id: int,
        direction: Union[str, Direction],
        actor_id: Optional[int] = None,
    ) -> TransitionData:
        direction = Direction.parse(direction)

        def work(session: Session) -> TransitionData:
            result = self._machine(session).advance(cycle_id, direction, actor_id)
            return TransitionData(
                cycle_id=result.cycle_id,
                from_phase=result.from_phase.value,
                phase=result.phase.value,
                changed=result.changed,
                message=result.message,
            )

        return self._run("advance", work)

    # Submissions

    def nominate(
        self, cycle_id: int, user_id: int, movie: Union[MovieDetails, Dict]
    ) -> NominationData:
        movie = _parse(MovieDetails, movie)

        def work(session: Session) -> NominationData:
            nomination = self._intake(session).nominate(cycle_id, user_id, movie)
            return _project(NominationData, nomination)

        return self._run("nominate", work)

    def record_guesses_and_rankings(
        self,
        cycle_id: int,
        user_id: int,
        guesses: Sequence[Union[GuessInput, Dict]],
        rankings: Sequence[Union[RankingInput, Dict]],
    ) -> Dict[str, int]:
        guesses = [_parse(GuessInput, g) for g in guesses]
        rankings = [_parse(RankingInput, r) for r in rankings]

        def work(session: Session) -> Dict[str, int]:
            guess_count, ranking_count = self._intake(
                session
            ).record_guesses_and_rankings(cycle_id, user_id, guesses, rankings)
            return {"guesses": guess_count, "rankings": ranking_count}

        return self._run("record_guesses_and_rankings", work)

    def update_watch_progress(
        self,
        cycle_id: int,
        user_id: int,
        nomination_id: int,
        progress: Union[WatchProgressInput, Dict],
    ) -> WatchProgressData:
        progress = _parse(WatchProgressInput, progress)

        def work(session: Session) -> WatchProgressData:
            row = self._intake(session).update_watch_progress(
                cycle_id, user_id, nomination_id, progress
            )
            return _project(WatchProgressData, row)

        return self._run("update_watch_progress", work)

    # Themes

    def submit_theme(self, club_id: int, user_id: int, theme_text: str) -> ThemeData:
        text = (theme_text or "").strip()
        if not text:
            raise ValidationError("Theme text is required")
        if len(text) > self.settings.THEME_MAX_LENGTH:
            raise ValidationError(
                f"Theme must be {self.settings.THEME_MAX_LENGTH} characters or less"
            )

        def work(session: Session) -> ThemeData:
            club = get_club_repository(session)
            if user_id not in club.active_member_ids(club_id):
                raise NotClubMember(user_id)
            if club.find_theme_by_text(club_id, text) is not None:
                raise ThemeAlreadyExists(text)
            theme = club.add_theme(club_id, text, submitted_by=user_id)
            logger.info("User {} added theme {!r} to club {}", user_id, text, club_id)
            return _project(ThemeData, theme)

        return self._run("submit_theme", work)

    def list_themes(self, club_id: int) -> List[ThemeData]:
        def work(session: Session) -> List[ThemeData]:
            themes = get_club_repository(session).list_themes(club_id)
            return [_project(ThemeData, t) for t in themes]

        return self._run("list_themes", work)

    # Reads

    def get_current_cycle(self, club_id: int, user_id: int) -> Optional[CurrentCycleData]:
        """The club's active cycle as seen by ``user_id``; None when idle."""

        def work(session: Session) -> Optional[CurrentCycleData]:
            cycles = get_cycle_repository(session)
            cycle = cycles.get_active_cycle(club_id)
            if cycle is None:
                return None
            return CurrentCycleData(
                cycle=_project(CycleData, cycle),
                nominations=[
                    _project(NominationData, n) for n in cycles.list_nominations(cycle.id)
                ],
                watch_progress=[
                    _project(WatchProgressData, w)
                    for w in cycles.list_user_watch_progress(cycle.id, user_id)
                ],
                active_member_count=get_club_repository(session).active_member_count(
                    club_id
                ),
            )

        return self._run("get_current_cycle", work)

    def get_cycle_results(self, cycle_id: int) -> CycleResultsData:
        def work(session: Session) -> CycleResultsData:
            cycles = get_cycle_repository(session)
            cycle = cycles.get_cycle(cycle_id)
            if cycle is None:
                raise CycleNotFound(cycle_id)
            return CycleResultsData(
                cycle=_project(CycleData, cycle),
                results=[_project(CycleResultData, r) for r in cycles.list_results(cycle.id)],
                guesses=[_project(GuessData, g) for g in cycles.list_guesses(cycle.id)],
                rankings=[_project(RankingData, r) for r in cycles.list_rankings(cycle.id)],
            )

        return self._run("get_cycle_results", work)

    def get_cycle_history(
        self, club_id: int, page: int = 1, limit: Optional[int] = None
    ) -> CycleHistoryData:
        """Completed cycles, newest first, one page at a time."""
        if limit is None:
            limit = self.settings.HISTORY_PAGE_LIMIT
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive")

        def work(session: Session) -> CycleHistoryData:
            cycles = get_cycle_repository(session)
            total = cycles.count_completed_cycles(club_id)
            items = cycles.list_completed_cycles(
                club_id, limit=limit, offset=(page - 1) * limit
            )
            return CycleHistoryData(
                cycles=[_project(CycleData, c) for c in items],
                pagination=Pagination(
                    page=page,
                    limit=limit,
                    total=total,
                    pages=math.ceil(total / limit),
                ),
            )

        return self._run("get_cycle_history", work)

    def get_club_stats(
        self, club_id: int, season_year: Optional[int] = None
    ) -> ClubStatsData:
        season_year = season_year or current_season_year()

        def work(session: Session) -> ClubStatsData:
            cycles = get_cycle_repository(session)
            club = get_club_repository(session)
            leaderboard = get_season_stats_repository(session).list_for_season(
                club_id, season_year
            )

            winners = cycles.list_recent_winners(
                club_id, self.settings.RECENT_WINNERS_LIMIT
            )
            movies = cycles.get_nominations_by_ids(
                c.winner_nomination_id for c in winners if c.winner_nomination_id
            )
            recent = []
            for c in winners:
                movie = movies.get(c.winner_nomination_id)
                recent.append(
                    RecentWinner(
                        cycle_id=c.id,
                        cycle_number=c.cycle_number,
                        theme_text=c.theme_text,
                        completed_at=c.completed_at,
                        winner_user_id=c.winner_user_id,
                        winner_name=club.display_name(club_id, c.winner_user_id),
                        winner_points=c.winner_points,
                        movie_title=movie.title if movie else None,
                    )
                )

            return ClubStatsData(
                season_year=season_year,
                leaderboard=[_project(SeasonStatsData, s) for s in leaderboard],
                overview=ClubOverview(
                    completed_cycles=cycles.count_completed_cycles(club_id),
                    movies_nominated=cycles.count_club_nominations(club_id),
                    active_members=club.active_member_count(club_id),
                    available_themes=club.count_unused_themes(club_id),
                ),
                recent_winners=recent,
            )

        return self._run("get_club_stats", work)


_cycle_service: Optional[CycleService] = None
_lock = threading.Lock()


def get_cycle_service() -> CycleService:
    """Get (or create) the process-local CycleService instance."""
    global _cycle_service
    if _cycle_service is None:
        with _lock:
            if _cycle_service is None:
                _cycle_service = CycleService()
    return _cycle_service


def set_cycle_service(service: CycleService) -> None:
    """Override the default CycleService (tests or custom wiring)."""
    global _cycle_service
    with _lock:
        _cycle_service = service


def reset_cycle_service() -> None:
    global _cycle_service
    with _lock:
        _cycle_service = None
