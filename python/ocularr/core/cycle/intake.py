"""Member submissions during a cycle: nominations, rankings, watch progress.

Each call validates against the cycle's current phase and the rows already
stored, then writes everything or nothing. Unique indexes on the tables are
the final word when two submissions race.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Callable, Dict, Optional, Sequence, Tuple

from loguru import logger

from ocularr.utils.ts import utc_now

from .exceptions import (
    AlreadySubmitted,
    CannotRankOwnNomination,
    CannotUpdateOwnProgress,
    CycleNotFound,
    DuplicateNomination,
    DuplicateRankPosition,
    MovieAlreadyTaken,
    NominationNotFound,
    NotClubMember,
    RankPositionOutOfRange,
    RepeatedNomination,
    ResultsAlreadyComputed,
    UnknownNomination,
    ValidationError,
    WrongPhase,
)
from .interfaces import BaseMovieCatalog, BaseRosterProvider, PassthroughMovieCatalog
from .models import GuessInput, MovieDetails, RankingInput, WatchProgressInput
from .phase import Phase

if TYPE_CHECKING:
    from ocularr.server.db.models.cycle import Cycle
    from ocularr.server.db.models.nomination import Nomination
    from ocularr.server.db.models.watch_progress import WatchProgress
    from ocularr.server.db.repositories.cycle_repository import CycleRepository


class CycleIntake:
    def __init__(
        self,
        cycles: "CycleRepository",
        roster: BaseRosterProvider,
        catalog: Optional[BaseMovieCatalog] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.cycles = cycles
        self.roster = roster
        self.catalog = catalog or PassthroughMovieCatalog()
        self.clock = clock

    def _load(self, cycle_id: int, phase: Phase, user_id: int) -> "Cycle":
        # Row lock serializes submissions against a concurrent phase change.
        cycle = self.cycles.get_cycle(cycle_id, lock=True)
        if cycle is None:
            raise CycleNotFound(cycle_id)
        if cycle.phase != phase.value:
            raise WrongPhase(phase.value, cycle.phase)
        if user_id not in self.roster.active_member_ids(cycle.club_id):
            raise NotClubMember(user_id)
        return cycle

    def nominate(self, cycle_id: int, user_id: int, movie: MovieDetails) -> "Nomination":
        """Add the member's single nomination for the cycle."""
        cycle = self._load(cycle_id, Phase.NOMINATION, user_id)

        if self.cycles.get_nomination_by_user(cycle.id, user_id) is not None:
            raise DuplicateNomination()

        taken = self.cycles.get_nomination_by_movie(cycle.id, movie.tmdb_id)
        if taken is not None:
            raise MovieAlreadyTaken(self.roster.display_name(cycle.club_id, taken.user_id))

        movie = self.catalog.enrich(movie)
        nomination = self.cycles.add_nomination(
            cycle.id, user_id, submitted_at=self.clock(), **movie.model_dump()
        )
        logger.info(
            "User {} nominated {!r} (tmdb {}) in cycle {}",
            user_id,
            nomination.title,
            nomination.tmdb_id,
            cycle.id,
        )
        return nomination

    def record_guesses_and_rankings(
        self,
        cycle_id: int,
        user_id: int,
        guesses: Sequence[GuessInput],
        rankings: Sequence[RankingInput],
    ) -> Tuple[int, int]:
        """Store a member's guesses and rankings in one go.

        Guesses about the member's own nomination are dropped. Rank positions
        must be distinct and cover 1..N for the N movies ranked. Returns the
        number of guesses and rankings written.
        """
        cycle = self._load(cycle_id, Phase.RANKING, user_id)

        if self.cycles.has_rankings(cycle.id, user_id):
            raise AlreadySubmitted()
        if self.cycles.has_results(cycle.id):
            raise ResultsAlreadyComputed(cycle.id)

        nominations: Dict[int, "Nomination"] = {
            n.id: n for n in self.cycles.list_nominations(cycle.id)
        }
        for item in list(guesses) + list(rankings):
            if item.nomination_id not in nominations:
                raise UnknownNomination(item.nomination_id)

        kept_guesses = [
            g for g in guesses if nominations[g.nomination_id].user_id != user_id
        ]

        for ranking in rankings:
            if nominations[ranking.nomination_id].user_id == user_id:
                raise CannotRankOwnNomination()

        _reject_repeats([g.nomination_id for g in kept_guesses], "guesses")
        _reject_repeats([r.nomination_id for r in rankings], "rankings")

        seen = set()
        for ranking in rankings:
            if ranking.rank_position in seen:
                raise DuplicateRankPosition(ranking.rank_position)
            seen.add(ranking.rank_position)

        rankable = sum(1 for n in nominations.values() if n.user_id != user_id)
        if rankable and not rankings:
            raise ValidationError("At least one ranking is required")
        for ranking in rankings:
            if ranking.rank_position > len(rankings):
                raise RankPositionOutOfRange(ranking.rank_position, len(rankings))

        guess_count = self.cycles.add_guesses(
            cycle.id,
            user_id,
            [
                (
                    g.nomination_id,
                    g.guessed_nominator_id,
                    nominations[g.nomination_id].user_id == g.guessed_nominator_id,
                )
                for g in kept_guesses
            ],
        )
        ranking_count = self.cycles.add_rankings(
            cycle.id, user_id, [(r.nomination_id, r.rank_position) for r in rankings]
        )
        self.cycles.flush()
        logger.info(
            "User {} submitted {} guesses and {} rankings in cycle {}",
            user_id,
            guess_count,
            ranking_count,
            cycle.id,
        )
        return guess_count, ranking_count

    def update_watch_progress(
        self,
        cycle_id: int,
        user_id: int,
        nomination_id: int,
        progress: WatchProgressInput,
    ) -> "WatchProgress":
        cycle = self._load(cycle_id, Phase.WATCHING, user_id)

        nomination = self.cycles.get_nomination(cycle.id, nomination_id)
        if nomination is None:
            raise NominationNotFound(nomination_id)
        if nomination.user_id == user_id:
            raise CannotUpdateOwnProgress()

        row = self.cycles.get_watch_progress(cycle.id, user_id, nomination_id)
        if row is None:
            row = self.cycles.add_watch_progress(cycle.id, user_id, nomination_id)

        if progress.watched and not row.watched:
            row.watched_at = self.clock()
        row.watched = progress.watched
        row.rating = progress.rating
        row.personal_notes = progress.personal_notes
        self.cycles.flush()
        logger.debug(
            "User {} watch progress on nomination {}: watched={}",
            user_id,
            nomination_id,
            progress.watched,
        )
        return row


def _reject_repeats(nomination_ids: Sequence[int], kind: str) -> None:
    seen = set()
    for nomination_id in nomination_ids:
        if nomination_id in seen:
            raise RepeatedNomination(nomination_id, kind)
        seen.add(nomination_id)
