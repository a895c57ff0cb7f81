"""Results calculation at the ranking -> results boundary.

Loads rankings and guesses, runs the scoring engine, writes result rows and
the cycle's winner fields, then folds everything into season stats. The
caller's unit of work makes the whole thing atomic with the phase change.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from .aggregator import fold_result
from .interfaces import BaseRosterProvider
from .models import GuessRecord, NominationRecord, RankingRecord, ScoringOutcome
from .scoring import DEFAULT_POINTS_PER_PLACE, compute_results

if TYPE_CHECKING:
    from ocularr.server.db.models.cycle import Cycle
    from ocularr.server.db.repositories.cycle_repository import CycleRepository
    from ocularr.server.db.repositories.season_repository import (
        SeasonStatsRepository,
    )


def load_and_score(
    cycles: "CycleRepository",
    roster: BaseRosterProvider,
    cycle: "Cycle",
    points_per_place: int = DEFAULT_POINTS_PER_PLACE,
) -> ScoringOutcome:
    nominations = [
        NominationRecord(id=n.id, user_id=n.user_id, submitted_at=n.submitted_at)
        for n in cycles.list_nominations(cycle.id)
    ]
    rankings = [
        RankingRecord(
            user_id=r.user_id, nomination_id=r.nomination_id, rank_position=r.rank_position
        )
        for r in cycles.list_rankings(cycle.id)
    ]
    guesses = [
        GuessRecord(user_id=g.user_id, nomination_id=g.nomination_id, is_correct=g.is_correct)
        for g in cycles.list_guesses(cycle.id)
    ]
    return compute_results(
        nominations,
        rankings,
        guesses,
        total_active_members=roster.active_member_count(cycle.club_id),
        points_per_place=points_per_place,
    )


def apply_season_results(
    season_stats: "SeasonStatsRepository",
    cycles: "CycleRepository",
    cycle: "Cycle",
    outcome: ScoringOutcome,
) -> None:
    """Fold each result row into its owner's (club, season) totals once."""
    watched = cycles.count_watched_others(cycle.id)
    for result in outcome.results:
        current = season_stats.get_totals(result.user_id, cycle.club_id, cycle.season_year)
        totals = fold_result(current, result, movies_watched=watched.get(result.user_id, 0))
        season_stats.save_totals(result.user_id, cycle.club_id, cycle.season_year, totals)


def calculate_cycle_results(
    cycles: "CycleRepository",
    roster: BaseRosterProvider,
    season_stats: "SeasonStatsRepository",
    cycle: "Cycle",
    points_per_place: int = DEFAULT_POINTS_PER_PLACE,
) -> ScoringOutcome:
    """Score the cycle and persist results, winner and season stats.

    Results are written exactly once per cycle. If rows already exist (the
    cycle went back to ranking and forward again) nothing is recomputed.
    """
    if cycles.has_results(cycle.id):
        logger.info("Cycle {} already has results; keeping them", cycle.id)
        return ScoringOutcome()

    outcome = load_and_score(cycles, roster, cycle, points_per_place)
    for result in outcome.results:
        cycles.add_result(
            cycle.id,
            user_id=result.user_id,
            nomination_id=result.nomination_id,
            final_rank=result.final_rank,
            average_rank=result.average_rank,
            points_earned=result.points_earned,
            guess_accuracy=result.guess_accuracy,
            total_votes_received=result.total_votes_received,
        )

    winner = outcome.winner
    if winner is not None:
        cycle.winner_user_id = winner.user_id
        cycle.winner_nomination_id = winner.nomination_id
        cycle.winner_points = winner.points_earned
    cycles.flush()

    apply_season_results(season_stats, cycles, cycle, outcome)

    if outcome.unranked_nomination_ids:
        logger.warning(
            "Cycle {}: nominations {} received no rankings and were not scored",
            cycle.id,
            outcome.unranked_nomination_ids,
        )
    logger.info(
        "Scored cycle {}: {} results, winner user={}",
        cycle.id,
        len(outcome.results),
        winner.user_id if winner else None,
    )
    return outcome
