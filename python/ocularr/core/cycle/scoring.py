"""Scoring engine: turns a closed ranking phase into result rows.

Pure computation over detached records; persistence is the caller's job.

Final standing is the ascending order of average received rank. Equal
averages are resolved by nomination submission time, then nomination id,
so the outcome never depends on the order rows come back from the store.
"""

from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Sequence, Tuple

from .models import (
    GuessRecord,
    NominationRecord,
    RankingRecord,
    ScoredNomination,
    ScoringOutcome,
)

DEFAULT_POINTS_PER_PLACE = 2


def submission_order_key(nomination: NominationRecord) -> Tuple[bool, datetime, int]:
    submitted = nomination.submitted_at
    return (submitted is None, submitted or datetime.min, nomination.id)


def received_positions(
    nominations: Sequence[NominationRecord], rankings: Iterable[RankingRecord]
) -> Dict[int, List[int]]:
    """Rank positions each nomination received, excluding its owner's own."""
    owner_by_nomination = {n.id: n.user_id for n in nominations}
    received: Dict[int, List[int]] = defaultdict(list)
    for ranking in rankings:
        owner = owner_by_nomination.get(ranking.nomination_id)
        if owner is None or ranking.user_id == owner:
            continue
        received[ranking.nomination_id].append(ranking.rank_position)
    return received


def guess_accuracy_by_user(guesses: Iterable[GuessRecord]) -> Dict[int, float]:
    """Percentage of correct guesses per guesser."""
    totals: Dict[int, int] = defaultdict(int)
    correct: Dict[int, int] = defaultdict(int)
    for guess in guesses:
        totals[guess.user_id] += 1
        if guess.is_correct:
            correct[guess.user_id] += 1
    return {
        user_id: round(correct[user_id] / total * 100, 2)
        for user_id, total in totals.items()
        if total > 0
    }


def points_for(
    final_rank: int,
    total_active_members: int,
    points_per_place: int = DEFAULT_POINTS_PER_PLACE,
) -> float:
    """Points for beating each member below you, never below zero."""
    return float(max(total_active_members - final_rank, 0) * points_per_place)


def compute_results(
    nominations: Sequence[NominationRecord],
    rankings: Iterable[RankingRecord],
    guesses: Iterable[GuessRecord],
    total_active_members: int,
    points_per_place: int = DEFAULT_POINTS_PER_PLACE,
) -> ScoringOutcome:
    """Score a cycle.

    Nominations nobody ranked produce no row; their owners earn nothing.
    ``total_active_members`` is the roster size at scoring time, whether or
    not every member's nomination was ranked.
    """
    received = received_positions(nominations, rankings)
    accuracy = guess_accuracy_by_user(guesses)

    averaged = []
    unranked: List[int] = []
    for nomination in sorted(nominations, key=submission_order_key):
        positions = received.get(nomination.id)
        if not positions:
            unranked.append(nomination.id)
            continue
        averaged.append((nomination, sum(positions) / len(positions), len(positions)))

    # sorted() is stable, so equal averages keep submission order
    averaged.sort(key=lambda item: item[1])

    outcome = ScoringOutcome(unranked_nomination_ids=unranked)
    for final_rank, (nomination, average, votes) in enumerate(averaged, start=1):
        outcome.results.append(
            ScoredNomination(
                user_id=nomination.user_id,
                nomination_id=nomination.id,
                final_rank=final_rank,
                average_rank=average,
                points_earned=points_for(
                    final_rank, total_active_members, points_per_place
                ),
                guess_accuracy=accuracy.get(nomination.user_id, 0.0),
                total_votes_received=votes,
            )
        )
    return outcome
