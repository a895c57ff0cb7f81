"""
Tests for the pure scoring engine.
"""

from datetime import datetime, timedelta

import pytest

from ocularr.core.cycle.models import GuessRecord, NominationRecord, RankingRecord
from ocularr.core.cycle.scoring import (
    compute_results,
    guess_accuracy_by_user,
    points_for,
    received_positions,
)

T0 = datetime(2025, 3, 1, 20, 0)


def _noms(*owners):
    return [
        NominationRecord(id=10 + i, user_id=owner, submitted_at=T0 + timedelta(minutes=i))
        for i, owner in enumerate(owners)
    ]


def test_full_rankings_produce_one_row_per_nomination():
    nominations = _noms(1, 2, 3)  # ids 10, 11, 12
    rankings = [
        RankingRecord(1, 11, 1),
        RankingRecord(1, 12, 2),
        RankingRecord(2, 12, 1),
        RankingRecord(2, 10, 2),
    ]
    guesses = [
        GuessRecord(1, 11, True),
        GuessRecord(1, 12, False),
        GuessRecord(2, 10, True),
        GuessRecord(2, 12, True),
    ]

    outcome = compute_results(nominations, rankings, guesses, total_active_members=3)

    assert [(r.nomination_id, r.final_rank) for r in outcome.results] == [
        (11, 1),
        (12, 2),
        (10, 3),
    ]
    by_user = {r.user_id: r for r in outcome.results}
    assert by_user[2].average_rank == 1.0
    assert by_user[3].average_rank == 1.5
    assert by_user[3].total_votes_received == 2
    assert [r.points_earned for r in outcome.results] == [4.0, 2.0, 0.0]
    assert by_user[1].guess_accuracy == 50.0
    assert by_user[2].guess_accuracy == 100.0
    assert by_user[3].guess_accuracy == 0.0
    assert outcome.winner.user_id == 2
    assert outcome.unranked_nomination_ids == []


def test_points_sum_matches_closed_form_when_everything_is_ranked():
    n = 5
    nominations = _noms(*range(1, n + 1))
    rankings = []
    for ranker in range(1, n + 1):
        others = [nom for nom in nominations if nom.user_id != ranker]
        for position, nom in enumerate(others, start=1):
            rankings.append(RankingRecord(ranker, nom.id, position))

    outcome = compute_results(nominations, rankings, [], total_active_members=n)

    assert len(outcome.results) == n
    assert outcome.total_points == 2 * n * (n - 1) / 2
    assert sorted(r.final_rank for r in outcome.results) == list(range(1, n + 1))


def test_unranked_nominations_are_skipped():
    nominations = _noms(1, 2, 3)
    rankings = [RankingRecord(1, 11, 1), RankingRecord(2, 10, 1)]

    outcome = compute_results(nominations, rankings, [], total_active_members=3)

    assert {r.nomination_id for r in outcome.results} == {10, 11}
    assert outcome.unranked_nomination_ids == [12]
    # points base stays the roster size, not the number of scored rows
    assert [r.points_earned for r in outcome.results] == [4.0, 2.0]


def test_ties_resolve_by_submission_time_then_id():
    nominations = [
        NominationRecord(id=30, user_id=1, submitted_at=T0 + timedelta(minutes=5)),
        NominationRecord(id=20, user_id=2, submitted_at=T0),
        NominationRecord(id=25, user_id=3, submitted_at=T0),
    ]
    rankings = [
        RankingRecord(4, 30, 1),
        RankingRecord(4, 20, 1),
        RankingRecord(4, 25, 1),
    ]

    first = compute_results(nominations, rankings, [], total_active_members=4)
    second = compute_results(
        list(reversed(nominations)), list(reversed(rankings)), [], total_active_members=4
    )

    expected = [20, 25, 30]
    assert [r.nomination_id for r in first.results] == expected
    assert [r.nomination_id for r in second.results] == expected


def test_self_rankings_are_ignored():
    nominations = _noms(1, 2)
    rankings = [RankingRecord(1, 10, 1), RankingRecord(2, 10, 2)]

    assert received_positions(nominations, rankings) == {10: [2]}


def test_no_rankings_means_no_results():
    outcome = compute_results(_noms(1, 2), [], [], total_active_members=2)
    assert outcome.results == []
    assert outcome.winner is None
    assert outcome.unranked_nomination_ids == [10, 11]


def test_guess_accuracy_rounds_to_two_places():
    guesses = [GuessRecord(1, 10, True), GuessRecord(1, 11, False), GuessRecord(1, 12, False)]
    assert guess_accuracy_by_user(guesses) == {1: 33.33}


@pytest.mark.parametrize(
    "rank, members, expected",
    [(1, 3, 4.0), (3, 3, 0.0), (1, 1, 0.0), (3, 2, 0.0)],
)
def test_points_for(rank, members, expected):
    assert points_for(rank, members) == expected


def test_points_per_place_is_configurable():
    assert points_for(1, 4, points_per_place=3) == 9.0
