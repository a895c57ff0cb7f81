"""
Tests for starting cycles and moving them through their phases.
"""

import pytest

from ocularr.conftest import CLUB_ID, seed_club
from ocularr.core.cycle.exceptions import (
    AlreadyActive,
    CycleCompleted,
    CycleNotFound,
    DirectorRoleRequired,
    IncompleteNominations,
    InvalidDirection,
    NoThemesAvailable,
    PreconditionFailed,
    StorageError,
)
from ocularr.core.cycle.intake import CycleIntake
from ocularr.core.cycle.models import MovieDetails, RankingInput
from ocularr.core.cycle.phase import Phase
from ocularr.core.cycle.state_machine import CycleStateMachine
from ocularr.server.db.models import Theme, WatchProgress
from ocularr.server.db.repositories import (
    get_club_repository,
    get_cycle_repository,
    get_season_stats_repository,
)


@pytest.fixture
def machine(trio, session, clock, rng):
    club = get_club_repository(session)
    return CycleStateMachine(
        get_cycle_repository(session),
        club,
        club,
        get_season_stats_repository(session),
        rng=rng,
        clock=clock,
    )


@pytest.fixture
def intake(trio, session, clock):
    return CycleIntake(get_cycle_repository(session), get_club_repository(session), clock=clock)


def _nominate_all(intake, cycle_id, users=(1, 2, 3)):
    return {
        user_id: intake.nominate(
            cycle_id, user_id, MovieDetails(tmdb_id=1000 + user_id, title=f"Movie {user_id}")
        )
        for user_id in users
    }


def _to_ranking(machine, intake):
    cycle = machine.start(CLUB_ID, started_by=1)
    noms = _nominate_all(intake, cycle.id)
    machine.advance(cycle.id, "next")
    machine.advance(cycle.id, "next")
    return cycle, noms


def test_start_opens_nomination_with_the_only_theme(machine, session):
    cycle = machine.start(CLUB_ID, started_by=1)

    assert cycle.phase == Phase.NOMINATION.value
    assert cycle.theme_text == "Time Travel"
    assert cycle.cycle_number == 1
    assert cycle.season_year == 2025
    assert cycle.started_by == 1
    theme = session.query(Theme).filter(Theme.id == cycle.theme_id).one()
    assert theme.is_used is True


def test_start_refuses_second_active_cycle(machine):
    first = machine.start(CLUB_ID)

    with pytest.raises(AlreadyActive) as exc_info:
        machine.start(CLUB_ID)
    assert exc_info.value.cycle_id == first.id


def test_start_needs_an_unused_theme(machine):
    cycle = machine.start(CLUB_ID)
    cycle.phase = Phase.IDLE.value
    machine.cycles.flush()

    with pytest.raises(NoThemesAvailable):
        machine.start(CLUB_ID)


def test_start_requires_director_or_producer(machine):
    with pytest.raises(DirectorRoleRequired):
        machine.start(CLUB_ID, started_by=2)


def test_cycle_numbers_increase_per_club(db_manager, session, clock, rng):
    seed_club(db_manager, [(1, "producer", "Ann")], themes=["Noir", "Heist"], club_id=9)
    club = get_club_repository(session)
    cycles = get_cycle_repository(session)
    machine = CycleStateMachine(
        cycles, club, club, get_season_stats_repository(session), rng=rng, clock=clock
    )

    first = machine.start(9, started_by=1)
    first.phase = Phase.IDLE.value
    cycles.flush()
    second = machine.start(9, started_by=1)

    assert (first.cycle_number, second.cycle_number) == (1, 2)
    assert {first.theme_text, second.theme_text} == {"Noir", "Heist"}


def test_leaving_nomination_requires_every_member_to_nominate(machine, intake):
    cycle = machine.start(CLUB_ID)
    _nominate_all(intake, cycle.id, users=(1, 2))

    with pytest.raises(IncompleteNominations) as exc_info:
        machine.advance(cycle.id, "next")
    assert isinstance(exc_info.value, PreconditionFailed)
    assert "2 of 3" in exc_info.value.message
    assert cycle.phase == Phase.NOMINATION.value


def test_member_leaving_after_nominating_does_not_block_watching(machine, intake, session):
    cycle = machine.start(CLUB_ID)
    _nominate_all(intake, cycle.id)
    get_club_repository(session).set_member_active(CLUB_ID, 3, False)

    result = machine.advance(cycle.id, "next")

    assert result.phase == Phase.WATCHING.value
    assert cycle.phase == Phase.WATCHING.value


def test_entering_watching_seeds_progress(machine, intake, session):
    cycle = machine.start(CLUB_ID)
    noms = _nominate_all(intake, cycle.id)

    result = machine.advance(cycle.id, "next")

    assert result.changed is True
    assert result.phase is Phase.WATCHING
    assert result.seeded_watch_rows == 9
    rows = session.query(WatchProgress).filter(WatchProgress.cycle_id == cycle.id).all()
    assert len(rows) == 9
    watched = {(r.user_id, r.nomination_id) for r in rows if r.watched}
    assert watched == {(user_id, nom.id) for user_id, nom in noms.items()}
    assert all(r.watched_at is not None for r in rows if r.watched)


def test_reentering_watching_seeds_nothing_new(machine, intake, session):
    cycle = machine.start(CLUB_ID)
    _nominate_all(intake, cycle.id)
    machine.advance(cycle.id, "next")
    machine.advance(cycle.id, "previous")

    again = machine.advance(cycle.id, "next")

    assert again.seeded_watch_rows == 0
    assert session.query(WatchProgress).filter(WatchProgress.cycle_id == cycle.id).count() == 9


def test_previous_on_nomination_is_a_no_op(machine):
    cycle = machine.start(CLUB_ID)
    version = cycle.version

    result = machine.advance(cycle.id, "previous")

    assert result.changed is False
    assert result.phase is Phase.NOMINATION
    assert cycle.version == version


def test_full_walk_scores_and_completes(machine, intake, session):
    cycle, noms = _to_ranking(machine, intake)
    intake.record_guesses_and_rankings(
        cycle.id,
        1,
        [],
        [
            RankingInput(nomination_id=noms[2].id, rank_position=1),
            RankingInput(nomination_id=noms[3].id, rank_position=2),
        ],
    )

    scored = machine.advance(cycle.id, "next")
    assert scored.phase is Phase.RESULTS
    assert scored.outcome.winner.user_id == 2
    assert cycle.winner_user_id == 2
    assert cycle.winner_points == 4.0
    assert cycle.completed_at is None

    done = machine.advance(cycle.id, "next")
    assert done.phase is Phase.IDLE
    assert cycle.completed_at is not None

    stay = machine.advance(cycle.id, "next")
    assert stay.changed is False
    assert stay.phase is Phase.IDLE


def test_completed_cycle_cannot_go_back(machine, intake):
    cycle, _ = _to_ranking(machine, intake)
    machine.advance(cycle.id, "next")
    machine.advance(cycle.id, "next")

    with pytest.raises(CycleCompleted):
        machine.advance(cycle.id, "previous")


def test_rescoring_after_previous_does_not_double_count(machine, intake, session):
    cycle, noms = _to_ranking(machine, intake)
    intake.record_guesses_and_rankings(
        cycle.id, 1, [], [RankingInput(nomination_id=noms[2].id, rank_position=1)]
    )
    machine.advance(cycle.id, "next")
    machine.advance(cycle.id, "previous")
    again = machine.advance(cycle.id, "next")

    assert again.outcome.results == []
    stats = get_season_stats_repository(session).get(2, CLUB_ID, 2025)
    assert stats.cycles_participated == 1
    assert stats.total_points == 4.0


def test_scoring_failure_keeps_cycle_in_ranking(machine, intake, monkeypatch):
    cycle, _ = _to_ranking(machine, intake)

    def broken(*args, **kwargs):
        raise StorageError("disk full")

    monkeypatch.setattr("ocularr.core.cycle.state_machine.calculate_cycle_results", broken)

    with pytest.raises(StorageError):
        machine.advance(cycle.id, "next")
    assert cycle.phase == Phase.RANKING.value


def test_advance_validates_direction_and_cycle(machine):
    cycle = machine.start(CLUB_ID)

    with pytest.raises(InvalidDirection):
        machine.advance(cycle.id, "sideways")
    with pytest.raises(CycleNotFound):
        machine.advance(9999, "next")


def test_advance_checks_actor_role(machine):
    cycle = machine.start(CLUB_ID)

    with pytest.raises(DirectorRoleRequired):
        machine.advance(cycle.id, "next", actor_id=3)
