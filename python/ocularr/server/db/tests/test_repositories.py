"""
Tests for the club, cycle and season stats repositories.
"""

import pytest
from sqlalchemy.exc import IntegrityError

from ocularr.conftest import CLUB_ID
from ocularr.core.cycle.exceptions import ConcurrencyConflict
from ocularr.core.cycle.models import SeasonTotals
from ocularr.server.db.repositories import (
    get_club_repository,
    get_cycle_repository,
    get_season_stats_repository,
)


def _cycle(cycles, number=1, phase="nomination", club_id=CLUB_ID):
    return cycles.add_cycle(
        club_id=club_id,
        theme_id=None,
        theme_text="Heist",
        cycle_number=number,
        season_year=2025,
        started_by=1,
        phase=phase,
    )


def test_roster_counts_only_active_members(trio, session):
    club = get_club_repository(session)
    club.add_member(CLUB_ID, 4, club_display_name="Dave", is_active=False)

    assert club.active_member_ids(CLUB_ID) == {1, 2, 3}
    assert club.active_member_count(CLUB_ID) == 3
    assert club.role_of(CLUB_ID, 1) == "director"
    assert club.role_of(CLUB_ID, 4) is None
    assert club.display_name(CLUB_ID, 2) == "Bob"
    assert club.display_name(CLUB_ID, 99) == "user 99"


def test_mark_used_flips_once(trio, session):
    club = get_club_repository(session)
    [(theme_id, _)] = club.unused_themes(CLUB_ID)

    club.mark_used(theme_id)

    assert club.unused_themes(CLUB_ID) == []
    with pytest.raises(ConcurrencyConflict):
        club.mark_used(theme_id)


def test_theme_lookup_ignores_case(trio, session):
    club = get_club_repository(session)

    assert club.find_theme_by_text(CLUB_ID, "time TRAVEL") is not None
    assert club.find_theme_by_text(CLUB_ID, "Time Loops") is None


def test_list_themes_puts_unused_first(trio, session):
    club = get_club_repository(session)
    used = club.add_theme(CLUB_ID, "Westerns")
    club.add_theme(CLUB_ID, "Musicals")
    club.mark_used(used.id)
    session.expire_all()

    texts = [t.theme_text for t in club.list_themes(CLUB_ID)]

    assert texts[-1] == "Westerns"
    assert set(texts[:2]) == {"Time Travel", "Musicals"}


def test_one_active_cycle_per_club_is_enforced_by_the_store(db_manager, session):
    cycles = get_cycle_repository(session)
    _cycle(cycles, number=1)

    with pytest.raises(IntegrityError):
        _cycle(cycles, number=2)


def test_idle_cycles_do_not_block_a_new_one(db_manager, session):
    cycles = get_cycle_repository(session)
    _cycle(cycles, number=1, phase="idle")
    _cycle(cycles, number=2, phase="idle")
    active = _cycle(cycles, number=3)

    assert cycles.get_active_cycle(CLUB_ID).id == active.id
    assert cycles.count_cycles(CLUB_ID) == 3
    assert cycles.count_completed_cycles(CLUB_ID) == 2


def test_same_movie_twice_in_a_cycle_is_rejected_by_the_store(db_manager, session):
    cycles = get_cycle_repository(session)
    cycle = _cycle(cycles)
    cycles.add_nomination(cycle.id, 1, tmdb_id=603, title="The Matrix")

    with pytest.raises(IntegrityError):
        cycles.add_nomination(cycle.id, 2, tmdb_id=603, title="The Matrix")


def test_count_watched_others_skips_own_nomination(db_manager, session, clock):
    cycles = get_cycle_repository(session)
    cycle = _cycle(cycles)
    mine = cycles.add_nomination(cycle.id, 1, tmdb_id=1, title="A")
    theirs = cycles.add_nomination(cycle.id, 2, tmdb_id=2, title="B")
    cycles.add_watch_progress_rows(
        cycle.id,
        [(1, mine.id, True), (1, theirs.id, True), (2, mine.id, False), (2, theirs.id, True)],
        clock(),
    )

    assert cycles.count_watched_others(cycle.id) == {1: 1}
    assert cycles.existing_watch_keys(cycle.id) == {
        (1, mine.id),
        (1, theirs.id),
        (2, mine.id),
        (2, theirs.id),
    }


def test_completed_cycles_page_newest_first(db_manager, session, clock):
    cycles = get_cycle_repository(session)
    for number in range(1, 6):
        cycle = _cycle(cycles, number=number, phase="idle")
        cycle.completed_at = clock()
    cycles.flush()

    page = cycles.list_completed_cycles(CLUB_ID, limit=2, offset=2)

    assert [c.cycle_number for c in page] == [3, 2]


def test_season_totals_round_trip_through_the_row(db_manager, session):
    stats = get_season_stats_repository(session)
    assert stats.get_totals(1, CLUB_ID, 2025) is None

    stats.save_totals(1, CLUB_ID, 2025, SeasonTotals(cycles_participated=1, total_points=4.0))
    stats.save_totals(1, CLUB_ID, 2025, SeasonTotals(cycles_participated=2, total_points=6.0))

    totals = stats.get_totals(1, CLUB_ID, 2025)
    assert totals.cycles_participated == 2
    assert totals.total_points == 6.0
    assert len(stats.list_for_season(CLUB_ID, 2025)) == 1


def test_leaderboard_orders_by_points_then_average(db_manager, session):
    stats = get_season_stats_repository(session)
    stats.save_totals(1, CLUB_ID, 2025, SeasonTotals(total_points=6.0, average_points=2.0))
    stats.save_totals(2, CLUB_ID, 2025, SeasonTotals(total_points=6.0, average_points=3.0))
    stats.save_totals(3, CLUB_ID, 2025, SeasonTotals(total_points=8.0, average_points=2.0))
    stats.save_totals(4, CLUB_ID, 2024, SeasonTotals(total_points=99.0))

    board = stats.list_for_season(CLUB_ID, 2025)

    assert [row.user_id for row in board] == [3, 2, 1]
