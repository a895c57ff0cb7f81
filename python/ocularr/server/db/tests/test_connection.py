"""
Tests for the database manager and its unit-of-work boundary.
"""

import pytest
from sqlalchemy.orm.exc import StaleDataError

from ocularr.conftest import CLUB_ID
from ocularr.server.db import connection
from ocularr.server.db.connection import DatabaseManager, init_database
from ocularr.server.db.models import Cycle, Theme
from ocularr.server.db.repositories import get_club_repository, get_cycle_repository


def _add_cycle(session):
    return get_cycle_repository(session).add_cycle(
        club_id=CLUB_ID,
        theme_id=None,
        theme_text="Heist",
        cycle_number=1,
        season_year=2025,
        started_by=None,
    )


def test_transaction_commits_on_success(db_manager):
    with db_manager.transaction() as session:
        get_club_repository(session).add_theme(CLUB_ID, "Heist")

    with db_manager.transaction() as session:
        assert session.query(Theme).count() == 1


def test_transaction_rolls_back_on_error(db_manager):
    with pytest.raises(RuntimeError):
        with db_manager.transaction() as session:
            get_club_repository(session).add_theme(CLUB_ID, "Heist")
            raise RuntimeError("boom")

    with db_manager.transaction() as session:
        assert session.query(Theme).count() == 0


def test_concurrent_phase_write_is_detected(tmp_path):
    manager = DatabaseManager(database_url=f"sqlite:///{tmp_path / 'cycles.db'}")
    manager.create_tables()
    with manager.transaction() as session:
        cycle_id = _add_cycle(session).id

    first = manager.get_session()
    second = manager.get_session()
    try:
        mine = first.query(Cycle).filter(Cycle.id == cycle_id).one()
        theirs = second.query(Cycle).filter(Cycle.id == cycle_id).one()

        theirs.phase = "watching"
        second.commit()

        mine.phase = "watching"
        with pytest.raises(StaleDataError):
            first.flush()
    finally:
        first.rollback()
        first.close()
        second.close()
        manager.dispose()


def test_init_database_creates_tables(monkeypatch):
    manager = DatabaseManager(database_url="sqlite://")
    monkeypatch.setattr(connection, "_db_manager", manager)

    assert init_database() is True
    with manager.transaction() as session:
        assert session.query(Cycle).count() == 0
    manager.dispose()


def test_get_db_yields_a_session_from_the_global_manager(monkeypatch):
    manager = DatabaseManager(database_url="sqlite://")
    manager.create_tables()
    monkeypatch.setattr(connection, "_db_manager", manager)

    sessions = connection.get_db()
    session = next(sessions)
    assert session.query(Theme).count() == 0
    sessions.close()
    manager.dispose()
