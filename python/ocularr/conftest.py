"""Shared pytest fixtures: in-memory store, seeded club, deterministic clock."""

import random
from datetime import datetime, timedelta, timezone

import pytest

from ocularr.server.db.connection import DatabaseManager
from ocularr.server.db.repositories import get_club_repository

CLUB_ID = 1


class StepClock:
    """Returns a strictly increasing time on every call."""

    def __init__(self, start=None, step=timedelta(minutes=1)):
        self.current = start or datetime(2025, 3, 1, 20, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self):
        value = self.current
        self.current = self.current + self.step
        return value


def seed_club(db_manager, members, themes=(), club_id=CLUB_ID):
    """Insert members as (user_id, role, display_name) and theme texts."""
    with db_manager.transaction() as session:
        club = get_club_repository(session)
        for user_id, role, name in members:
            club.add_member(club_id, user_id, role=role, club_display_name=name)
        for text in themes:
            club.add_theme(club_id, text, submitted_by=members[0][0])


@pytest.fixture
def db_manager():
    manager = DatabaseManager(database_url="sqlite://")
    manager.create_tables()
    yield manager
    manager.drop_tables()
    manager.dispose()


@pytest.fixture
def session(db_manager):
    s = db_manager.get_session()
    yield s
    s.rollback()
    s.close()


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def rng():
    return random.Random(7)


@pytest.fixture
def trio(db_manager):
    """Alice (director), Bob and Carol (critics), one theme in the pool."""
    seed_club(
        db_manager,
        [(1, "director", "Alice"), (2, "critic", "Bob"), (3, "critic", "Carol")],
        themes=["Time Travel"],
    )
    return db_manager
