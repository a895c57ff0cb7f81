"""Phase-entry hooks.

A hook runs right after the cycle's phase has been set to the state it is
attached to, inside the same unit of work as the transition.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from loguru import logger

from .interfaces import BaseRosterProvider

if TYPE_CHECKING:
    from ocularr.server.db.models.cycle import Cycle
    from ocularr.server.db.repositories.cycle_repository import CycleRepository


def seed_watch_progress(
    cycles: "CycleRepository",
    roster: BaseRosterProvider,
    cycle: "Cycle",
    now: datetime,
) -> int:
    """Create a WatchProgress row for every (active member, nomination) pair.

    A member's own nomination starts as watched. Pairs that already have a
    row are left alone, so running this twice inserts nothing the second
    time. Returns the number of rows inserted.
    """
    members = sorted(roster.active_member_ids(cycle.club_id))
    nominations = cycles.list_nominations(cycle.id)
    existing = cycles.existing_watch_keys(cycle.id)

    missing = [
        (user_id, nomination.id, nomination.user_id == user_id)
        for user_id in members
        for nomination in nominations
        if (user_id, nomination.id) not in existing
    ]
    inserted = cycles.add_watch_progress_rows(cycle.id, missing, now)
    logger.info(
        "Seeded {} watch progress rows for cycle {} ({} members x {} nominations)",
        inserted,
        cycle.id,
        len(members),
        len(nominations),
    )
    return inserted


def mark_completed(cycle: "Cycle", now: datetime) -> None:
    """Entering idle closes the cycle for good."""
    cycle.completed_at = now
