"""Cycle state machine: start a cycle and move it between phases.

Transitions come from the explicit table in ``phase.py``. Leaving a phase
may be guarded (nomination needs one nomination per active member) or may
run work that has to land together with the phase change (scoring when
leaving ranking). Entering a phase may fire a hook (seeding watch progress,
closing the cycle). Everything happens inside the caller's unit of work,
so a failure anywhere leaves the cycle where it was.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Dict, Optional, Tuple, Union

from loguru import logger

from ocularr.utils.ts import utc_now

from .exceptions import (
    AlreadyActive,
    CycleCompleted,
    CycleNotFound,
    DirectorRoleRequired,
    IncompleteNominations,
    NoThemesAvailable,
)
from .hooks import mark_completed, seed_watch_progress
from .interfaces import BaseRosterProvider, BaseThemePool
from .models import ScoringOutcome
from .phase import INITIAL_PHASE, Direction, Phase, target_phase
from .results import calculate_cycle_results
from .scoring import DEFAULT_POINTS_PER_PLACE

if TYPE_CHECKING:
    from ocularr.server.db.models.cycle import Cycle
    from ocularr.server.db.repositories.cycle_repository import CycleRepository
    from ocularr.server.db.repositories.season_repository import (
        SeasonStatsRepository,
    )

MANAGER_ROLES = ("director", "producer")


@dataclass
class TransitionResult:
    """What an ``advance`` call did."""

    cycle_id: int
    from_phase: Phase
    phase: Phase
    changed: bool
    outcome: Optional[ScoringOutcome] = None
    seeded_watch_rows: int = 0

    @property
    def message(self) -> str:
        if not self.changed:
            return f"Cycle stays in {self.phase.value} phase"
        return f"Cycle moved from {self.from_phase.value} to {self.phase.value} phase"


class CycleStateMachine:
    def __init__(
        self,
        cycles: "CycleRepository",
        roster: BaseRosterProvider,
        themes: BaseThemePool,
        season_stats: "SeasonStatsRepository",
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = utc_now,
        points_per_place: int = DEFAULT_POINTS_PER_PLACE,
    ):
        self.cycles = cycles
        self.roster = roster
        self.themes = themes
        self.season_stats = season_stats
        self.rng = rng or random.Random()
        self.clock = clock
        self.points_per_place = points_per_place

        self._exit_handlers: Dict[
            Tuple[Phase, Direction], Callable[["Cycle"], Optional[ScoringOutcome]]
        ] = {
            (Phase.NOMINATION, Direction.NEXT): self._require_all_nominated,
            (Phase.RANKING, Direction.NEXT): self._score,
        }
        self._entry_hooks: Dict[Phase, Callable[["Cycle", datetime], Optional[int]]] = {
            Phase.WATCHING: self._enter_watching,
            Phase.IDLE: self._enter_idle,
        }

    def start(self, club_id: int, started_by: Optional[int] = None) -> "Cycle":
        """Open a new cycle for the club with a randomly drawn unused theme."""
        if started_by is not None:
            self._require_manager(club_id, started_by)

        active = self.cycles.get_active_cycle(club_id)
        if active is not None:
            raise AlreadyActive(club_id, active.id)

        pool = self.themes.unused_themes(club_id)
        if not pool:
            raise NoThemesAvailable(club_id)

        theme_id, theme_text = self.rng.choice(pool)
        self.themes.mark_used(theme_id)

        now = self.clock()
        cycle = self.cycles.add_cycle(
            club_id=club_id,
            theme_id=theme_id,
            theme_text=theme_text,
            cycle_number=self.cycles.count_cycles(club_id) + 1,
            season_year=now.year,
            started_by=started_by,
            phase=INITIAL_PHASE.value,
            started_at=now,
        )
        logger.info(
            "Started cycle {} (#{}) for club {} with theme {!r}",
            cycle.id,
            cycle.cycle_number,
            club_id,
            theme_text,
        )
        return cycle

    def advance(
        self,
        cycle_id: int,
        direction: Union[str, Direction],
        actor_id: Optional[int] = None,
    ) -> TransitionResult:
        """Move the cycle one step in ``direction``."""
        direction = Direction.parse(direction)
        cycle = self.cycles.get_cycle(cycle_id, lock=True)
        if cycle is None:
            raise CycleNotFound(cycle_id)
        if actor_id is not None:
            self._require_manager(cycle.club_id, actor_id)

        current = Phase(cycle.phase)
        target = target_phase(current, direction)
        if target is None:
            raise CycleCompleted(cycle.id)
        if target is current:
            logger.debug("Cycle {} already at the {} end", cycle.id, current.value)
            return TransitionResult(cycle.id, current, current, changed=False)

        outcome = None
        handler = self._exit_handlers.get((current, direction))
        if handler is not None:
            outcome = handler(cycle)

        cycle.phase = target.value
        self.cycles.flush()

        seeded = 0
        hook = self._entry_hooks.get(target)
        if hook is not None:
            seeded = hook(cycle, self.clock()) or 0
            self.cycles.flush()

        logger.info(
            "Cycle {} moved {} -> {} ({})",
            cycle.id,
            current.value,
            target.value,
            direction.value,
        )
        return TransitionResult(
            cycle.id,
            current,
            target,
            changed=True,
            outcome=outcome,
            seeded_watch_rows=seeded,
        )

    # Guards and hooks

    def _require_manager(self, club_id: int, user_id: int) -> None:
        if self.roster.role_of(club_id, user_id) not in MANAGER_ROLES:
            raise DirectorRoleRequired(user_id)

    def _require_all_nominated(self, cycle: "Cycle") -> None:
        nominated = self.cycles.count_nominations(cycle.id)
        members = self.roster.active_member_count(cycle.club_id)
        if nominated < members:
            raise IncompleteNominations(nominated, members)

    def _score(self, cycle: "Cycle") -> ScoringOutcome:
        return calculate_cycle_results(
            self.cycles,
            self.roster,
            self.season_stats,
            cycle,
            points_per_place=self.points_per_place,
        )

    def _enter_watching(self, cycle: "Cycle", now: datetime) -> int:
        return seed_watch_progress(self.cycles, self.roster, cycle, now)

    def _enter_idle(self, cycle: "Cycle", now: datetime) -> None:
        mark_completed(cycle, now)
