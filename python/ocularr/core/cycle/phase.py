"""Cycle phases and the transition table.

Every legal (phase, direction) pair is listed explicitly; anything missing
from ``TRANSITIONS`` is not a transition the machine knows.
"""

from enum import Enum
from typing import Dict, Optional, Tuple, Union

from .exceptions import InvalidDirection


class Phase(str, Enum):
    """Cycle lifecycle state. ``IDLE`` is terminal (completed)."""

    NOMINATION = "nomination"
    WATCHING = "watching"
    RANKING = "ranking"
    RESULTS = "results"
    IDLE = "idle"

    @property
    def is_active(self) -> bool:
        return self is not Phase.IDLE


class Direction(str, Enum):
    NEXT = "next"
    PREVIOUS = "previous"

    @classmethod
    def parse(cls, value: Union[str, "Direction"]) -> "Direction":
        if isinstance(value, Direction):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidDirection(value) from None


INITIAL_PHASE = Phase.NOMINATION

# Clamped at both ends: next on IDLE stays IDLE, previous on NOMINATION stays.
# (IDLE, PREVIOUS) is absent: completed cycles are immutable.
TRANSITIONS: Dict[Tuple[Phase, Direction], Phase] = {
    (Phase.NOMINATION, Direction.NEXT): Phase.WATCHING,
    (Phase.WATCHING, Direction.NEXT): Phase.RANKING,
    (Phase.RANKING, Direction.NEXT): Phase.RESULTS,
    (Phase.RESULTS, Direction.NEXT): Phase.IDLE,
    (Phase.IDLE, Direction.NEXT): Phase.IDLE,
    (Phase.NOMINATION, Direction.PREVIOUS): Phase.NOMINATION,
    (Phase.WATCHING, Direction.PREVIOUS): Phase.NOMINATION,
    (Phase.RANKING, Direction.PREVIOUS): Phase.WATCHING,
    (Phase.RESULTS, Direction.PREVIOUS): Phase.RANKING,
}


def target_phase(current: Phase, direction: Direction) -> Optional[Phase]:
    """Phase reached from `current`, or None when the move is not allowed."""
    return TRANSITIONS.get((current, direction))
