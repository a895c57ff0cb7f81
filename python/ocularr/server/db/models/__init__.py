"""
Ocularr Server - Database Models

All models are imported here so they are registered with SQLAlchemy.
"""

from .base import Base
from .club_member import CLUB_ROLES, ClubMember
from .cycle import Cycle
from .cycle_result import CycleResult
from .guess import Guess
from .nomination import Nomination
from .ranking import Ranking
from .season_stats import SeasonStats
from .theme import Theme
from .watch_progress import WatchProgress

__all__ = [
    "Base",
    "CLUB_ROLES",
    "ClubMember",
    "Cycle",
    "CycleResult",
    "Guess",
    "Nomination",
    "Ranking",
    "SeasonStats",
    "Theme",
    "WatchProgress",
]
