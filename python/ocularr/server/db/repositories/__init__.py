"""Ocularr Server - Repositories."""

from .club_repository import ClubRepository, get_club_repository
from .cycle_repository import CycleRepository, get_cycle_repository
from .season_repository import SeasonStatsRepository, get_season_stats_repository

__all__ = [
    "ClubRepository",
    "CycleRepository",
    "SeasonStatsRepository",
    "get_club_repository",
    "get_cycle_repository",
    "get_season_stats_repository",
]
