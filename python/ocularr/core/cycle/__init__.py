"""Cycle engine: phases, submissions, scoring and season aggregation"""

from .exceptions import (
    ConcurrencyConflict,
    CycleError,
    PreconditionFailed,
    StorageError,
    ValidationError,
)
from .models import GuessInput, MovieDetails, RankingInput, WatchProgressInput
from .phase import Direction, Phase

__all__ = [
    # Phases
    "Phase",
    "Direction",
    # Inputs
    "MovieDetails",
    "GuessInput",
    "RankingInput",
    "WatchProgressInput",
    # Error families
    "CycleError",
    "ValidationError",
    "PreconditionFailed",
    "ConcurrencyConflict",
    "StorageError",
]
