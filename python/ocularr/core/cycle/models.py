from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class MovieDetails(BaseModel):
    """Movie being nominated, as known to the external catalog (TMDB)."""

    tmdb_id: int = Field(..., gt=0, description="External movie id")
    title: str = Field(..., min_length=1, max_length=255, description="Movie title")
    year: Optional[int] = Field(None, description="Release year")
    poster_path: Optional[str] = Field(None, description="Poster path on the CDN")
    overview: Optional[str] = Field(None, description="Plot overview")
    release_date: Optional[date] = Field(None, description="Release date")
    director: Optional[str] = Field(None, description="Director name")
    runtime: Optional[int] = Field(None, ge=0, description="Runtime in minutes")

    @field_validator("title")
    @classmethod
    def _strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value


class GuessInput(BaseModel):
    nomination_id: int = Field(..., description="Nomination being guessed")
    guessed_nominator_id: int = Field(..., description="Who the guesser thinks nominated it")


class RankingInput(BaseModel):
    nomination_id: int = Field(..., description="Nomination being ranked")
    rank_position: int = Field(..., gt=0, description="1 = best")


class WatchProgressInput(BaseModel):
    watched: bool = Field(..., description="Whether the member has watched it")
    rating: Optional[float] = Field(None, ge=0, le=10, description="0..10 rating")
    personal_notes: Optional[str] = Field(None, description="Free-form notes")


# Plain records handed to the scoring engine and the season aggregator.
# They carry only what the computation needs, detached from any session.


@dataclass(frozen=True)
class NominationRecord:
    id: int
    user_id: int
    submitted_at: Optional[datetime] = None


@dataclass(frozen=True)
class RankingRecord:
    user_id: int
    nomination_id: int
    rank_position: int


@dataclass(frozen=True)
class GuessRecord:
    user_id: int
    nomination_id: int
    is_correct: bool


@dataclass(frozen=True)
class ScoredNomination:
    """One result row as computed by the scoring engine."""

    user_id: int
    nomination_id: int
    final_rank: int
    average_rank: float
    points_earned: float
    guess_accuracy: float
    total_votes_received: int


@dataclass
class ScoringOutcome:
    results: List[ScoredNomination] = field(default_factory=list)
    unranked_nomination_ids: List[int] = field(default_factory=list)

    @property
    def winner(self) -> Optional[ScoredNomination]:
        return self.results[0] if self.results else None

    @property
    def total_points(self) -> float:
        return sum(r.points_earned for r in self.results)


@dataclass
class SeasonTotals:
    """Running season figures for one (user, club, season)."""

    cycles_participated: int = 0
    cycles_won: int = 0
    total_points: float = 0.0
    average_points: float = 0.0
    average_rank: float = 0.0
    guess_accuracy: float = 0.0
    movies_watched: int = 0

    def as_dict(self) -> Dict[str, float]:
        return {
            "cycles_participated": self.cycles_participated,
            "cycles_won": self.cycles_won,
            "total_points": self.total_points,
            "average_points": self.average_points,
            "average_rank": self.average_rank,
            "guess_accuracy": self.guess_accuracy,
            "movies_watched": self.movies_watched,
        }
