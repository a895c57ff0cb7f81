"""Read projections returned by the cycle service."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ThemeData(BaseModel):
    id: int = Field(..., description="Theme id")
    club_id: int = Field(..., description="Owning club")
    submitted_by: Optional[int] = Field(None, description="Member who submitted it")
    theme_text: str = Field(..., description="Theme text")
    is_used: bool = Field(..., description="Already drawn by a cycle")
    created_at: Optional[datetime] = Field(None, description="Submission time")


class CycleData(BaseModel):
    id: int = Field(..., description="Cycle id")
    club_id: int = Field(..., description="Owning club")
    theme_id: Optional[int] = Field(None, description="Theme drawn at start")
    theme_text: Optional[str] = Field(None, description="Theme text snapshot")
    phase: str = Field(..., description="Current phase")
    cycle_number: int = Field(..., description="1-based number within the club")
    season_year: int = Field(..., description="Season the cycle counts towards")
    started_by: Optional[int] = Field(None, description="Member who started it")
    started_at: Optional[datetime] = Field(None, description="Start time")
    completed_at: Optional[datetime] = Field(None, description="Set on entering idle")
    winner_user_id: Optional[int] = Field(None, description="Winning nominator")
    winner_nomination_id: Optional[int] = Field(None, description="Winning nomination")
    winner_points: Optional[float] = Field(None, description="Winner's points")


class NominationData(BaseModel):
    id: int
    cycle_id: int
    user_id: int = Field(..., description="Nominator")
    tmdb_id: int
    title: str
    year: Optional[int] = None
    poster_path: Optional[str] = None
    overview: Optional[str] = None
    release_date: Optional[date] = None
    director: Optional[str] = None
    runtime: Optional[int] = None
    submitted_at: Optional[datetime] = None


class WatchProgressData(BaseModel):
    user_id: int
    nomination_id: int
    watched: bool
    watched_at: Optional[datetime] = None
    rating: Optional[float] = None
    personal_notes: Optional[str] = None


class GuessData(BaseModel):
    user_id: int
    nomination_id: int
    guessed_nominator_id: int
    is_correct: bool


class RankingData(BaseModel):
    user_id: int
    nomination_id: int
    rank_position: int


class CycleResultData(BaseModel):
    user_id: int = Field(..., description="Nominator being scored")
    nomination_id: int
    final_rank: int
    average_rank: float
    points_earned: float
    guess_accuracy: float = Field(..., description="Percentage of correct guesses")
    total_votes_received: int


class CurrentCycleData(BaseModel):
    cycle: CycleData
    nominations: List[NominationData] = Field(
        default_factory=list, description="Nominations in submission order"
    )
    watch_progress: List[WatchProgressData] = Field(
        default_factory=list, description="The caller's own watch progress"
    )
    active_member_count: int = Field(..., description="Members expected to nominate")


class CycleResultsData(BaseModel):
    cycle: CycleData
    results: List[CycleResultData] = Field(default_factory=list)
    guesses: List[GuessData] = Field(default_factory=list)
    rankings: List[RankingData] = Field(default_factory=list)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class CycleHistoryData(BaseModel):
    cycles: List[CycleData] = Field(default_factory=list)
    pagination: Pagination


class SeasonStatsData(BaseModel):
    user_id: int
    club_id: int
    season_year: int
    cycles_participated: int
    cycles_won: int
    total_points: float
    average_points: float
    average_rank: float
    guess_accuracy: float
    movies_watched: int


class ClubOverview(BaseModel):
    completed_cycles: int
    movies_nominated: int
    active_members: int
    available_themes: int


class RecentWinner(BaseModel):
    cycle_id: int
    cycle_number: int
    theme_text: Optional[str] = None
    completed_at: Optional[datetime] = None
    winner_user_id: int
    winner_name: str
    winner_points: Optional[float] = None
    movie_title: Optional[str] = None


class ClubStatsData(BaseModel):
    season_year: int
    leaderboard: List[SeasonStatsData] = Field(default_factory=list)
    overview: ClubOverview
    recent_winners: List[RecentWinner] = Field(default_factory=list)


class TransitionData(BaseModel):
    cycle_id: int
    from_phase: str
    phase: str
    changed: bool
    message: str
