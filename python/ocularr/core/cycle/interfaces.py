from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Set, Tuple

from .models import MovieDetails

# Contracts for the collaborators the cycle engine calls into. Implementations
# receive the caller's session through their constructor so every read and
# write joins the same unit of work.


class BaseRosterProvider(ABC):
    """Answers who is currently an active member of a club."""

    @abstractmethod
    def active_member_ids(self, club_id: int) -> Set[int]:
        """Return the ids of active members."""
        raise NotImplementedError

    def active_member_count(self, club_id: int) -> int:
        return len(self.active_member_ids(club_id))

    @abstractmethod
    def role_of(self, club_id: int, user_id: int) -> Optional[str]:
        """Return the member's club role, or None if not an active member."""
        raise NotImplementedError

    @abstractmethod
    def display_name(self, club_id: int, user_id: int) -> str:
        """Return the name to show for a member in messages."""
        raise NotImplementedError


class BaseThemePool(ABC):
    """Holds submitted themes per club; cycle start consumes one."""

    @abstractmethod
    def unused_themes(self, club_id: int) -> List[Tuple[int, str]]:
        """Return (theme_id, text) pairs not yet used."""
        raise NotImplementedError

    @abstractmethod
    def mark_used(self, theme_id: int) -> None:
        """Mark a theme used. Must fail if it was already used."""
        raise NotImplementedError


class BaseMovieCatalog(ABC):
    """Looks up movie metadata for nominations."""

    @abstractmethod
    def enrich(self, movie: MovieDetails) -> MovieDetails:
        """Return the movie with any missing metadata filled in."""
        raise NotImplementedError


class PassthroughMovieCatalog(BaseMovieCatalog):
    """Catalog that trusts the submitted metadata as-is."""

    def enrich(self, movie: MovieDetails) -> MovieDetails:
        if movie.year is None and movie.release_date is not None:
            return movie.model_copy(update={"year": movie.release_date.year})
        return movie
