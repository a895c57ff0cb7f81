"""
Ocularr Server - Club Repository

SQL-backed roster and theme pool used by the cycle engine, plus the small
amount of theme/member bookkeeping the engine needs around them.
"""

from typing import List, Optional, Set, Tuple

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from ocularr.core.cycle.exceptions import ConcurrencyConflict
from ocularr.core.cycle.interfaces import BaseRosterProvider, BaseThemePool

from ..models.club_member import ClubMember
from ..models.theme import Theme


class ClubRepository(BaseRosterProvider, BaseThemePool):
    """Roster provider and theme pool over the club tables."""

    def __init__(self, db_session: Session):
        self.db_session = db_session

    # Roster provider
    def active_member_ids(self, club_id: int) -> Set[int]:
        rows = (
            self.db_session.query(ClubMember.user_id)
            .filter(ClubMember.club_id == club_id, ClubMember.is_active.is_(True))
            .all()
        )
        return {row[0] for row in rows}

    def active_member_count(self, club_id: int) -> int:
        return (
            self.db_session.query(func.count(ClubMember.id))
            .filter(ClubMember.club_id == club_id, ClubMember.is_active.is_(True))
            .scalar()
            or 0
        )

    def get_member(self, club_id: int, user_id: int) -> Optional[ClubMember]:
        return (
            self.db_session.query(ClubMember)
            .filter(ClubMember.club_id == club_id, ClubMember.user_id == user_id)
            .first()
        )

    def role_of(self, club_id: int, user_id: int) -> Optional[str]:
        member = self.get_member(club_id, user_id)
        if member is None or not member.is_active:
            return None
        return member.role

    def display_name(self, club_id: int, user_id: int) -> str:
        member = self.get_member(club_id, user_id)
        if member is not None and member.club_display_name:
            return member.club_display_name
        return f"user {user_id}"

    def add_member(
        self,
        club_id: int,
        user_id: int,
        role: str = "critic",
        club_display_name: Optional[str] = None,
        is_active: bool = True,
    ) -> ClubMember:
        member = ClubMember(
            club_id=club_id,
            user_id=user_id,
            role=role,
            club_display_name=club_display_name,
            is_active=is_active,
        )
        self.db_session.add(member)
        self.db_session.flush()
        return member

    def set_member_active(self, club_id: int, user_id: int, is_active: bool) -> bool:
        member = self.get_member(club_id, user_id)
        if member is None:
            return False
        member.is_active = is_active
        self.db_session.flush()
        return True

    # Theme pool
    def unused_themes(self, club_id: int) -> List[Tuple[int, str]]:
        rows = (
            self.db_session.query(Theme.id, Theme.theme_text)
            .filter(Theme.club_id == club_id, Theme.is_used.is_(False))
            .order_by(Theme.id.asc())
            .all()
        )
        return [(row[0], row[1]) for row in rows]

    def mark_used(self, theme_id: int) -> None:
        """Flip is_used only if still unused, so two starts cannot share a theme."""
        result = self.db_session.execute(
            update(Theme)
            .where(Theme.id == theme_id, Theme.is_used.is_(False))
            .values(is_used=True)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConcurrencyConflict(f"Theme {theme_id} was taken by another cycle")

    def count_unused_themes(self, club_id: int) -> int:
        return (
            self.db_session.query(func.count(Theme.id))
            .filter(Theme.club_id == club_id, Theme.is_used.is_(False))
            .scalar()
            or 0
        )

    def find_theme_by_text(self, club_id: int, theme_text: str) -> Optional[Theme]:
        """Case-insensitive lookup of a theme in the club's pool."""
        return (
            self.db_session.query(Theme)
            .filter(
                Theme.club_id == club_id,
                func.lower(Theme.theme_text) == theme_text.lower(),
            )
            .first()
        )

    def add_theme(
        self, club_id: int, theme_text: str, submitted_by: Optional[int] = None
    ) -> Theme:
        theme = Theme(club_id=club_id, theme_text=theme_text, submitted_by=submitted_by)
        self.db_session.add(theme)
        self.db_session.flush()
        return theme

    def list_themes(self, club_id: int) -> List[Theme]:
        """Unused first, newest first."""
        return (
            self.db_session.query(Theme)
            .filter(Theme.club_id == club_id)
            .order_by(Theme.is_used.asc(), Theme.created_at.desc(), Theme.id.desc())
            .all()
        )


def get_club_repository(db_session: Session) -> ClubRepository:
    """Create a club repository bound to the given session."""
    return ClubRepository(db_session)
