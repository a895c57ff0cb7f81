from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def current_season_year() -> int:
    """Seasons are calendar years in UTC."""
    return utc_now().year
