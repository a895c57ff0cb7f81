#!/usr/bin/env python3
"""Print a club's season leaderboard, counters and recent winners"""

import sys
sys.path.insert(0, '.')

from loguru import logger

from ocularr.server.config.settings import get_settings
from ocularr.server.db.connection import init_database
from ocularr.server.services.cycle_service import get_cycle_service


def show_club_standings(club_id: int, season_year: int = None):
    """Show standings for one club"""
    service = get_cycle_service()
    stats = service.get_club_stats(club_id, season_year)

    print('=' * 80)
    print(f'Club {club_id} - season {stats.season_year}')
    print('=' * 80)

    if not stats.leaderboard:
        print('  (no scored cycles this season)')
    for place, row in enumerate(stats.leaderboard, start=1):
        print(
            f'{place:>2}. user {row.user_id}: {row.total_points:g} pts '
            f'({row.cycles_won} wins / {row.cycles_participated} cycles, '
            f'avg {row.average_points:.2f}, guesses {row.guess_accuracy:.0f}%)'
        )

    overview = stats.overview
    print(f'\nCompleted cycles: {overview.completed_cycles}')
    print(f'Movies nominated: {overview.movies_nominated}')
    print(f'Active members: {overview.active_members}')
    print(f'Unused themes: {overview.available_themes}')

    if stats.recent_winners:
        print('\nRecent winners:')
        for w in stats.recent_winners:
            print(
                f'  #{w.cycle_number} "{w.theme_text or "N/A"}": '
                f'{w.winner_name} with {w.movie_title or "N/A"}'
            )

    current = service.get_current_cycle(club_id, user_id=0)
    if current:
        print(
            f'\nActive cycle #{current.cycle.cycle_number} is in '
            f'{current.cycle.phase} ({len(current.nominations)}/'
            f'{current.active_member_count} nominations)'
        )


if __name__ == "__main__":
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        level=get_settings().LOG_LEVEL,
    )

    if len(sys.argv) < 2:
        print('usage: show_club_standings.py <club_id> [season_year]')
        sys.exit(1)

    init_database()
    season = int(sys.argv[2]) if len(sys.argv) > 2 else None
    show_club_standings(int(sys.argv[1]), season)
