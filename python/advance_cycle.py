#!/usr/bin/env python3
"""Move a club's active cycle to the next or previous phase"""

import sys
sys.path.insert(0, '.')

from loguru import logger

from ocularr.core.cycle.exceptions import CycleError
from ocularr.server.config.settings import get_settings
from ocularr.server.db.connection import init_database
from ocularr.server.services.cycle_service import get_cycle_service


def advance_cycle(club_id: int, direction: str = "next", actor_id: int = None):
    """Advance the active cycle of a club"""
    service = get_cycle_service()
    current = service.get_current_cycle(club_id, user_id=actor_id or 0)
    if current is None:
        print(f'Club {club_id} has no active cycle')
        return False

    print(f'Cycle #{current.cycle.cycle_number} ({current.cycle.theme_text}) is in {current.cycle.phase}')
    try:
        result = service.advance(current.cycle.id, direction, actor_id=actor_id)
    except CycleError as e:
        print(f'❌ {e.to_dict()}')
        return False

    print(f'✅ {result.message}')
    if result.phase == "results":
        for r in service.get_cycle_results(result.cycle_id).results:
            print(f'  {r.final_rank}. user {r.user_id}: avg rank {r.average_rank:.2f}, {r.points_earned:g} pts')
    return True


if __name__ == "__main__":
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        level=get_settings().LOG_LEVEL,
    )

    if len(sys.argv) < 2:
        print('usage: advance_cycle.py <club_id> [next|previous] [actor_id]')
        sys.exit(1)

    init_database()
    direction = sys.argv[2] if len(sys.argv) > 2 else "next"
    actor = int(sys.argv[3]) if len(sys.argv) > 3 else None
    ok = advance_cycle(int(sys.argv[1]), direction, actor)
    sys.exit(0 if ok else 1)
