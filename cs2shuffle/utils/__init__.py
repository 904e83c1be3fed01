"""
Utilities module for the shuffle tournament core.
"""
from cs2shuffle.utils.constants import (
    TOURNAMENT_SETUP, TOURNAMENT_IN_PROGRESS, TOURNAMENT_COMPLETED,
    TOURNAMENT_STATUSES,
    MATCH_PENDING, MATCH_READY, MATCH_LIVE, MATCH_COMPLETED, MATCH_STATUSES,
    ROUND_LIMIT_FIRST_TO_13, ROUND_LIMIT_MAX_ROUNDS, ROUND_LIMIT_TYPES,
    OVERTIME_ENABLED, OVERTIME_DISABLED, OVERTIME_MODES,
    TEAM1, TEAM2, SIDE_TEAM1_CT, SIDE_TEAM2_CT,
)
from cs2shuffle.utils.timeutils import utc_now

__all__ = [
    'TOURNAMENT_SETUP', 'TOURNAMENT_IN_PROGRESS', 'TOURNAMENT_COMPLETED',
    'TOURNAMENT_STATUSES',
    'MATCH_PENDING', 'MATCH_READY', 'MATCH_LIVE', 'MATCH_COMPLETED', 'MATCH_STATUSES',
    'ROUND_LIMIT_FIRST_TO_13', 'ROUND_LIMIT_MAX_ROUNDS', 'ROUND_LIMIT_TYPES',
    'OVERTIME_ENABLED', 'OVERTIME_DISABLED', 'OVERTIME_MODES',
    'TEAM1', 'TEAM2', 'SIDE_TEAM1_CT', 'SIDE_TEAM2_CT',
    'utc_now',
]
