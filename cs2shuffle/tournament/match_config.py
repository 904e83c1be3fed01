"""
Game-server match configuration for shuffle matches.

Produces the config dict a CS2 match plugin loads (team rosters, round limit
cvars, ready thresholds). The generator knows nothing about a round's map:
it offers the tournament's whole map pool with a veto, and the round
scheduler narrows that to the round's single map afterwards.
"""

import logging
from typing import Any, Dict, Optional

from cs2shuffle.tournament.models import ShuffleTournament, SyntheticTeam
from cs2shuffle.tournament.storage import TournamentStorage
from cs2shuffle.utils.constants import (
    DEFAULT_MAX_ROUNDS,
    DEFAULT_TEAM_SIZE,
    FIRST_TO_13_MAXROUNDS,
    OVERTIME_ENABLED,
    OVERTIME_MAXROUNDS,
    OVERTIME_STARTMONEY,
    ROUND_LIMIT_FIRST_TO_13,
    ROUND_LIMIT_MAX_ROUNDS,
)

logger = logging.getLogger(__name__)


def build_round_limit_cvars(round_limit_type: str, max_rounds: Optional[int],
                            overtime_mode: str) -> Dict[str, int]:
    """
    Server cvars for the round limit policy.

    first_to_13 plays 24 regulation rounds, with MR3 overtime (10k start
    money) when overtime is enabled. max_rounds plays exactly that many
    rounds and never goes to overtime.
    """
    cvars = {}
    if round_limit_type == ROUND_LIMIT_FIRST_TO_13:
        overtime = overtime_mode == OVERTIME_ENABLED
        cvars['mp_maxrounds'] = FIRST_TO_13_MAXROUNDS
        cvars['mp_overtime_enable'] = 1 if overtime else 0
        if overtime:
            cvars['mp_overtime_maxrounds'] = OVERTIME_MAXROUNDS
            cvars['mp_overtime_startmoney'] = OVERTIME_STARTMONEY
    elif round_limit_type == ROUND_LIMIT_MAX_ROUNDS:
        cvars['mp_maxrounds'] = max_rounds or DEFAULT_MAX_ROUNDS
        cvars['mp_overtime_enable'] = 0
    return cvars


def _team_block(team: Optional[SyntheticTeam]) -> Dict[str, Any]:
    if team is None:
        return {'name': 'TBD', 'tag': 'TBD', 'players': {}, 'series_score': 0}
    return {
        'id': team.id,
        'name': team.name,
        'tag': team.tag or team.name[:4].upper(),
        'players': {p.steam_id: p.name for p in team.players},
        'series_score': 0,
    }


class MatchConfigGenerator:
    """Builds match configs from the synthetic teams stored for a match."""

    def __init__(self, storage: TournamentStorage):
        self.storage = storage

    def generate(self, tournament: ShuffleTournament, team1_id: str, team2_id: str,
                 match_slug: str) -> Dict[str, Any]:
        team1 = self.storage.get_team(tournament.id, team1_id)
        team2 = self.storage.get_team(tournament.id, team2_id)
        team1_block = _team_block(team1)
        team2_block = _team_block(team2)
        team1_count = len(team1_block['players'])
        team2_count = len(team2_block['players'])

        config = {
            'matchid': 0,
            'num_maps': 1,
            'players_per_team': max(team1_count, team2_count, tournament.team_size or DEFAULT_TEAM_SIZE),
            'min_players_to_ready': 1,
            'min_spectators_to_ready': 0,
            'wingman': False,
            'skip_veto': False,
            'maplist': list(tournament.map_sequence),
            'map_sides': ['knife'],
            'cvars': build_round_limit_cvars(
                tournament.round_limit_type, tournament.max_rounds, tournament.overtime_mode
            ),
            'spectators': {'players': {}},
            'expected_players_total': team1_count + team2_count,
            'expected_players_team1': team1_count,
            'expected_players_team2': team2_count,
            'team1': team1_block,
            'team2': team2_block,
        }

        logger.debug(f"Generated match config for {match_slug}: {team1_block['name']} vs {team2_block['name']}")
        return config
