"""
Shuffle tournament module: rounds of re-formed, skill-balanced teams.

Provides:
- TeamBalancer: Greedy + local-search team balancing
- RoundScheduler: Creates the synthetic teams and matches of a round
- AdvancementTracker: Round completion and tournament progression
- StandingsCalculator: Player leaderboard and round progress
- RatingTemplateStore: Stat-weighted ELO adjustment templates
- ShuffleTournamentService: Facade used by the web API and CLI
"""

from cs2shuffle.tournament.rating import RatingModel, RatingUpdate
from cs2shuffle.tournament.balancer import TeamBalancer, BalanceResult, balance_players
from cs2shuffle.tournament.rotation import SwapDecision, decide_rotation_swap
from cs2shuffle.tournament.models import ShuffleTournamentConfig, ShuffleTournament, ShuffleMatch
from cs2shuffle.tournament.storage import TournamentStorage
from cs2shuffle.tournament.match_config import MatchConfigGenerator
from cs2shuffle.tournament.scheduler import RoundScheduler, RoundResult
from cs2shuffle.tournament.advancement import AdvancementTracker, AdvanceOutcome
from cs2shuffle.tournament.standings import StandingsCalculator, LeaderboardEntry
from cs2shuffle.tournament.results import MatchResultRecorder
from cs2shuffle.tournament.templates import RatingTemplate, RatingTemplateStore, calculate_adjustment
from cs2shuffle.tournament.service import ShuffleTournamentService
from cs2shuffle.tournament.display import format_leaderboard, format_round_result, format_balance_report

__all__ = [
    'RatingModel',
    'RatingUpdate',
    'TeamBalancer',
    'BalanceResult',
    'balance_players',
    'SwapDecision',
    'decide_rotation_swap',
    'ShuffleTournamentConfig',
    'ShuffleTournament',
    'ShuffleMatch',
    'TournamentStorage',
    'MatchConfigGenerator',
    'RoundScheduler',
    'RoundResult',
    'AdvancementTracker',
    'AdvanceOutcome',
    'StandingsCalculator',
    'LeaderboardEntry',
    'MatchResultRecorder',
    'RatingTemplate',
    'RatingTemplateStore',
    'calculate_adjustment',
    'ShuffleTournamentService',
    'format_leaderboard',
    'format_round_result',
    'format_balance_report',
]
