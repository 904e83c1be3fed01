"""
Leaderboard and standings for shuffle tournaments.

Read-only: aggregates persisted per-player match stats for every registered
player.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from cs2shuffle.exceptions import TournamentNotFound
from cs2shuffle.players.directory import PlayerDirectory
from cs2shuffle.tournament.models import RoundStatus, ShuffleTournament
from cs2shuffle.tournament.storage import TournamentStorage


@dataclass
class LeaderboardEntry:
    """Aggregate stats for one registered player."""
    player_id: str
    name: str
    avatar_url: Optional[str]
    current_elo: int
    starting_elo: int
    wins: int = 0
    losses: int = 0
    average_adr: Optional[float] = None

    @property
    def matches_played(self) -> int:
        return self.wins + self.losses

    @property
    def win_rate(self) -> float:
        if self.matches_played == 0:
            return 0.0
        return self.wins / self.matches_played

    @property
    def elo_change(self) -> int:
        return self.current_elo - self.starting_elo

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['matches_played'] = self.matches_played
        data['win_rate'] = self.win_rate
        data['elo_change'] = self.elo_change
        return data


@dataclass
class TournamentStandings:
    tournament: ShuffleTournament
    leaderboard: List[LeaderboardEntry]
    current_round: int
    total_rounds: int
    round_status: Optional[RoundStatus] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tournament': self.tournament.to_dict(),
            'leaderboard': [e.to_dict() for e in self.leaderboard],
            'current_round': self.current_round,
            'total_rounds': self.total_rounds,
            'round_status': self.round_status.to_dict() if self.round_status else None,
        }


def leaderboard_sort_key(entry: LeaderboardEntry):
    """Wins, then current rating, then ADR (missing ADR compares as 0)."""
    adr = entry.average_adr if entry.average_adr is not None else 0.0
    return (-entry.wins, -entry.current_elo, -adr)


class StandingsCalculator:
    """Computes the leaderboard and round progress of a tournament."""

    def __init__(self, storage: TournamentStorage, directory: PlayerDirectory):
        self.storage = storage
        self.directory = directory

    def _load_tournament(self, tournament_id: int) -> ShuffleTournament:
        tournament = self.storage.get_tournament(tournament_id)
        if tournament is None:
            raise TournamentNotFound(tournament_id)
        return tournament

    def get_player_leaderboard(self, tournament_id: int) -> List[LeaderboardEntry]:
        """
        Rank every registered player.

        Wins and losses count only matches of this tournament. Average ADR is
        taken over the matches that recorded one and stays None otherwise.
        """
        self._load_tournament(tournament_id)
        players = self.directory.get_registered(tournament_id)
        stats_rows = self.storage.get_registered_player_stats(tournament_id)

        wins = {p.id: 0 for p in players}
        losses = {p.id: 0 for p in players}
        adrs = {p.id: [] for p in players}
        for row in stats_rows:
            pid = row['player_id']
            if row['won_match']:
                wins[pid] += 1
            else:
                losses[pid] += 1
            if row['adr'] is not None:
                adrs[pid].append(row['adr'])

        entries = []
        for p in players:
            average_adr = None
            if adrs[p.id]:
                average_adr = round(sum(adrs[p.id]) / len(adrs[p.id]), 2)
            entries.append(LeaderboardEntry(
                player_id=p.id,
                name=p.name,
                avatar_url=p.avatar_url,
                current_elo=p.current_elo,
                starting_elo=p.starting_elo,
                wins=wins[p.id],
                losses=losses[p.id],
                average_adr=average_adr,
            ))

        # sorted() is stable, so ties keep registration order
        return sorted(entries, key=leaderboard_sort_key)

    def get_round_status(self, tournament_id: int, round_number: int) -> RoundStatus:
        tournament = self._load_tournament(tournament_id)
        counts = self.storage.get_round_counts(tournament_id, round_number)
        map_name = None
        if 1 <= round_number <= tournament.total_rounds:
            map_name = tournament.map_for_round(round_number)
        return RoundStatus(
            round_number=round_number,
            total_matches=counts['total'],
            completed_matches=counts['completed'],
            map_name=map_name,
        )

    def get_tournament_standings(self, tournament_id: int) -> TournamentStandings:
        tournament = self._load_tournament(tournament_id)
        current = self.storage.get_current_round(tournament_id)
        round_status = self.get_round_status(tournament_id, current) if current > 0 else None

        return TournamentStandings(
            tournament=tournament,
            leaderboard=self.get_player_leaderboard(tournament_id),
            current_round=current,
            total_rounds=tournament.total_rounds,
            round_status=round_status,
        )
