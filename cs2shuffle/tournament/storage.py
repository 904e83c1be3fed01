"""
Typed access to shuffle tournament rows.

Wraps the generic ``Database`` operations with the queries the round
scheduler, advancement tracker, standings and result recorder need. The
current round is always derived from existing matches (max round), never
stored separately.
"""

import json
from typing import Any, Dict, List, Optional, Set

from cs2shuffle.storage.database import Database
from cs2shuffle.tournament.models import (
    ShuffleMatch,
    ShuffleTournament,
    ShuffleTournamentConfig,
    SyntheticTeam,
    TeamPlayer,
)
from cs2shuffle.utils.constants import DEFAULT_MAX_ROUNDS, MATCH_COMPLETED, MATCH_PENDING, TOURNAMENT_SETUP
from cs2shuffle.utils.timeutils import utc_now


class TournamentStorage:
    """
    Handles persistent storage of shuffle tournaments.

    Uses the shared ``Database``; all methods join an enclosing
    ``db.transaction()`` when one is active.
    """

    def __init__(self, db: Database):
        self.db = db

    # ------------------------------------------------------------------
    # Tournaments
    # ------------------------------------------------------------------

    def create_tournament(self, config: ShuffleTournamentConfig) -> ShuffleTournament:
        """Insert a tournament in ``setup`` status and return it."""
        now = utc_now()
        tournament_id = self.db.insert('shuffle_tournaments', {
            'name': config.name.strip(),
            'status': TOURNAMENT_SETUP,
            'map_sequence': json.dumps(list(config.map_sequence)),
            'team_size': config.team_size,
            'round_limit_type': config.round_limit_type,
            'max_rounds': config.max_rounds if config.max_rounds is not None else DEFAULT_MAX_ROUNDS,
            'overtime_mode': config.overtime_mode,
            'rating_template_id': config.rating_template_id,
            'created_at': now,
            'updated_at': now,
        })
        return self.get_tournament(tournament_id)

    def delete_all_tournaments(self) -> int:
        """Remove every shuffle tournament (cascades to dependent rows)."""
        return self.db.delete('shuffle_tournaments', "1 = 1")

    def get_tournament(self, tournament_id: int) -> Optional[ShuffleTournament]:
        row = self.db.query_one(
            "SELECT * FROM shuffle_tournaments WHERE id = ?",
            (tournament_id,)
        )
        return ShuffleTournament.from_row(row) if row else None

    def list_tournaments(self, limit: int = 20) -> List[ShuffleTournament]:
        rows = self.db.query(
            "SELECT * FROM shuffle_tournaments ORDER BY id DESC LIMIT ?",
            (limit,)
        )
        return [ShuffleTournament.from_row(r) for r in rows]

    def update_tournament_status(self, tournament_id: int, status: str, **timestamps: str):
        """
        Set the status and any lifecycle timestamps.

        Args:
            tournament_id: Tournament to update
            status: New status
            **timestamps: Optional ``started_at`` / ``completed_at`` values
        """
        fields = {'status': status, 'updated_at': utc_now()}
        fields.update(timestamps)
        self.db.update('shuffle_tournaments', fields, "id = ?", (tournament_id,))

    # ------------------------------------------------------------------
    # Registrations
    # ------------------------------------------------------------------

    def add_registration(self, tournament_id: int, player_id: str) -> bool:
        """Register a player; returns False if already registered."""
        rowid = self.db.insert('shuffle_tournament_players', {
            'tournament_id': tournament_id,
            'player_id': player_id,
            'registered_at': utc_now(),
        }, or_ignore=True)
        return rowid is not None

    def remove_registration(self, tournament_id: int, player_id: str) -> bool:
        """Unregister a player; returns False if they were not registered."""
        removed = self.db.delete(
            'shuffle_tournament_players',
            "tournament_id = ? AND player_id = ?",
            (tournament_id, player_id)
        )
        return removed > 0

    def count_registrations(self, tournament_id: int) -> int:
        row = self.db.query_one(
            "SELECT COUNT(*) AS n FROM shuffle_tournament_players WHERE tournament_id = ?",
            (tournament_id,)
        )
        return row['n']

    # ------------------------------------------------------------------
    # Synthetic teams
    # ------------------------------------------------------------------

    def insert_team(self, team: SyntheticTeam):
        now = utc_now()
        self.db.insert('teams', {
            'tournament_id': team.tournament_id,
            'id': team.id,
            'name': team.name,
            'tag': team.tag,
            'players': json.dumps([
                {'steam_id': p.steam_id, 'name': p.name, 'avatar': p.avatar}
                for p in team.players
            ]),
            'created_at': now,
            'updated_at': now,
        })

    def get_team(self, tournament_id: int, team_id: str) -> Optional[SyntheticTeam]:
        row = self.db.query_one(
            "SELECT * FROM teams WHERE tournament_id = ? AND id = ?",
            (tournament_id, team_id)
        )
        return SyntheticTeam.from_row(row) if row else None

    # ------------------------------------------------------------------
    # Matches
    # ------------------------------------------------------------------

    def insert_match(
        self,
        tournament_id: int,
        slug: str,
        round_number: int,
        match_number: int,
        team1_id: str,
        team2_id: str,
        config: Dict[str, Any],
        current_map: Optional[str] = None
    ) -> int:
        """Insert a ``pending`` match and return its row id."""
        return self.db.insert('matches', {
            'tournament_id': tournament_id,
            'slug': slug,
            'round': round_number,
            'match_number': match_number,
            'team1_id': team1_id,
            'team2_id': team2_id,
            'config': json.dumps(config),
            'status': MATCH_PENDING,
            'current_map': current_map,
            'created_at': utc_now(),
        })

    def update_match(self, tournament_id: int, slug: str, fields: Dict[str, Any]) -> int:
        if 'config' in fields and not isinstance(fields['config'], str):
            fields = dict(fields, config=json.dumps(fields['config']))
        return self.db.update(
            'matches', fields,
            "tournament_id = ? AND slug = ?",
            (tournament_id, slug)
        )

    def get_match(self, tournament_id: int, slug: str) -> Optional[ShuffleMatch]:
        row = self.db.query_one(
            "SELECT * FROM matches WHERE tournament_id = ? AND slug = ?",
            (tournament_id, slug)
        )
        return ShuffleMatch.from_row(row) if row else None

    def get_round_matches(self, tournament_id: int, round_number: int) -> List[ShuffleMatch]:
        rows = self.db.query("""
            SELECT * FROM matches
            WHERE tournament_id = ? AND round = ?
            ORDER BY match_number
        """, (tournament_id, round_number))
        return [ShuffleMatch.from_row(r) for r in rows]

    def count_matches(self, tournament_id: int) -> int:
        row = self.db.query_one(
            "SELECT COUNT(*) AS n FROM matches WHERE tournament_id = ?",
            (tournament_id,)
        )
        return row['n']

    # ------------------------------------------------------------------
    # Round aggregates
    # ------------------------------------------------------------------

    def get_current_round(self, tournament_id: int) -> int:
        """Highest round with any match, or 0 before the first round."""
        row = self.db.query_one(
            "SELECT MAX(round) AS current_round FROM matches WHERE tournament_id = ?",
            (tournament_id,)
        )
        return row['current_round'] or 0

    def get_round_counts(self, tournament_id: int, round_number: int) -> Dict[str, int]:
        """Total and completed match counts for a round."""
        row = self.db.query_one("""
            SELECT COUNT(*) AS total,
                   COALESCE(SUM(CASE WHEN status = ? THEN 1 ELSE 0 END), 0) AS completed
            FROM matches
            WHERE tournament_id = ? AND round = ?
        """, (MATCH_COMPLETED, tournament_id, round_number))
        return {'total': row['total'], 'completed': row['completed']}

    def get_round_player_ids(self, tournament_id: int, round_number: int) -> Set[str]:
        """Every player rostered on a team of the given round."""
        player_ids = set()
        for match in self.get_round_matches(tournament_id, round_number):
            for team_id in (match.team1_id, match.team2_id):
                team = self.get_team(tournament_id, team_id)
                if team:
                    player_ids.update(team.player_ids)
        return player_ids

    # ------------------------------------------------------------------
    # Player stats
    # ------------------------------------------------------------------

    def insert_player_stats(self, tournament_id: int, match_slug: str, player_id: str, team: str,
                            won: bool, adr: Optional[float] = None, kills: Optional[int] = None,
                            deaths: Optional[int] = None, assists: Optional[int] = None):
        self.db.insert('player_match_stats', {
            'tournament_id': tournament_id,
            'player_id': player_id,
            'match_slug': match_slug,
            'team': team,
            'won_match': 1 if won else 0,
            'adr': adr,
            'kills': kills,
            'deaths': deaths,
            'assists': assists,
            'created_at': utc_now(),
        })

    def get_registered_player_stats(self, tournament_id: int) -> List[Dict[str, Any]]:
        """Stats rows of players currently registered, for matches in this tournament."""
        return self.db.query("""
            SELECT s.player_id, s.won_match, s.adr
            FROM player_match_stats s
            JOIN matches m ON m.tournament_id = s.tournament_id AND m.slug = s.match_slug
            JOIN shuffle_tournament_players r
                ON r.tournament_id = s.tournament_id AND r.player_id = s.player_id
            WHERE s.tournament_id = ?
            ORDER BY s.id
        """, (tournament_id,))

    def insert_rating_history(self, row: Dict[str, Any]):
        self.db.insert('player_rating_history', dict(row, created_at=utc_now()))


def build_team(tournament_id: int, team_id: str, name: str, tag: str, players) -> SyntheticTeam:
    """Build a synthetic team from player records, snapshotting display data."""
    return SyntheticTeam(
        id=team_id,
        tournament_id=tournament_id,
        name=name,
        tag=tag,
        players=[TeamPlayer(steam_id=p.id, name=p.name, avatar=p.avatar_url) for p in players],
    )
