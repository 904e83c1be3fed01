"""
Player directory backed by the ``players`` table.

Resolves Steam ids to display data, the admin-facing skill score
(``current_elo``) and the lifetime match count used by rating and rotation.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from cs2shuffle.storage.database import Database, chunked
from cs2shuffle.utils.constants import DEFAULT_ELO, DEFAULT_SIGMA, ELO_OFFSET, ELO_SCALE
from cs2shuffle.utils.timeutils import utc_now


@dataclass
class PlayerRecord:
    """A registered player as stored in the directory."""
    id: str
    name: str
    avatar_url: Optional[str] = None
    current_elo: int = DEFAULT_ELO
    starting_elo: int = DEFAULT_ELO
    rating_mu: float = 25.0
    rating_sigma: float = 8.333
    match_count: int = 0

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'PlayerRecord':
        return cls(
            id=row['id'],
            name=row['name'],
            avatar_url=row.get('avatar_url'),
            current_elo=row['current_elo'],
            starting_elo=row['starting_elo'],
            rating_mu=row['rating_mu'],
            rating_sigma=row['rating_sigma'],
            match_count=row['match_count'] or 0,
        )

    @property
    def elo_change(self) -> int:
        return self.current_elo - self.starting_elo


class PlayerDirectory:
    """Lookup and import of players."""

    def __init__(self, db: Database):
        self.db = db

    def get_by_id(self, player_id: str) -> Optional[PlayerRecord]:
        row = self.db.query_one("SELECT * FROM players WHERE id = ?", (player_id,))
        return PlayerRecord.from_row(row) if row else None

    def get_by_ids(self, player_ids: Sequence[str]) -> List[PlayerRecord]:
        """
        Resolve several ids at once.

        Returns records in the order the ids were given; unknown ids are skipped
        so callers can compare lengths to detect missing players. Long id lists
        are looked up in chunks.
        """
        by_id = {}
        for chunk in chunked(list(player_ids)):
            placeholders = ", ".join("?" for _ in chunk)
            rows = self.db.query(
                f"SELECT * FROM players WHERE id IN ({placeholders})",
                tuple(chunk)
            )
            by_id.update((row['id'], PlayerRecord.from_row(row)) for row in rows)
        return [by_id[pid] for pid in player_ids if pid in by_id]

    def get_registered_ids(self, tournament_id: int) -> List[str]:
        """Ids registered to a tournament, oldest registration first."""
        rows = self.db.query("""
            SELECT player_id FROM shuffle_tournament_players
            WHERE tournament_id = ?
            ORDER BY registered_at, player_id
        """, (tournament_id,))
        return [row['player_id'] for row in rows]

    def get_registered(self, tournament_id: int) -> List[PlayerRecord]:
        rows = self.db.query("""
            SELECT p.* FROM players p
            JOIN shuffle_tournament_players r ON r.player_id = p.id
            WHERE r.tournament_id = ?
            ORDER BY r.registered_at, r.player_id
        """, (tournament_id,))
        return [PlayerRecord.from_row(row) for row in rows]

    def list_players(self, limit: int = 500) -> List[PlayerRecord]:
        rows = self.db.query(
            "SELECT * FROM players ORDER BY current_elo DESC, name LIMIT ?",
            (limit,)
        )
        return [PlayerRecord.from_row(row) for row in rows]

    def upsert_player(
        self,
        player_id: str,
        name: str,
        elo: Optional[int] = None,
        avatar_url: Optional[str] = None,
        match_count: Optional[int] = None
    ) -> PlayerRecord:
        """
        Create a player or refresh its display data.

        A new player starts with ``starting_elo == current_elo == elo``. For an
        existing player only name and avatar change unless ``elo`` is given, in
        which case both skill values are reset to it. ``match_count`` seeds the
        lifetime match total carried over from earlier events.
        """
        now = utc_now()
        existing = self.get_by_id(player_id)

        if existing is None:
            elo = DEFAULT_ELO if elo is None else elo
            self.db.insert('players', {
                'id': player_id,
                'name': name,
                'avatar_url': avatar_url,
                'current_elo': elo,
                'starting_elo': elo,
                'rating_mu': (elo - ELO_OFFSET) / ELO_SCALE,
                'rating_sigma': DEFAULT_SIGMA,
                'match_count': match_count or 0,
                'created_at': now,
                'updated_at': now,
            })
        else:
            fields = {'name': name, 'avatar_url': avatar_url, 'updated_at': now}
            if elo is not None:
                fields['current_elo'] = elo
                fields['starting_elo'] = elo
                fields['rating_mu'] = (elo - ELO_OFFSET) / ELO_SCALE
            if match_count is not None:
                fields['match_count'] = match_count
            self.db.update('players', fields, "id = ?", (player_id,))

        return self.get_by_id(player_id)
