"""
Records used by the shuffle tournament core.

Rows are loaded into dataclasses via ``from_row`` and serialized with
``to_dict``; JSON columns (map sequence, team rosters, match config) are
decoded on load.
"""

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from cs2shuffle.exceptions import InvalidTournamentConfig
from cs2shuffle.utils.constants import (
    DEFAULT_MAX_ROUNDS,
    DEFAULT_TEAM_SIZE,
    MATCH_COMPLETED,
    OVERTIME_ENABLED,
    OVERTIME_MODES,
    REGISTRATION_REGISTERED,
    REGISTRATION_UNREGISTERED,
    ROUND_LIMIT_FIRST_TO_13,
    ROUND_LIMIT_MAX_ROUNDS,
    ROUND_LIMIT_TYPES,
)


@dataclass
class ShuffleTournamentConfig:
    """Settings an operator supplies when creating a shuffle tournament."""
    name: str
    map_sequence: List[str]
    team_size: int = DEFAULT_TEAM_SIZE
    round_limit_type: str = ROUND_LIMIT_FIRST_TO_13
    max_rounds: Optional[int] = DEFAULT_MAX_ROUNDS
    overtime_mode: str = OVERTIME_ENABLED
    rating_template_id: Optional[str] = None

    def validate(self):
        """
        Check the configuration.

        Raises:
            InvalidTournamentConfig: Naming the first failed requirement
        """
        if not self.name or not self.name.strip():
            raise InvalidTournamentConfig(
                "Tournament name is required. Please provide a name for your shuffle tournament."
            )
        if not self.map_sequence:
            raise InvalidTournamentConfig(
                "At least one map must be selected. The number of maps you select "
                "determines the number of rounds in the tournament."
            )
        if any(not m or not str(m).strip() for m in self.map_sequence):
            raise InvalidTournamentConfig("Map names must not be empty.")
        if self.team_size is None or self.team_size < 1:
            raise InvalidTournamentConfig(
                f"Invalid team size: {self.team_size}. Teams need at least 1 player."
            )
        if self.round_limit_type not in ROUND_LIMIT_TYPES:
            raise InvalidTournamentConfig(
                f"Unknown round limit type: {self.round_limit_type}. "
                f"Expected one of: {', '.join(ROUND_LIMIT_TYPES)}."
            )
        if self.round_limit_type == ROUND_LIMIT_MAX_ROUNDS and (
            self.max_rounds is None or self.max_rounds < 1
        ):
            raise InvalidTournamentConfig(
                'Invalid max rounds value. When using "Max Rounds" round limit type, '
                "you must specify a maximum number of rounds (minimum: 1)."
            )
        if self.overtime_mode not in OVERTIME_MODES:
            raise InvalidTournamentConfig(
                f"Unknown overtime mode: {self.overtime_mode}. "
                f"Expected one of: {', '.join(OVERTIME_MODES)}."
            )


@dataclass
class ShuffleTournament:
    """A persisted shuffle tournament."""
    id: int
    name: str
    status: str
    map_sequence: List[str]
    team_size: int
    round_limit_type: str
    max_rounds: int
    overtime_mode: str
    rating_template_id: Optional[str]
    created_at: str
    updated_at: str
    started_at: Optional[str] = None
    completed_at: Optional[str] = None

    @property
    def total_rounds(self) -> int:
        return len(self.map_sequence)

    def map_for_round(self, round_number: int) -> str:
        return self.map_sequence[round_number - 1]

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'ShuffleTournament':
        return cls(
            id=row['id'],
            name=row['name'],
            status=row['status'],
            map_sequence=json.loads(row['map_sequence']),
            team_size=row['team_size'],
            round_limit_type=row['round_limit_type'],
            max_rounds=row['max_rounds'],
            overtime_mode=row['overtime_mode'],
            rating_template_id=row.get('rating_template_id'),
            created_at=row['created_at'],
            updated_at=row['updated_at'],
            started_at=row.get('started_at'),
            completed_at=row.get('completed_at'),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['total_rounds'] = self.total_rounds
        return data


@dataclass
class TeamPlayer:
    """Roster entry frozen at team creation time."""
    steam_id: str
    name: str
    avatar: Optional[str] = None


@dataclass
class SyntheticTeam:
    """A team that exists for a single round/match."""
    id: str
    tournament_id: int
    name: str
    tag: str
    players: List[TeamPlayer] = field(default_factory=list)

    @property
    def player_ids(self) -> List[str]:
        return [p.steam_id for p in self.players]

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'SyntheticTeam':
        return cls(
            id=row['id'],
            tournament_id=row['tournament_id'],
            name=row['name'],
            tag=row['tag'],
            players=[TeamPlayer(**p) for p in json.loads(row['players'])],
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ShuffleMatch:
    """A persisted match of one shuffle round."""
    id: int
    tournament_id: int
    slug: str
    round: int
    match_number: int
    team1_id: str
    team2_id: str
    status: str
    config: Dict[str, Any]
    created_at: str
    current_map: Optional[str] = None
    winner_id: Optional[str] = None
    completed_at: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.status == MATCH_COMPLETED

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'ShuffleMatch':
        return cls(
            id=row['id'],
            tournament_id=row['tournament_id'],
            slug=row['slug'],
            round=row['round'],
            match_number=row['match_number'],
            team1_id=row['team1_id'],
            team2_id=row['team2_id'],
            status=row['status'],
            config=json.loads(row['config']) if row['config'] else {},
            created_at=row['created_at'],
            current_map=row.get('current_map'),
            winner_id=row.get('winner_id'),
            completed_at=row.get('completed_at'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RegistrationOutcome:
    """Outcome for one player id in a bulk registration call."""
    player_id: str
    success: bool
    status: str
    error: Optional[str] = None


@dataclass
class RegistrationResult:
    """
    Per-item outcomes plus counts.

    ``registered_count`` and ``unregistered_count`` count rows actually added
    or removed; an already registered player is a success but adds nothing.
    """
    outcomes: List[RegistrationOutcome] = field(default_factory=list)

    def _count(self, status: str) -> int:
        return sum(1 for o in self.outcomes if o.status == status)

    @property
    def registered_count(self) -> int:
        return self._count(REGISTRATION_REGISTERED)

    @property
    def unregistered_count(self) -> int:
        return self._count(REGISTRATION_UNREGISTERED)

    @property
    def success_count(self) -> int:
        return sum(1 for o in self.outcomes if o.success)

    @property
    def error_count(self) -> int:
        return sum(1 for o in self.outcomes if not o.success)

    @property
    def errors(self) -> List[RegistrationOutcome]:
        return [o for o in self.outcomes if not o.success]

    def add(self, player_id: str, status: str, error: Optional[str] = None):
        self.outcomes.append(RegistrationOutcome(
            player_id=player_id,
            success=error is None,
            status=status,
            error=error
        ))

    def merge(self, other: 'RegistrationResult') -> 'RegistrationResult':
        return RegistrationResult(outcomes=self.outcomes + other.outcomes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'registered_count': self.registered_count,
            'unregistered_count': self.unregistered_count,
            'error_count': self.error_count,
            'outcomes': [asdict(o) for o in self.outcomes],
        }


@dataclass
class RoundStatus:
    """Progress of one round, derived from its matches."""
    round_number: int
    total_matches: int
    completed_matches: int
    map_name: Optional[str] = None

    @property
    def pending_matches(self) -> int:
        return self.total_matches - self.completed_matches

    @property
    def is_complete(self) -> bool:
        return self.total_matches > 0 and self.completed_matches == self.total_matches

    def to_dict(self) -> Dict[str, Any]:
        return {
            'round_number': self.round_number,
            'total_matches': self.total_matches,
            'completed_matches': self.completed_matches,
            'pending_matches': self.pending_matches,
            'is_complete': self.is_complete,
            'map': self.map_name,
        }
