"""
Pydantic models for the shuffle tournament web API.

Defines request/response schemas for REST endpoints.
"""
from pydantic import BaseModel, Field
from typing import List, Dict, Optional, Literal

from cs2shuffle.utils.constants import DEFAULT_MAX_ROUNDS, DEFAULT_TEAM_SIZE


class TournamentCreateRequest(BaseModel):
    """Configuration for creating a new shuffle tournament."""
    name: str = Field(description="Tournament name")
    map_sequence: List[str] = Field(description="One map per round, in play order")
    team_size: int = Field(default=DEFAULT_TEAM_SIZE, description="Players per team")
    round_limit_type: str = Field(default="first_to_13", description="first_to_13 or max_rounds")
    max_rounds: Optional[int] = Field(default=DEFAULT_MAX_ROUNDS)
    overtime_mode: str = Field(default="enabled", description="enabled or disabled")
    rating_template_id: Optional[str] = None
    replace_existing: bool = Field(default=True, description="Delete earlier shuffle tournaments")


class TournamentResponse(BaseModel):
    """A shuffle tournament."""
    id: int
    name: str
    status: str
    map_sequence: List[str]
    total_rounds: int
    team_size: int
    round_limit_type: str
    max_rounds: Optional[int] = None
    overtime_mode: str
    rating_template_id: Optional[str] = None
    created_at: str
    updated_at: str
    started_at: Optional[str] = None
    completed_at: Optional[str] = None


class PlayerIdsRequest(BaseModel):
    """A list of Steam ids."""
    player_ids: List[str]


class PlayerResponse(BaseModel):
    """A registered player."""
    id: str
    name: str
    avatar_url: Optional[str] = None
    current_elo: int
    starting_elo: int
    match_count: int


class RegistrationOutcomeResponse(BaseModel):
    player_id: str
    success: bool
    status: str
    error: Optional[str] = None


class RegistrationResponse(BaseModel):
    """Per-item registration outcomes."""
    registered_count: int
    unregistered_count: int
    error_count: int
    outcomes: List[RegistrationOutcomeResponse]


class MatchResponse(BaseModel):
    """A match of a shuffle round."""
    id: int
    slug: str
    round: int
    match_number: int
    team1_id: str
    team2_id: str
    status: str
    current_map: Optional[str] = None
    winner_id: Optional[str] = None
    config: Dict
    created_at: str
    completed_at: Optional[str] = None


class RoundStatusResponse(BaseModel):
    """Progress of one round."""
    round_number: int
    total_matches: int
    completed_matches: int
    pending_matches: int
    is_complete: bool
    map: Optional[str] = None


class RoundResponse(BaseModel):
    """A generated round."""
    round_number: int
    map_name: str
    matches: List[MatchResponse]
    sit_outs: List[str] = Field(default_factory=list, description="Steam ids sitting out")


class AdvanceResponse(BaseModel):
    """Outcome of an advance request."""
    advanced: bool
    round_number: Optional[int] = None
    tournament_complete: bool = False
    round: Optional[RoundResponse] = None


class LeaderboardEntryResponse(BaseModel):
    player_id: str
    name: str
    avatar_url: Optional[str] = None
    current_elo: int
    starting_elo: int
    elo_change: int
    wins: int
    losses: int
    matches_played: int
    win_rate: float
    average_adr: Optional[float] = None


class StandingsResponse(BaseModel):
    tournament: TournamentResponse
    leaderboard: List[LeaderboardEntryResponse]
    current_round: int
    total_rounds: int
    round_status: Optional[RoundStatusResponse] = None


class PlayerStatLine(BaseModel):
    adr: Optional[float] = None
    kills: Optional[int] = None
    deaths: Optional[int] = None
    assists: Optional[int] = None


class MatchResultRequest(BaseModel):
    """Result of a finished match."""
    winner: Literal["team1", "team2"]
    player_stats: Dict[str, PlayerStatLine] = Field(default_factory=dict)


class RatingUpdateResponse(BaseModel):
    player_id: str
    elo_before: int
    elo_after: int
    elo_change: int
    stat_adjustment: int = 0
    template_id: Optional[str] = None


class MatchStatusRequest(BaseModel):
    status: Literal["pending", "ready", "live", "completed"]


class BalanceRequest(BaseModel):
    """Players to balance without creating anything."""
    player_ids: List[str]
    team_size: int = Field(default=DEFAULT_TEAM_SIZE, ge=1)


class BalancedTeamResponse(BaseModel):
    player_ids: List[str]
    average_elo: float
    average_ordinal: float


class BalanceResponse(BaseModel):
    teams: List[BalancedTeamResponse]
    unassigned: List[str]
    skill_variance: float
    ordinal_variance: float
    max_skill_difference: float
    max_ordinal_difference: float
    initial_ordinal_variance: float
    swaps_applied: int


class RatingTemplateCreateRequest(BaseModel):
    """Stat weights applied on top of the win/loss rating."""
    name: str
    id: Optional[str] = Field(default=None, description="Defaults to a slug of the name")
    description: Optional[str] = None
    enabled: bool = False
    weights: Dict[str, float] = Field(default_factory=dict, description="kills, deaths, assists, adr")
    min_adjustment: Optional[float] = None
    max_adjustment: Optional[float] = None


class RatingTemplateResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    enabled: bool
    weights: Dict[str, float]
    min_adjustment: Optional[float] = None
    max_adjustment: Optional[float] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str
