"""
Skill-balanced team formation.

Partitions a player pool into floor(n / k) teams of exactly k players:
1. Greedy seeding: players sorted by ordinal (descending) each join the
   not-yet-full team with the lowest average ordinal (empty teams first,
   earlier teams win ties).
2. Local search: repeatedly apply the first cross-team player swap that
   strictly lowers the population variance of team average ordinals, up to a
   fixed number of passes.

The local search is a greedy heuristic. It never makes balance worse, but it
can stop in a local optimum; the result is not guaranteed to be the best
possible partition.

The n mod k remainder (lowest-rated players after seeding) is returned as
``unassigned``; callers decide whether they sit out or rotate in.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np

from cs2shuffle.exceptions import EmptyInput, InsufficientPlayers, PlayerNotFound
from cs2shuffle.players.directory import PlayerDirectory, PlayerRecord
from cs2shuffle.tournament.rating import RatingModel
from cs2shuffle.utils.constants import DEFAULT_OPTIMIZATION_PASSES

logger = logging.getLogger(__name__)

# Swaps must beat the current variance by more than float noise
VARIANCE_EPSILON = 1e-9


@dataclass
class RatedPlayer:
    """A player paired with the ordinal used for balancing."""
    player: PlayerRecord
    ordinal: float

    @property
    def id(self) -> str:
        return self.player.id

    @property
    def skill(self) -> int:
        return self.player.current_elo


@dataclass
class BalancedTeam:
    """One team produced by the balancer."""
    members: List[RatedPlayer] = field(default_factory=list)

    @property
    def players(self) -> List[PlayerRecord]:
        return [m.player for m in self.members]

    @property
    def player_ids(self) -> List[str]:
        return [m.id for m in self.members]

    @property
    def total_skill(self) -> float:
        return float(sum(m.skill for m in self.members))

    @property
    def average_skill(self) -> float:
        if not self.members:
            return 0.0
        return self.total_skill / len(self.members)

    @property
    def total_ordinal(self) -> float:
        return float(sum(m.ordinal for m in self.members))

    @property
    def average_ordinal(self) -> float:
        if not self.members:
            return 0.0
        return self.total_ordinal / len(self.members)


@dataclass
class BalanceQuality:
    """Spread of team strength after balancing."""
    skill_variance: float = 0.0
    ordinal_variance: float = 0.0
    max_skill_difference: float = 0.0
    max_ordinal_difference: float = 0.0


@dataclass
class BalanceResult:
    """Teams plus quality metrics and the players left over."""
    teams: List[BalancedTeam]
    quality: BalanceQuality
    unassigned: List[RatedPlayer] = field(default_factory=list)
    initial_ordinal_variance: float = 0.0
    swaps_applied: int = 0

    @property
    def team_size(self) -> int:
        return len(self.teams[0].members) if self.teams else 0


def population_variance(values: Sequence[float]) -> float:
    """Population variance (divide by n); 0 for an empty sequence."""
    if len(values) == 0:
        return 0.0
    return float(np.var(np.asarray(values, dtype=float)))


def rate_players(players: Sequence[PlayerRecord], rating_model: RatingModel) -> List[RatedPlayer]:
    """Attach an ordinal to each player from its skill score and experience."""
    return [
        RatedPlayer(player=p, ordinal=rating_model.skill_ordinal(p.current_elo, p.match_count))
        for p in players
    ]


def greedy_team_assignment(
    rated: Sequence[RatedPlayer],
    num_teams: int,
    team_size: int
) -> Tuple[List[BalancedTeam], List[RatedPlayer]]:
    """
    Seed teams by always feeding the weakest not-full team.

    Returns:
        (teams, players left over once every team is full)
    """
    ordered = sorted(rated, key=lambda r: r.ordinal, reverse=True)
    teams = [BalancedTeam() for _ in range(num_teams)]
    unassigned = []

    for rp in ordered:
        best_team = None
        best_avg = None
        for team in teams:
            if len(team.members) >= team_size:
                continue
            avg = team.average_ordinal if team.members else float('-inf')
            if best_avg is None or avg < best_avg:
                best_avg = avg
                best_team = team

        if best_team is None:
            unassigned.append(rp)
            continue

        best_team.members.append(rp)

    return teams, unassigned


def optimize_team_balance(
    teams: List[BalancedTeam],
    max_passes: int = DEFAULT_OPTIMIZATION_PASSES
) -> int:
    """
    Improve balance in place by pairwise player swaps.

    Each pass scans team pairs (i < j) and player pairs between them, applies
    the first swap that strictly lowers the variance of team average ordinals
    and restarts. Stops when a pass finds nothing or ``max_passes`` is hit.

    Returns:
        Number of swaps applied
    """
    if len(teams) < 2:
        return 0

    swaps = 0
    passes = 0
    improved = True

    while improved and passes < max_passes:
        improved = False
        passes += 1

        averages = [t.average_ordinal for t in teams]
        current_variance = population_variance(averages)

        for i in range(len(teams)):
            for j in range(i + 1, len(teams)):
                team_i, team_j = teams[i], teams[j]
                total_i, total_j = team_i.total_ordinal, team_j.total_ordinal
                size_i, size_j = len(team_i.members), len(team_j.members)

                for a_idx, a in enumerate(team_i.members):
                    for b_idx, b in enumerate(team_j.members):
                        new_averages = list(averages)
                        new_averages[i] = (total_i - a.ordinal + b.ordinal) / size_i
                        new_averages[j] = (total_j - b.ordinal + a.ordinal) / size_j

                        if population_variance(new_averages) < current_variance - VARIANCE_EPSILON:
                            team_i.members[a_idx] = b
                            team_j.members[b_idx] = a
                            swaps += 1
                            improved = True
                            break
                    if improved:
                        break
                if improved:
                    break
            if improved:
                break

    return swaps


def calculate_balance_quality(teams: Sequence[BalancedTeam]) -> BalanceQuality:
    """Variance and max spread of team averages, by raw skill and by ordinal."""
    if not teams:
        return BalanceQuality()

    skill_averages = [t.average_skill for t in teams]
    ordinal_averages = [t.average_ordinal for t in teams]

    return BalanceQuality(
        skill_variance=population_variance(skill_averages),
        ordinal_variance=population_variance(ordinal_averages),
        max_skill_difference=max(skill_averages) - min(skill_averages),
        max_ordinal_difference=max(ordinal_averages) - min(ordinal_averages),
    )


def balance_players(
    players: Sequence[PlayerRecord],
    team_size: int,
    rating_model: Optional[RatingModel] = None,
    max_passes: int = DEFAULT_OPTIMIZATION_PASSES,
    optimize: bool = True
) -> BalanceResult:
    """
    Balance already-resolved players into teams of ``team_size``.

    Raises:
        EmptyInput: If no players are given
        InsufficientPlayers: If there are fewer players than one team needs
    """
    if team_size < 1:
        raise ValueError(f"Team size must be at least 1, got {team_size}")
    if len(players) == 0:
        raise EmptyInput("No players provided for team balancing")
    if len(players) < team_size:
        raise InsufficientPlayers(
            f"Not enough players: {len(players)} < {team_size}. "
            f"At least {team_size} players are needed to form one team.",
            available=len(players),
            required=team_size
        )

    rating_model = rating_model or RatingModel()
    rated = rate_players(players, rating_model)

    num_teams = len(players) // team_size
    remainder = len(players) % team_size
    if remainder > 0:
        logger.warning(
            f"Uneven player count: {len(players)} players for teams of {team_size}. "
            f"{remainder} player(s) will not be placed."
        )

    teams, unassigned = greedy_team_assignment(rated, num_teams, team_size)
    initial_variance = population_variance([t.average_ordinal for t in teams])

    swaps = 0
    if optimize and num_teams > 1:
        swaps = optimize_team_balance(teams, max_passes=max_passes)

    quality = calculate_balance_quality(teams)
    logger.info(
        f"Balanced {len(players)} players into {len(teams)} teams "
        f"(ordinal variance {initial_variance:.4f} -> {quality.ordinal_variance:.4f}, "
        f"{swaps} swap(s), max ELO difference {quality.max_skill_difference:.1f})"
    )

    return BalanceResult(
        teams=teams,
        quality=quality,
        unassigned=unassigned,
        initial_ordinal_variance=initial_variance,
        swaps_applied=swaps
    )


class TeamBalancer:
    """Resolves player ids through the directory and balances them."""

    def __init__(
        self,
        directory: PlayerDirectory,
        rating_model: Optional[RatingModel] = None,
        max_passes: int = DEFAULT_OPTIMIZATION_PASSES
    ):
        self.directory = directory
        self.rating_model = rating_model or RatingModel()
        self.max_passes = max_passes

    def balance(self, player_ids: Sequence[str], team_size: int, optimize: bool = True) -> BalanceResult:
        """
        Balance players given by id.

        Raises:
            EmptyInput: If ``player_ids`` is empty
            InsufficientPlayers: If fewer ids than ``team_size`` are given
            PlayerNotFound: If any id is unknown to the directory
        """
        if len(player_ids) == 0:
            raise EmptyInput("No players provided for team balancing")
        if len(player_ids) < team_size:
            raise InsufficientPlayers(
                f"Not enough players: {len(player_ids)} < {team_size}. "
                f"At least {team_size} players are needed to form one team.",
                available=len(player_ids),
                required=team_size
            )

        players = self.directory.get_by_ids(player_ids)
        if len(players) != len(player_ids):
            found = {p.id for p in players}
            raise PlayerNotFound([pid for pid in player_ids if pid not in found])

        return balance_players(
            players,
            team_size,
            rating_model=self.rating_model,
            max_passes=self.max_passes,
            optimize=optimize
        )
