"""
Round scheduling for shuffle tournaments.

Each round re-forms teams from every registered player:
1. Balance the pool into teams of the tournament's team size
2. Pair teams into matches in balancer order (1 vs 2, 3 vs 4, ...)
3. Players left over (remainder, or the last team when the team count is
   odd) sit out, after rotating in anyone who also sat out last round
4. Persist synthetic teams and pending matches in one transaction
"""

import logging
import random
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from cs2shuffle.exceptions import (
    InsufficientPlayers,
    InvalidRound,
    TournamentNotFound,
    TournamentStateError,
)
from cs2shuffle.players.directory import PlayerDirectory, PlayerRecord
from cs2shuffle.tournament.balancer import BalanceResult, TeamBalancer
from cs2shuffle.tournament.match_config import MatchConfigGenerator
from cs2shuffle.tournament.models import ShuffleMatch, ShuffleTournament, SyntheticTeam
from cs2shuffle.tournament.rotation import SwapDecision, rotate_leftovers
from cs2shuffle.tournament.storage import TournamentStorage, build_team
from cs2shuffle.utils.constants import SIDE_TEAM1_CT, SIDE_TEAM2_CT, TOURNAMENT_COMPLETED

logger = logging.getLogger(__name__)


def match_slug(round_number: int, match_number: int) -> str:
    return f"shuffle-r{round_number}-m{match_number}"


def team_id(round_number: int, match_number: int, team_number: int) -> str:
    return f"shuffle-r{round_number}-m{match_number}-team{team_number}"


def team_name(round_number: int, match_number: int, team_number: int) -> str:
    return f"Round {round_number} Match {match_number} - Team {team_number}"


def team_tag(round_number: int, match_number: int, team_number: int) -> str:
    return f"R{round_number}M{match_number}T{team_number}"


@dataclass
class RoundResult:
    """What a generated round looks like, for display and logging."""
    round_number: int
    map_name: str
    matches: List[ShuffleMatch]
    teams: List[Tuple[SyntheticTeam, SyntheticTeam]]
    balance: BalanceResult
    sit_outs: List[PlayerRecord] = field(default_factory=list)
    rotations: List[SwapDecision] = field(default_factory=list)

    @property
    def match_count(self) -> int:
        return len(self.matches)


class RoundScheduler:
    """
    Creates the matches of one round.

    Callers must serialize calls per tournament; the unique constraints on
    match slugs and (round, match number) reject a concurrent duplicate.
    """

    def __init__(
        self,
        storage: TournamentStorage,
        directory: PlayerDirectory,
        balancer: TeamBalancer,
        config_generator: Optional[MatchConfigGenerator] = None,
        rng: Optional[random.Random] = None
    ):
        self.storage = storage
        self.directory = directory
        self.balancer = balancer
        self.config_generator = config_generator or MatchConfigGenerator(storage)
        self.rng = rng or random.Random()

    def _load_tournament(self, tournament_id: int) -> ShuffleTournament:
        tournament = self.storage.get_tournament(tournament_id)
        if tournament is None:
            raise TournamentNotFound(tournament_id)
        return tournament

    def _validate_round(self, tournament: ShuffleTournament, round_number: int):
        total = tournament.total_rounds
        if round_number < 1 or round_number > total:
            raise InvalidRound(
                f"Invalid round number: {round_number}. Tournament has {total} round(s) "
                f"(based on {total} map(s) selected). Valid round numbers: 1-{total}."
            )

        current = self.storage.get_current_round(tournament.id)
        if round_number <= current:
            raise InvalidRound(
                f"Round {round_number} has already been generated. "
                f"The next round that can be generated is {current + 1}."
            )
        if round_number != current + 1:
            raise InvalidRound(
                f"Cannot generate round {round_number} before round {current + 1}. "
                "Rounds must be generated in order."
            )

    def _validate_player_count(self, tournament: ShuffleTournament, registered: int):
        required = tournament.team_size * 2
        if registered < required:
            size = tournament.team_size
            raise InsufficientPlayers(
                f"Not enough players registered: {registered}. Shuffle tournaments require "
                f"at least {required} players for {size}v{size} matches. Please register "
                f"{required - registered} more player(s) before generating matches.",
                available=registered,
                required=required
            )

    def generate_round(self, tournament_id: int, round_number: int) -> RoundResult:
        """
        Balance, pair and persist the matches of a round.

        Args:
            tournament_id: Tournament to schedule
            round_number: 1-based round; must be the round after the current one

        Returns:
            RoundResult with the persisted matches and team composition

        Raises:
            TournamentNotFound: Unknown tournament
            TournamentStateError: Tournament already completed
            InvalidRound: Out of range, already generated, or out of order
            InsufficientPlayers: Fewer than two teams' worth of registrations
        """
        tournament = self._load_tournament(tournament_id)
        if tournament.status == TOURNAMENT_COMPLETED:
            raise TournamentStateError(
                f'Cannot generate round {round_number}. Tournament is in "{tournament.status}" status.'
            )
        self._validate_round(tournament, round_number)

        registered_ids = self.directory.get_registered_ids(tournament_id)
        self._validate_player_count(tournament, len(registered_ids))

        map_name = tournament.map_for_round(round_number)
        balance = self.balancer.balance(registered_ids, tournament.team_size)

        teams = balance.teams
        leftover = [rp.player for rp in balance.unassigned]
        odd_team = None
        if len(teams) % 2 == 1:
            odd_team = teams[-1]
            teams = teams[:-1]
            leftover = odd_team.players + leftover

        formed = [(teams[i].players, teams[i + 1].players) for i in range(0, len(teams), 2)]

        rotations = []
        if round_number > 1 and leftover:
            last_round_players = self.storage.get_round_player_ids(tournament_id, round_number - 1)
            rotations = rotate_leftovers(last_round_players, leftover, formed)
            for swap in rotations:
                logger.info(
                    f"Rotated player {swap.incoming_id} into match "
                    f"{match_slug(round_number, swap.match_index + 1)}, removed {swap.outgoing_id}"
                )

        if leftover:
            if odd_team is not None and not rotations:
                names = ", ".join(p.name for p in odd_team.players)
                logger.warning(
                    f"Odd number of teams in round {round_number}, could not rotate players. "
                    f"Last team ({names}) will sit out."
                )
            logger.warning(
                f"Round {round_number}: {len(leftover)} player(s) will sit out: "
                f"{', '.join(p.name for p in leftover)}"
            )

        pairs = []
        with self.storage.db.transaction():
            for index, (roster1, roster2) in enumerate(formed):
                number = index + 1
                slug = match_slug(round_number, number)

                team1 = build_team(tournament_id, team_id(round_number, number, 1),
                                   team_name(round_number, number, 1),
                                   team_tag(round_number, number, 1), roster1)
                team2 = build_team(tournament_id, team_id(round_number, number, 2),
                                   team_name(round_number, number, 2),
                                   team_tag(round_number, number, 2), roster2)
                self.storage.insert_team(team1)
                self.storage.insert_team(team2)

                config = self.config_generator.generate(tournament, team1.id, team2.id, slug)
                # Single pre-selected map, no veto, random starting sides
                config['skip_veto'] = True
                config['maplist'] = [map_name]
                config['map_sides'] = [self.rng.choice([SIDE_TEAM1_CT, SIDE_TEAM2_CT])]

                row_id = self.storage.insert_match(
                    tournament_id, slug, round_number, number,
                    team1.id, team2.id, config, current_map=map_name
                )
                config['matchid'] = row_id
                self.storage.update_match(tournament_id, slug, {'config': config})
                pairs.append((team1, team2))

        matches = self.storage.get_round_matches(tournament_id, round_number)
        logger.info(
            f"Generated round {round_number} of tournament {tournament_id} on {map_name}: "
            f"{len(matches)} match(es), {len(leftover)} sitting out"
        )

        return RoundResult(
            round_number=round_number,
            map_name=map_name,
            matches=matches,
            teams=pairs,
            balance=balance,
            sit_outs=leftover,
            rotations=rotations,
        )
