"""
Shuffle tournament service.

Single entry point used by the HTTP API and the CLI. Wires storage, player
directory, rating model and templates, balancer, scheduler, advancement
tracker, standings and result recorder together. Every operation after
creation takes an explicit tournament id.
"""

import logging
import random
import sqlite3
from typing import Any, Dict, List, Optional, Sequence

from cs2shuffle.config import ShuffleSettings
from cs2shuffle.exceptions import (
    EmptyInput,
    InvalidTournamentConfig,
    RatingTemplateNotFound,
    TournamentNotFound,
    TournamentStateError,
)
from cs2shuffle.players.directory import PlayerDirectory, PlayerRecord
from cs2shuffle.storage.database import Database
from cs2shuffle.tournament.advancement import AdvanceOutcome, AdvancementTracker
from cs2shuffle.tournament.balancer import BalanceResult, TeamBalancer
from cs2shuffle.tournament.match_config import MatchConfigGenerator
from cs2shuffle.tournament.models import (
    RegistrationResult,
    RoundStatus,
    ShuffleMatch,
    ShuffleTournament,
    ShuffleTournamentConfig,
)
from cs2shuffle.tournament.rating import RatingModel, RatingUpdate
from cs2shuffle.tournament.results import MatchResultRecorder
from cs2shuffle.tournament.scheduler import RoundResult, RoundScheduler
from cs2shuffle.tournament.standings import LeaderboardEntry, StandingsCalculator, TournamentStandings
from cs2shuffle.tournament.storage import TournamentStorage
from cs2shuffle.tournament.templates import RatingTemplate, RatingTemplateStore
from cs2shuffle.utils.constants import (
    DEFAULT_OPTIMIZATION_PASSES,
    REGISTRATION_ALREADY_REGISTERED,
    REGISTRATION_FAILED,
    REGISTRATION_REGISTERED,
    REGISTRATION_UNREGISTERED,
    TOURNAMENT_IN_PROGRESS,
    TOURNAMENT_SETUP,
)
from cs2shuffle.utils.timeutils import utc_now

logger = logging.getLogger(__name__)


def _unique(ids: Sequence[str]) -> List[str]:
    seen = set()
    result = []
    for pid in ids:
        if pid not in seen:
            seen.add(pid)
            result.append(pid)
    return result


class ShuffleTournamentService:
    """Public operations of the shuffle tournament core."""

    def __init__(
        self,
        db: Database,
        rating_model: Optional[RatingModel] = None,
        rng: Optional[random.Random] = None,
        max_passes: int = DEFAULT_OPTIMIZATION_PASSES,
        config_generator: Optional[MatchConfigGenerator] = None
    ):
        self.db = db
        self.storage = TournamentStorage(db)
        self.directory = PlayerDirectory(db)
        self.rating_model = rating_model or RatingModel()
        self.balancer = TeamBalancer(self.directory, self.rating_model, max_passes=max_passes)
        self.scheduler = RoundScheduler(
            self.storage, self.directory, self.balancer,
            config_generator=config_generator, rng=rng
        )
        self.tracker = AdvancementTracker(self.storage, self.scheduler)
        self.standings = StandingsCalculator(self.storage, self.directory)
        self.templates = RatingTemplateStore(db)
        self.results = MatchResultRecorder(self.storage, self.directory, self.rating_model, self.templates)

    @classmethod
    def from_settings(cls, settings: ShuffleSettings, **kwargs) -> 'ShuffleTournamentService':
        db = Database(data_dir=settings.data_dir, filename=settings.db_filename)
        kwargs.setdefault('max_passes', settings.optimization_passes)
        return cls(db, **kwargs)

    # ------------------------------------------------------------------
    # Tournament
    # ------------------------------------------------------------------

    def create_shuffle_tournament(self, config: ShuffleTournamentConfig,
                                  replace_existing: bool = True) -> ShuffleTournament:
        """
        Validate and create a tournament in ``setup`` status.

        With ``replace_existing`` every earlier shuffle tournament (and its
        registrations, teams, matches and stats) is deleted first.
        """
        config.validate()
        self.templates.ensure_default()
        if config.rating_template_id and self.templates.get(config.rating_template_id) is None:
            raise InvalidTournamentConfig(
                f"Unknown rating template: {config.rating_template_id}. "
                "Create the template first or leave it empty for win/loss only ratings."
            )
        with self.db.transaction():
            if replace_existing:
                removed = self.storage.delete_all_tournaments()
                if removed:
                    logger.info(f"Deleted {removed} previous shuffle tournament(s)")
            tournament = self.storage.create_tournament(config)

        logger.info(
            f"Created shuffle tournament {tournament.id} '{tournament.name}' "
            f"({tournament.total_rounds} round(s), {tournament.team_size}v{tournament.team_size})"
        )
        return tournament

    def get_tournament(self, tournament_id: int) -> ShuffleTournament:
        tournament = self.storage.get_tournament(tournament_id)
        if tournament is None:
            raise TournamentNotFound(tournament_id)
        return tournament

    def list_tournaments(self, limit: int = 20) -> List[ShuffleTournament]:
        return self.storage.list_tournaments(limit)

    # ------------------------------------------------------------------
    # Players
    # ------------------------------------------------------------------

    def import_players(self, players: Sequence[Dict[str, Any]]) -> List[PlayerRecord]:
        """Create or refresh players from dicts with id, name and optional elo/avatar_url."""
        records = []
        with self.db.transaction():
            for p in players:
                records.append(self.directory.upsert_player(
                    str(p['id']), p['name'],
                    elo=p.get('elo'),
                    avatar_url=p.get('avatar_url'),
                    match_count=p.get('match_count'),
                ))
        logger.info(f"Imported {len(records)} player(s)")
        return records

    def _require_setup(self, tournament_id: int, action: str) -> ShuffleTournament:
        tournament = self.get_tournament(tournament_id)
        if tournament.status != TOURNAMENT_SETUP:
            raise TournamentStateError(
                f'Cannot {action} players. Tournament is in "{tournament.status}" status. '
                f'Players can only be {action}ed when tournament is in "{TOURNAMENT_SETUP}" status.'
            )
        return tournament

    def _add_players(self, tournament_id: int, player_ids: Sequence[str]) -> RegistrationResult:
        result = RegistrationResult()
        known = {p.id for p in self.directory.get_by_ids(player_ids)}
        for pid in player_ids:
            if pid not in known:
                result.add(pid, REGISTRATION_FAILED, error="Player not found")
                continue
            try:
                added = self.storage.add_registration(tournament_id, pid)
            except sqlite3.Error as e:
                logger.warning(f"Failed to register player {pid}: {e}")
                result.add(pid, REGISTRATION_FAILED, error=str(e))
                continue
            result.add(pid, REGISTRATION_REGISTERED if added else REGISTRATION_ALREADY_REGISTERED)
        return result

    def _remove_players(self, tournament_id: int, player_ids: Sequence[str],
                        error_prefix: str = "") -> RegistrationResult:
        result = RegistrationResult()
        for pid in player_ids:
            try:
                removed = self.storage.remove_registration(tournament_id, pid)
            except sqlite3.Error as e:
                logger.warning(f"Failed to unregister player {pid}: {e}")
                result.add(pid, REGISTRATION_FAILED, error=f"{error_prefix}{e}")
                continue
            if removed:
                result.add(pid, REGISTRATION_UNREGISTERED)
            else:
                result.add(pid, REGISTRATION_FAILED, error=f"{error_prefix}Player not registered")
        return result

    def register_players(self, tournament_id: int, player_ids: Sequence[str]) -> RegistrationResult:
        """
        Register players while the tournament is in setup.

        Never fails for a single id: unknown players are reported per item.
        """
        self._require_setup(tournament_id, "register")
        if not player_ids:
            raise EmptyInput("No players provided. Please select at least one player to register.")

        result = self._add_players(tournament_id, _unique(player_ids))
        logger.info(
            f"Registered {result.registered_count} player(s) to tournament {tournament_id}"
            f" ({result.error_count} error(s))"
        )
        return result

    def unregister_players(self, tournament_id: int, player_ids: Sequence[str]) -> RegistrationResult:
        self._require_setup(tournament_id, "unregister")
        if not player_ids:
            raise EmptyInput("No players provided. Please select at least one player to unregister.")

        result = self._remove_players(tournament_id, _unique(player_ids))
        logger.info(f"Unregistered {result.unregistered_count} player(s) from tournament {tournament_id}")
        return result

    def set_registered_players(self, tournament_id: int, player_ids: Sequence[str]) -> RegistrationResult:
        """Make the registration list exactly ``player_ids``."""
        self._require_setup(tournament_id, "register")

        wanted = _unique(player_ids)
        current = self.directory.get_registered_ids(tournament_id)
        wanted_set, current_set = set(wanted), set(current)
        to_remove = [pid for pid in current if pid not in wanted_set]
        to_add = [pid for pid in wanted if pid not in current_set]

        removed = self._remove_players(tournament_id, to_remove, error_prefix="Failed to unregister: ")
        added = self._add_players(tournament_id, to_add)
        result = removed.merge(added)
        logger.info(
            f"Set registrations of tournament {tournament_id}: "
            f"{result.registered_count} added, {result.unregistered_count} removed"
            f" ({result.error_count} error(s))"
        )
        return result

    def get_registered_players(self, tournament_id: int) -> List[PlayerRecord]:
        self.get_tournament(tournament_id)
        return self.directory.get_registered(tournament_id)

    def preview_balance(self, player_ids: Sequence[str], team_size: int) -> BalanceResult:
        """Balance players without persisting anything."""
        return self.balancer.balance(_unique(player_ids), team_size)

    # ------------------------------------------------------------------
    # Rounds
    # ------------------------------------------------------------------

    def generate_round_matches(self, tournament_id: int, round_number: int) -> RoundResult:
        """Generate a round; the first generated round also starts the tournament."""
        with self.db.transaction():
            result = self.scheduler.generate_round(tournament_id, round_number)
            tournament = self.get_tournament(tournament_id)
            if tournament.status == TOURNAMENT_SETUP:
                self.storage.update_tournament_status(
                    tournament_id, TOURNAMENT_IN_PROGRESS, started_at=utc_now()
                )
                logger.info(f"Tournament {tournament_id} started")
        return result

    def check_round_completion(self, tournament_id: int, round_number: int) -> bool:
        self.get_tournament(tournament_id)
        return self.tracker.check_round_completion(tournament_id, round_number)

    def advance_to_next_round(self, tournament_id: int) -> Optional[AdvanceOutcome]:
        return self.tracker.advance_to_next_round(tournament_id)

    def get_round_status(self, tournament_id: int, round_number: int) -> RoundStatus:
        return self.standings.get_round_status(tournament_id, round_number)

    def get_round_matches(self, tournament_id: int, round_number: int) -> List[ShuffleMatch]:
        self.get_tournament(tournament_id)
        return self.storage.get_round_matches(tournament_id, round_number)

    # ------------------------------------------------------------------
    # Results and standings
    # ------------------------------------------------------------------

    def record_match_result(self, tournament_id: int, match_slug: str, winner: str,
                            player_stats: Optional[Dict[str, Dict[str, Any]]] = None) -> List[RatingUpdate]:
        self.get_tournament(tournament_id)
        return self.results.record_match_result(tournament_id, match_slug, winner, player_stats)

    def update_match_status(self, tournament_id: int, match_slug: str, status: str) -> ShuffleMatch:
        self.get_tournament(tournament_id)
        return self.results.update_match_status(tournament_id, match_slug, status)

    def get_player_leaderboard(self, tournament_id: int) -> List[LeaderboardEntry]:
        return self.standings.get_player_leaderboard(tournament_id)

    def get_tournament_standings(self, tournament_id: int) -> TournamentStandings:
        return self.standings.get_tournament_standings(tournament_id)

    # ------------------------------------------------------------------
    # Rating templates
    # ------------------------------------------------------------------

    def create_rating_template(self, name: str, **kwargs) -> RatingTemplate:
        """Create a template; keyword arguments as in ``RatingTemplateStore.create``."""
        return self.templates.create(name, **kwargs)

    def get_rating_template(self, template_id: str) -> RatingTemplate:
        template = self.templates.get(template_id)
        if template is None:
            raise RatingTemplateNotFound(template_id)
        return template

    def list_rating_templates(self) -> List[RatingTemplate]:
        return self.templates.get_all()

    def delete_rating_template(self, template_id: str):
        self.templates.delete(template_id)
