"""
Match result recording.

Completing a match writes per-player stats rows (read by the standings) and
updates every rostered player's rating, all in one transaction. When the
tournament names an enabled rating template, players with reported stats get
the template's adjustment added to their new ELO.
"""

import logging
from typing import Any, Dict, List, Optional

from cs2shuffle.exceptions import InvalidMatchResult, MatchNotFound, TournamentStateError
from cs2shuffle.players.directory import PlayerDirectory, PlayerRecord
from cs2shuffle.tournament.models import ShuffleMatch
from cs2shuffle.tournament.rating import RatingModel, RatingUpdate
from cs2shuffle.tournament.storage import TournamentStorage
from cs2shuffle.tournament.templates import RatingTemplate, RatingTemplateStore, calculate_adjustment
from cs2shuffle.utils.constants import MATCH_COMPLETED, MATCH_STATUSES, TEAM1, TEAM2
from cs2shuffle.utils.timeutils import utc_now

logger = logging.getLogger(__name__)


class MatchResultRecorder:
    """Records outcomes and status changes of shuffle matches."""

    def __init__(self, storage: TournamentStorage, directory: PlayerDirectory,
                 rating_model: Optional[RatingModel] = None,
                 templates: Optional[RatingTemplateStore] = None):
        self.storage = storage
        self.directory = directory
        self.rating_model = rating_model or RatingModel()
        self.templates = templates or RatingTemplateStore(storage.db)

    def _active_template(self, tournament_id: int) -> Optional[RatingTemplate]:
        tournament = self.storage.get_tournament(tournament_id)
        if tournament is None or not tournament.rating_template_id:
            return None
        template = self.templates.get(tournament.rating_template_id)
        if template is None or not template.enabled:
            logger.debug(f"Rating template {tournament.rating_template_id} missing or disabled")
            return None
        return template

    def _get_match(self, tournament_id: int, match_slug: str) -> ShuffleMatch:
        match = self.storage.get_match(tournament_id, match_slug)
        if match is None:
            raise MatchNotFound(match_slug)
        return match

    def _roster(self, tournament_id: int, team_id: str) -> List[PlayerRecord]:
        team = self.storage.get_team(tournament_id, team_id)
        if team is None:
            return []
        return self.directory.get_by_ids(team.player_ids)

    def record_match_result(
        self,
        tournament_id: int,
        match_slug: str,
        winner: str,
        player_stats: Optional[Dict[str, Dict[str, Any]]] = None
    ) -> List[RatingUpdate]:
        """
        Complete a match and update ratings.

        Args:
            tournament_id: Tournament the match belongs to
            match_slug: Match to complete
            winner: 'team1' or 'team2'
            player_stats: Optional steam id -> {adr, kills, deaths, assists}

        Returns:
            One RatingUpdate per rostered player, team 1 first

        Raises:
            MatchNotFound: Unknown slug
            TournamentStateError: Match already completed
            InvalidMatchResult: Winner is not team1/team2 or a roster is empty
        """
        if winner not in (TEAM1, TEAM2):
            raise InvalidMatchResult(f"Invalid winner: {winner}. Expected '{TEAM1}' or '{TEAM2}'.")

        match = self._get_match(tournament_id, match_slug)
        if match.is_completed:
            raise TournamentStateError(f"Match {match_slug} is already completed.")

        team1 = self._roster(tournament_id, match.team1_id)
        team2 = self._roster(tournament_id, match.team2_id)
        if not team1 or not team2:
            raise InvalidMatchResult(f"Match {match_slug} does not have two rostered teams.")

        team1_won = winner == TEAM1
        ratings1 = [self.rating_model.from_stored(p.rating_mu, p.rating_sigma) for p in team1]
        ratings2 = [self.rating_model.from_stored(p.rating_mu, p.rating_sigma) for p in team2]
        new1, new2 = self.rating_model.rate_match(ratings1, ratings2, team1_won)

        player_stats = player_stats or {}
        template = self._active_template(tournament_id)
        now = utc_now()
        updates = []

        with self.storage.db.transaction():
            self.storage.update_match(tournament_id, match_slug, {
                'status': MATCH_COMPLETED,
                'winner_id': match.team1_id if team1_won else match.team2_id,
                'completed_at': now,
            })

            sides = [(TEAM1, team1, new1, team1_won), (TEAM2, team2, new2, not team1_won)]
            for side, roster, new_ratings, won in sides:
                for player, new_rating in zip(roster, new_ratings):
                    stats = player_stats.get(player.id, {})
                    self.storage.insert_player_stats(
                        tournament_id, match_slug, player.id, side, won,
                        adr=stats.get('adr'),
                        kills=stats.get('kills'),
                        deaths=stats.get('deaths'),
                        assists=stats.get('assists'),
                    )

                    base_elo = self.rating_model.to_display_elo(new_rating)
                    adjustment = 0
                    template_id = None
                    if template is not None and stats:
                        adjustment = calculate_adjustment(template, stats)
                        template_id = template.id

                    update = RatingUpdate(
                        player_id=player.id,
                        mu_before=player.rating_mu,
                        sigma_before=player.rating_sigma,
                        mu_after=new_rating.mu,
                        sigma_after=new_rating.sigma,
                        elo_before=player.current_elo,
                        elo_after=base_elo + adjustment,
                        stat_adjustment=adjustment,
                        template_id=template_id,
                    )
                    self.storage.db.update('players', {
                        'current_elo': update.elo_after,
                        'rating_mu': update.mu_after,
                        'rating_sigma': update.sigma_after,
                        'match_count': player.match_count + 1,
                        'updated_at': now,
                    }, "id = ?", (player.id,))
                    self.storage.insert_rating_history({
                        'player_id': player.id,
                        'tournament_id': tournament_id,
                        'match_slug': match_slug,
                        'elo_before': update.elo_before,
                        'elo_after': update.elo_after,
                        'elo_change': update.elo_change,
                        'mu_before': update.mu_before,
                        'mu_after': update.mu_after,
                        'sigma_before': update.sigma_before,
                        'sigma_after': update.sigma_after,
                        'base_elo_after': update.base_elo_after,
                        'stat_adjustment': update.stat_adjustment,
                        'template_id': update.template_id,
                        'match_result': 'win' if won else 'loss',
                    })
                    updates.append(update)

        logger.info(f"Recorded result for {match_slug}: {winner} won, {len(updates)} rating(s) updated")
        return updates

    def update_match_status(self, tournament_id: int, match_slug: str, status: str) -> ShuffleMatch:
        """
        Move a match forward in its lifecycle (pending, ready, live, completed).

        Raises:
            MatchNotFound: Unknown slug
            InvalidMatchResult: Unknown status or a backwards move
        """
        if status not in MATCH_STATUSES:
            raise InvalidMatchResult(
                f"Invalid match status: {status}. Expected one of: {', '.join(MATCH_STATUSES)}."
            )

        match = self._get_match(tournament_id, match_slug)
        if MATCH_STATUSES.index(status) < MATCH_STATUSES.index(match.status):
            raise InvalidMatchResult(
                f'Cannot move match {match_slug} from "{match.status}" back to "{status}".'
            )

        if status != match.status:
            fields = {'status': status}
            if status == MATCH_COMPLETED:
                fields['completed_at'] = utc_now()
            self.storage.update_match(tournament_id, match_slug, fields)
            logger.info(f"Match {match_slug}: {match.status} -> {status}")

        return self._get_match(tournament_id, match_slug)
