"""
Round advancement state machine.

States are derived from persisted matches, never stored:

    no_rounds_started -> round_in_progress(r) -> round_complete(r)
        -> round_in_progress(r + 1) | tournament_complete

``advance_to_next_round`` is safe to poll: while the current round is
incomplete it returns None and writes nothing.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from cs2shuffle.exceptions import TournamentNotFound
from cs2shuffle.tournament.models import ShuffleMatch, ShuffleTournament
from cs2shuffle.tournament.scheduler import RoundResult, RoundScheduler
from cs2shuffle.tournament.storage import TournamentStorage
from cs2shuffle.utils.constants import TOURNAMENT_COMPLETED, TOURNAMENT_IN_PROGRESS, TOURNAMENT_SETUP
from cs2shuffle.utils.timeutils import utc_now

logger = logging.getLogger(__name__)

STATE_NO_ROUNDS_STARTED = "no_rounds_started"
STATE_ROUND_IN_PROGRESS = "round_in_progress"
STATE_ROUND_COMPLETE = "round_complete"
STATE_TOURNAMENT_COMPLETE = "tournament_complete"


@dataclass
class AdvanceOutcome:
    """Result of a successful advancement."""
    round_number: int
    tournament_complete: bool = False
    round_result: Optional[RoundResult] = None

    @property
    def matches(self) -> List[ShuffleMatch]:
        return self.round_result.matches if self.round_result else []


@dataclass
class AdvancementState:
    state: str
    round_number: int
    total_rounds: int


class AdvancementTracker:
    """Decides when a round is complete and moves the tournament on."""

    def __init__(self, storage: TournamentStorage, scheduler: RoundScheduler):
        self.storage = storage
        self.scheduler = scheduler

    def _load_tournament(self, tournament_id: int) -> ShuffleTournament:
        tournament = self.storage.get_tournament(tournament_id)
        if tournament is None:
            raise TournamentNotFound(tournament_id)
        return tournament

    def check_round_completion(self, tournament_id: int, round_number: int) -> bool:
        """
        True iff the round has at least one match and all are completed.

        A round without matches is reported as not complete, since it was
        never generated.
        """
        counts = self.storage.get_round_counts(tournament_id, round_number)
        if counts['total'] == 0:
            logger.warning(
                f"No matches found for round {round_number}. Round cannot be considered complete."
            )
            return False

        logger.debug(f"Round {round_number}: {counts['completed']}/{counts['total']} matches completed")
        return counts['completed'] == counts['total']

    def get_state(self, tournament_id: int) -> AdvancementState:
        tournament = self._load_tournament(tournament_id)
        current = self.storage.get_current_round(tournament_id)

        if tournament.status == TOURNAMENT_COMPLETED:
            state = STATE_TOURNAMENT_COMPLETE
        elif current == 0:
            state = STATE_NO_ROUNDS_STARTED
        else:
            counts = self.storage.get_round_counts(tournament_id, current)
            if counts['completed'] == counts['total']:
                state = STATE_ROUND_COMPLETE
            else:
                state = STATE_ROUND_IN_PROGRESS

        return AdvancementState(state=state, round_number=current, total_rounds=tournament.total_rounds)

    def advance_to_next_round(self, tournament_id: int) -> Optional[AdvanceOutcome]:
        """
        Generate the next round, or finish the tournament after the last one.

        Returns:
            None when nothing happened (current round incomplete or the
            tournament already completed), otherwise an AdvanceOutcome
        """
        tournament = self._load_tournament(tournament_id)
        if tournament.status == TOURNAMENT_COMPLETED:
            logger.debug(f"Tournament {tournament_id} is already completed, nothing to advance")
            return None

        current = self.storage.get_current_round(tournament_id)
        if current > 0 and not self.check_round_completion(tournament_id, current):
            return None

        next_round = current + 1
        if next_round > tournament.total_rounds:
            self.storage.update_tournament_status(
                tournament_id, TOURNAMENT_COMPLETED, completed_at=utc_now()
            )
            logger.info(
                f"Tournament {tournament_id} completed after {current} round(s)"
            )
            return AdvanceOutcome(round_number=current, tournament_complete=True)

        with self.storage.db.transaction():
            result = self.scheduler.generate_round(tournament_id, next_round)
            if tournament.status == TOURNAMENT_SETUP:
                self.storage.update_tournament_status(
                    tournament_id, TOURNAMENT_IN_PROGRESS, started_at=utc_now()
                )
                logger.info(f"Tournament {tournament_id} started")

        logger.info(f"Advanced tournament {tournament_id} to round {next_round}")
        return AdvanceOutcome(round_number=next_round, round_result=result)
