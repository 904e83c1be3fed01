"""
Skill rating model for balancing and post-match updates.

Maps the admin-facing skill score ("ELO", default 3000) onto a two-parameter
TrueSkill rating and back:
- mu = (elo - 500) / 100, so 3000 maps to the TrueSkill default of 25
- sigma shrinks with experience: 8.333 new, floor 2.0
- ordinal = mu - 3 * sigma (conservative exposure used for ranking)
- display elo = round(ordinal * 100 + 500)
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import trueskill

from cs2shuffle.utils.constants import DEFAULT_SIGMA, ELO_OFFSET, ELO_SCALE, MIN_SIGMA

# Sigma lost per match played, capped so sigma never drops below MIN_SIGMA
SIGMA_DECAY_PER_MATCH = 0.2
MAX_SIGMA_DECAY = DEFAULT_SIGMA - MIN_SIGMA


@dataclass
class RatingUpdate:
    """Result of a rating update for one player after a match."""
    player_id: str
    mu_before: float
    sigma_before: float
    mu_after: float
    sigma_after: float
    elo_before: int
    elo_after: int
    stat_adjustment: int = 0
    template_id: Optional[str] = None

    @property
    def elo_change(self) -> int:
        return self.elo_after - self.elo_before

    @property
    def base_elo_after(self) -> int:
        """Display ELO from the rating model alone, before any stat adjustment."""
        return self.elo_after - self.stat_adjustment


class RatingModel:
    """
    TrueSkill-backed rating conversions.

    The environment uses TrueSkill defaults (mu 25, sigma 25/3), so
    ``expose`` is exactly mu - 3 * sigma.
    """

    def __init__(self, env: trueskill.TrueSkill = None):
        self.env = env or trueskill.TrueSkill()

    def to_rating(self, skill_score: float, matches_played: int = 0) -> trueskill.Rating:
        """
        Convert an admin skill score into a rating.

        Args:
            skill_score: Admin-facing ELO number
            matches_played: Lifetime matches, used to shrink uncertainty

        Returns:
            trueskill.Rating
        """
        mu = (skill_score - ELO_OFFSET) / ELO_SCALE
        sigma = max(MIN_SIGMA, DEFAULT_SIGMA - min(matches_played * SIGMA_DECAY_PER_MATCH, MAX_SIGMA_DECAY))
        return self.env.create_rating(mu=mu, sigma=sigma)

    def from_stored(self, mu: float, sigma: float) -> trueskill.Rating:
        """Rebuild a rating persisted as mu/sigma columns."""
        return self.env.create_rating(mu=mu, sigma=sigma)

    def ordinal(self, rating: trueskill.Rating) -> float:
        """Single comparable value for a rating (mu - 3 * sigma)."""
        return self.env.expose(rating)

    def skill_ordinal(self, skill_score: float, matches_played: int = 0) -> float:
        """Shortcut for ``ordinal(to_rating(skill_score, matches_played))``."""
        return self.ordinal(self.to_rating(skill_score, matches_played))

    def to_display_elo(self, rating: trueskill.Rating) -> int:
        """Convert a rating back to the admin-facing ELO number."""
        return round(self.ordinal(rating) * ELO_SCALE + ELO_OFFSET)

    def rate_match(
        self,
        team1: Sequence[trueskill.Rating],
        team2: Sequence[trueskill.Rating],
        team1_won: bool
    ) -> Tuple[List[trueskill.Rating], List[trueskill.Rating]]:
        """
        Update both rosters after a decided match.

        Args:
            team1: Ratings of team 1 players
            team2: Ratings of team 2 players
            team1_won: Whether team 1 won

        Returns:
            (new team 1 ratings, new team 2 ratings) in input order
        """
        if not team1 or not team2:
            raise ValueError("Cannot rate a match with an empty roster")

        ranks = [0, 1] if team1_won else [1, 0]
        new_team1, new_team2 = self.env.rate([tuple(team1), tuple(team2)], ranks=ranks)
        return list(new_team1), list(new_team2)
