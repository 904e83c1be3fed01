"""
Unit tests for the TrueSkill-backed rating model.
"""

import pytest

from cs2shuffle.tournament.rating import RatingModel, RatingUpdate


class TestRatingModel:
    """Tests for skill score <-> rating conversion."""

    @pytest.fixture
    def model(self):
        return RatingModel()

    def test_default_elo_maps_to_default_mu(self, model):
        rating = model.to_rating(3000)
        assert rating.mu == pytest.approx(25.0)
        assert rating.sigma == pytest.approx(8.333)

    def test_sigma_shrinks_with_matches(self, model):
        assert model.to_rating(3000, 10).sigma == pytest.approx(6.333)
        assert model.to_rating(3000, 10).sigma < model.to_rating(3000, 0).sigma

    def test_sigma_floor(self, model):
        assert model.to_rating(3000, 1000).sigma == pytest.approx(2.0)

    def test_ordinal_is_conservative(self, model):
        rating = model.to_rating(3500, 20)
        assert model.ordinal(rating) == pytest.approx(rating.mu - 3 * rating.sigma)

    def test_display_elo(self, model):
        # mu 25, sigma 2 -> ordinal 19 -> 19 * 100 + 500
        assert model.to_display_elo(model.to_rating(3000, 1000)) == 2400

    def test_from_stored(self, model):
        rating = model.from_stored(27.5, 4.0)
        assert rating.mu == 27.5
        assert rating.sigma == 4.0

    def test_rate_match_moves_ratings(self, model):
        team1 = [model.to_rating(3000) for _ in range(5)]
        team2 = [model.to_rating(3000) for _ in range(5)]

        new1, new2 = model.rate_match(team1, team2, team1_won=True)

        assert len(new1) == 5 and len(new2) == 5
        assert all(r.mu > 25.0 for r in new1)
        assert all(r.mu < 25.0 for r in new2)
        assert all(r.sigma < 8.333 for r in new1 + new2)

    def test_rate_match_team2_win(self, model):
        team1 = [model.to_rating(3000)]
        team2 = [model.to_rating(3000)]

        new1, new2 = model.rate_match(team1, team2, team1_won=False)

        assert new2[0].mu > new1[0].mu

    def test_rate_match_empty_roster(self, model):
        with pytest.raises(ValueError):
            model.rate_match([], [model.to_rating(3000)], team1_won=True)


class TestRatingUpdate:
    """Tests for the rating update record."""

    def test_elo_change(self):
        update = RatingUpdate(player_id="p1", mu_before=25.0, sigma_before=8.3,
                              mu_after=26.0, sigma_after=7.9, elo_before=3000, elo_after=3012)
        assert update.elo_change == 12
