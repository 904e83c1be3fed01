"""
Tests for match result recording and match status changes.
"""

import pytest

from cs2shuffle.exceptions import InvalidMatchResult, MatchNotFound, TournamentStateError
from cs2shuffle.utils.constants import MATCH_COMPLETED


@pytest.fixture
def started(service, setup_tournament):
    """Tournament with round 1 generated (one 5v5 match)."""
    tournament, ids = setup_tournament(players=10)
    service.advance_to_next_round(tournament.id)
    match = service.get_round_matches(tournament.id, 1)[0]
    return tournament, match


class TestRecordMatchResult:
    """Tests for completing a match."""

    def test_match_completed_with_winner(self, service, started):
        tournament, match = started

        service.record_match_result(tournament.id, match.slug, "team2")

        done = service.storage.get_match(tournament.id, match.slug)
        assert done.status == MATCH_COMPLETED
        assert done.winner_id == match.team2_id
        assert done.completed_at is not None

    def test_ratings_updated(self, service, started):
        tournament, match = started
        winners = service.storage.get_team(tournament.id, match.team1_id).player_ids
        losers = service.storage.get_team(tournament.id, match.team2_id).player_ids
        before = {p.id: p for p in service.directory.get_by_ids(winners + losers)}

        updates = service.record_match_result(tournament.id, match.slug, "team1")

        assert [u.player_id for u in updates] == winners + losers
        after = {p.id: p for p in service.directory.get_by_ids(winners + losers)}
        for pid in winners:
            assert after[pid].rating_mu > before[pid].rating_mu
        for pid in losers:
            assert after[pid].rating_mu < before[pid].rating_mu
        assert all(after[pid].match_count == before[pid].match_count + 1 for pid in after)
        assert all(after[u.player_id].current_elo == u.elo_after for u in updates)

    def test_history_and_stats_rows(self, service, started, db):
        tournament, match = started

        service.record_match_result(tournament.id, match.slug, "team1",
                                    {"76561198000000000": {"adr": 101.5, "kills": 25}})

        history = db.query("SELECT * FROM player_rating_history WHERE match_slug = ?", (match.slug,))
        stats = db.query("SELECT * FROM player_match_stats WHERE match_slug = ?", (match.slug,))
        assert len(history) == 10
        assert sorted({h['match_result'] for h in history}) == ['loss', 'win']
        assert len(stats) == 10
        assert sum(s['won_match'] for s in stats) == 5
        assert [s['adr'] for s in stats if s['player_id'] == "76561198000000000"] == [101.5]

    def test_already_completed(self, service, started):
        tournament, match = started
        service.record_match_result(tournament.id, match.slug, "team1")

        with pytest.raises(TournamentStateError):
            service.record_match_result(tournament.id, match.slug, "team2")

    def test_unknown_match(self, service, started):
        tournament, _ = started
        with pytest.raises(MatchNotFound):
            service.record_match_result(tournament.id, "shuffle-r9-m9", "team1")

    def test_invalid_winner(self, service, started):
        tournament, match = started
        with pytest.raises(InvalidMatchResult):
            service.record_match_result(tournament.id, match.slug, "draw")


class TestUpdateMatchStatus:
    """Tests for lifecycle moves without a result."""

    def test_forward_moves(self, service, started):
        tournament, match = started

        assert service.update_match_status(tournament.id, match.slug, "ready").status == "ready"
        assert service.update_match_status(tournament.id, match.slug, "live").status == "live"
        done = service.update_match_status(tournament.id, match.slug, "completed")
        assert done.status == "completed"
        assert done.completed_at is not None

    def test_same_status_is_noop(self, service, started):
        tournament, match = started
        assert service.update_match_status(tournament.id, match.slug, "pending").status == "pending"

    def test_backwards_rejected(self, service, started):
        tournament, match = started
        service.update_match_status(tournament.id, match.slug, "live")

        with pytest.raises(InvalidMatchResult):
            service.update_match_status(tournament.id, match.slug, "ready")

    def test_unknown_status(self, service, started):
        tournament, match = started
        with pytest.raises(InvalidMatchResult):
            service.update_match_status(tournament.id, match.slug, "paused")
