"""
Tests for leaderboard, standings and their terminal formatting.
"""

import pytest

from cs2shuffle.exceptions import TournamentNotFound
from cs2shuffle.tournament.display import (
    format_leaderboard,
    format_round_result,
    format_round_status,
    format_standings,
)
from cs2shuffle.tournament.standings import LeaderboardEntry, leaderboard_sort_key


def entry(pid, wins=0, losses=0, elo=3000, adr=None):
    return LeaderboardEntry(player_id=pid, name=pid, avatar_url=None, current_elo=elo,
                            starting_elo=3000, wins=wins, losses=losses, average_adr=adr)


class TestLeaderboardEntry:
    """Tests for derived entry values."""

    def test_win_rate(self):
        assert entry("a", wins=3, losses=1).win_rate == 0.75

    def test_win_rate_without_matches(self):
        assert entry("a").win_rate == 0.0

    def test_elo_change(self):
        assert entry("a", elo=3120).elo_change == 120


class TestSortOrder:
    """Tests for leaderboard ordering."""

    def test_wins_then_elo_then_adr(self):
        entries = [
            entry("low_wins", wins=1, elo=4000, adr=150.0),
            entry("no_adr", wins=2, elo=3000),
            entry("high_adr", wins=2, elo=3000, adr=90.0),
            entry("high_elo", wins=2, elo=3100),
        ]
        ranked = sorted(entries, key=leaderboard_sort_key)

        assert [e.player_id for e in ranked] == ["high_elo", "high_adr", "no_adr", "low_wins"]

    def test_missing_adr_compares_as_zero_but_stays_none(self):
        ranked = sorted([entry("none"), entry("neg", adr=-1.0)], key=leaderboard_sort_key)

        assert [e.player_id for e in ranked] == ["none", "neg"]
        assert ranked[0].average_adr is None


class TestStandingsCalculator:
    """Integration tests over persisted results."""

    def test_leaderboard_before_any_match(self, service, setup_tournament):
        tournament, ids = setup_tournament(players=10)

        board = service.get_player_leaderboard(tournament.id)

        assert len(board) == 10
        assert all(e.wins == 0 and e.losses == 0 and e.average_adr is None for e in board)
        elos = [e.current_elo for e in board]
        assert elos == sorted(elos, reverse=True)

    def test_wins_losses_and_adr(self, service, setup_tournament, finish_round):
        tournament, ids = setup_tournament(players=10)
        service.advance_to_next_round(tournament.id)
        match = service.get_round_matches(tournament.id, 1)[0]
        team1 = service.storage.get_team(tournament.id, match.team1_id).player_ids
        team2 = service.storage.get_team(tournament.id, match.team2_id).player_ids
        stats = {team1[0]: {'adr': 80.0, 'kills': 20}, team2[0]: {'adr': 60.5}}
        service.record_match_result(tournament.id, match.slug, "team1", stats)

        service.advance_to_next_round(tournament.id)
        finish_round(tournament.id, 2, winner="team2")

        board = {e.player_id: e for e in service.get_player_leaderboard(tournament.id)}

        assert all(e.matches_played == 2 for e in board.values())
        assert sum(e.wins for e in board.values()) == 10
        # ADR averages only over the matches that recorded one
        assert board[team1[0]].average_adr == 80.0
        assert board[team2[0]].average_adr == 60.5
        others = set(ids) - {team1[0], team2[0]}
        assert all(board[pid].average_adr is None for pid in others)

    def test_leaderboard_is_stable(self, service, setup_tournament, finish_round):
        tournament, _ = setup_tournament(players=11)
        service.advance_to_next_round(tournament.id)
        finish_round(tournament.id, 1)

        first = [e.player_id for e in service.get_player_leaderboard(tournament.id)]
        second = [e.player_id for e in service.get_player_leaderboard(tournament.id)]

        assert first == second

    def test_standings_report_round_progress(self, service, setup_tournament):
        tournament, _ = setup_tournament(players=20, maps=("de_mirage", "de_inferno"))
        service.advance_to_next_round(tournament.id)
        first = service.get_round_matches(tournament.id, 1)[0]
        service.record_match_result(tournament.id, first.slug, "team2")

        standings = service.get_tournament_standings(tournament.id)

        assert standings.current_round == 1
        assert standings.total_rounds == 2
        status = standings.round_status
        assert status.total_matches == 2
        assert status.completed_matches == 1
        assert status.pending_matches == 1
        assert status.is_complete is False
        assert status.map_name == "de_mirage"

    def test_standings_before_first_round(self, service, setup_tournament):
        tournament, _ = setup_tournament(players=10)

        standings = service.get_tournament_standings(tournament.id)

        assert standings.current_round == 0
        assert standings.round_status is None
        assert standings.to_dict()['round_status'] is None

    def test_unknown_tournament(self, service):
        with pytest.raises(TournamentNotFound):
            service.get_player_leaderboard(77)


class TestDisplay:
    """Tests for terminal formatting."""

    def test_format_leaderboard(self):
        text = format_leaderboard([entry("alice", wins=2, elo=3050, adr=88.4), entry("bob", losses=2)])

        assert "LEADERBOARD" in text
        assert "3050 (+50)" in text
        assert "88.4" in text
        assert "bob" in text

    def test_format_round_and_standings(self, service, setup_tournament):
        tournament, _ = setup_tournament(players=11)
        outcome = service.advance_to_next_round(tournament.id)

        round_text = format_round_result(outcome.round_result)
        assert "shuffle-r1-m1" in round_text
        assert "Sitting out:" in round_text

        standings = service.get_tournament_standings(tournament.id)
        assert "0/1 matches completed" in format_round_status(standings.round_status)
        assert "Friday Shuffle" in format_standings(standings)
