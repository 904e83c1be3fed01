"""
Integration tests for round scheduling.
"""

import logging
import random

import pytest

from cs2shuffle.exceptions import InsufficientPlayers, InvalidRound, TournamentNotFound
from cs2shuffle.tournament.match_config import MatchConfigGenerator, build_round_limit_cvars
from cs2shuffle.tournament.models import ShuffleTournamentConfig
from cs2shuffle.tournament.service import ShuffleTournamentService
from cs2shuffle.tournament.storage import TournamentStorage
from cs2shuffle.utils.constants import MATCH_PENDING, TOURNAMENT_IN_PROGRESS, TOURNAMENT_SETUP


def round_player_ids(service, tournament_id, round_number):
    ids = []
    for match in service.get_round_matches(tournament_id, round_number):
        for team_id in (match.team1_id, match.team2_id):
            ids.extend(service.storage.get_team(tournament_id, team_id).player_ids)
    return ids


class TestRoundGeneration:
    """Tests for generating a round."""

    def test_ten_players_one_match(self, service, setup_tournament):
        """10 players at 5v5: exactly one match and nobody sits out."""
        tournament, ids = setup_tournament(players=10)
        result = service.generate_round_matches(tournament.id, 1)

        assert result.match_count == 1
        assert result.sit_outs == []
        assert sorted(round_player_ids(service, tournament.id, 1)) == sorted(ids)

    def test_eleven_players_one_sits_out(self, service, setup_tournament, caplog):
        """11 players at 5v5: one match, one sit-out, and a warning."""
        caplog.set_level(logging.WARNING, logger="cs2shuffle")
        tournament, ids = setup_tournament(players=11)

        result = service.generate_round_matches(tournament.id, 1)

        assert result.match_count == 1
        assert len(result.sit_outs) == 1
        assert result.sit_outs[0].id not in round_player_ids(service, tournament.id, 1)
        assert any("will sit out" in r.message for r in caplog.records if r.levelno == logging.WARNING)

    def test_odd_team_count_sits_out_last_team(self, service, setup_tournament, caplog):
        caplog.set_level(logging.WARNING, logger="cs2shuffle")
        tournament, ids = setup_tournament(players=15)

        result = service.generate_round_matches(tournament.id, 1)

        assert result.match_count == 1
        assert len(result.sit_outs) == 5
        assert [p.id for p in result.sit_outs] == result.balance.teams[-1].player_ids
        assert any("Odd number of teams in round 1" in r.message for r in caplog.records)

    def test_twenty_players_two_matches(self, service, setup_tournament):
        tournament, ids = setup_tournament(players=20)
        result = service.generate_round_matches(tournament.id, 1)

        assert result.match_count == 2
        players = round_player_ids(service, tournament.id, 1)
        assert len(players) == len(set(players)) == 20
        assert set(players) <= set(ids)

    def test_deterministic_ids(self, service, setup_tournament):
        tournament, _ = setup_tournament(players=20)
        service.generate_round_matches(tournament.id, 1)

        matches = service.get_round_matches(tournament.id, 1)
        assert [m.slug for m in matches] == ["shuffle-r1-m1", "shuffle-r1-m2"]
        assert matches[1].team1_id == "shuffle-r1-m2-team1"
        assert matches[1].team2_id == "shuffle-r1-m2-team2"

        team = service.storage.get_team(tournament.id, "shuffle-r1-m2-team1")
        assert team.name == "Round 1 Match 2 - Team 1"
        assert team.tag == "R1M2T1"

    def test_match_config_overrides(self, service, setup_tournament):
        tournament, _ = setup_tournament(players=10, maps=("de_nuke", "de_ancient"))
        service.generate_round_matches(tournament.id, 1)

        match = service.get_round_matches(tournament.id, 1)[0]
        assert match.status == MATCH_PENDING
        assert match.current_map == "de_nuke"
        assert match.config['skip_veto'] is True
        assert match.config['maplist'] == ["de_nuke"]
        assert match.config['map_sides'][0] in ("team1_ct", "team2_ct")
        assert match.config['matchid'] == match.id
        assert match.config['num_maps'] == 1
        assert match.config['players_per_team'] == 5
        assert len(match.config['team1']['players']) == 5
        assert match.config['cvars'] == {
            'mp_maxrounds': 24,
            'mp_overtime_enable': 1,
            'mp_overtime_maxrounds': 3,
            'mp_overtime_startmoney': 10000,
        }

    def test_max_rounds_config(self, service, setup_tournament):
        tournament, _ = setup_tournament(players=10, round_limit_type="max_rounds", max_rounds=16)
        service.generate_round_matches(tournament.id, 1)

        cvars = service.get_round_matches(tournament.id, 1)[0].config['cvars']
        assert cvars == {'mp_maxrounds': 16, 'mp_overtime_enable': 0}

    def test_seeded_sides_are_reproducible(self, db, make_players):
        ids = make_players(20)
        sides = []
        for _ in range(2):
            svc = ShuffleTournamentService(db, rng=random.Random(99))
            t = svc.create_shuffle_tournament(ShuffleTournamentConfig(name="t", map_sequence=["de_dust2"]))
            svc.register_players(t.id, ids)
            svc.generate_round_matches(t.id, 1)
            sides.append([m.config['map_sides'] for m in svc.get_round_matches(t.id, 1)])

        assert sides[0] == sides[1]

    def test_first_round_starts_tournament(self, service, setup_tournament):
        tournament, _ = setup_tournament(players=10)
        assert tournament.status == TOURNAMENT_SETUP

        service.generate_round_matches(tournament.id, 1)

        started = service.get_tournament(tournament.id)
        assert started.status == TOURNAMENT_IN_PROGRESS
        assert started.started_at is not None


class TestRoundValidation:
    """Tests for rejected round requests."""

    @pytest.mark.parametrize("round_number", [0, -1, 3])
    def test_out_of_range(self, service, setup_tournament, round_number):
        tournament, _ = setup_tournament(players=10, maps=("de_mirage", "de_inferno"))

        with pytest.raises(InvalidRound) as exc_info:
            service.generate_round_matches(tournament.id, round_number)

        assert "Valid round numbers: 1-2" in str(exc_info.value)

    def test_not_enough_players(self, service, setup_tournament):
        tournament, _ = setup_tournament(players=9)

        with pytest.raises(InsufficientPlayers) as exc_info:
            service.generate_round_matches(tournament.id, 1)

        assert exc_info.value.missing == 1
        assert "Please register 1 more player(s)" in str(exc_info.value)
        assert service.storage.count_matches(tournament.id) == 0

    def test_round_already_generated(self, service, setup_tournament):
        tournament, _ = setup_tournament(players=10)
        service.generate_round_matches(tournament.id, 1)

        with pytest.raises(InvalidRound):
            service.generate_round_matches(tournament.id, 1)

    def test_rounds_must_be_contiguous(self, service, setup_tournament):
        tournament, _ = setup_tournament(players=10, maps=("a", "b", "c"))

        with pytest.raises(InvalidRound) as exc_info:
            service.generate_round_matches(tournament.id, 2)

        assert "before round 1" in str(exc_info.value)

    def test_unknown_tournament(self, service):
        with pytest.raises(TournamentNotFound):
            service.generate_round_matches(999, 1)


class FailingConfigGenerator(MatchConfigGenerator):
    """Fails on the second match of a round."""

    def __init__(self, storage):
        super().__init__(storage)
        self.calls = 0

    def generate(self, tournament, team1_id, team2_id, match_slug):
        self.calls += 1
        if self.calls == 2:
            raise RuntimeError("config service unavailable")
        return super().generate(tournament, team1_id, team2_id, match_slug)


class TestRoundAtomicity:
    """A failure while creating a round leaves nothing behind."""

    def test_failure_mid_round_rolls_back(self, db, make_players):
        generator = FailingConfigGenerator(TournamentStorage(db))
        service = ShuffleTournamentService(db, config_generator=generator)
        tournament = service.create_shuffle_tournament(
            ShuffleTournamentConfig(name="t", map_sequence=["de_mirage"])
        )
        service.register_players(tournament.id, make_players(20))

        with pytest.raises(RuntimeError):
            service.generate_round_matches(tournament.id, 1)

        assert generator.calls == 2
        assert service.storage.get_current_round(tournament.id) == 0
        assert db.query_one("SELECT COUNT(*) AS n FROM teams")['n'] == 0
        assert service.get_tournament(tournament.id).status == TOURNAMENT_SETUP


class TestRoundLimitCvars:
    """Tests for round limit server settings."""

    def test_first_to_13_without_overtime(self):
        assert build_round_limit_cvars("first_to_13", 24, "disabled") == {
            'mp_maxrounds': 24,
            'mp_overtime_enable': 0,
        }

    def test_max_rounds(self):
        assert build_round_limit_cvars("max_rounds", 30, "enabled") == {
            'mp_maxrounds': 30,
            'mp_overtime_enable': 0,
        }
