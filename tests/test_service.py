"""
Tests for tournament creation, registration and the service facade.
"""

import pytest

from cs2shuffle.exceptions import (
    EmptyInput,
    InvalidTournamentConfig,
    TournamentNotFound,
    TournamentStateError,
)
from cs2shuffle.tournament.models import ShuffleTournamentConfig


class TestTournamentConfig:
    """Tests for config validation messages."""

    def test_valid_config(self):
        ShuffleTournamentConfig(name="Cup", map_sequence=["de_mirage"]).validate()

    def test_name_required(self):
        with pytest.raises(InvalidTournamentConfig, match="Tournament name is required"):
            ShuffleTournamentConfig(name="  ", map_sequence=["de_mirage"]).validate()

    def test_maps_required(self):
        with pytest.raises(InvalidTournamentConfig, match="At least one map must be selected"):
            ShuffleTournamentConfig(name="Cup", map_sequence=[]).validate()

    @pytest.mark.parametrize("max_rounds", [None, 0, -4])
    def test_max_rounds_required_for_max_rounds_policy(self, max_rounds):
        config = ShuffleTournamentConfig(name="Cup", map_sequence=["de_mirage"],
                                         round_limit_type="max_rounds", max_rounds=max_rounds)
        with pytest.raises(InvalidTournamentConfig, match="minimum: 1"):
            config.validate()

    def test_max_rounds_ignored_for_first_to_13(self):
        ShuffleTournamentConfig(name="Cup", map_sequence=["de_mirage"], max_rounds=0).validate()

    def test_team_size(self):
        with pytest.raises(InvalidTournamentConfig, match="team size"):
            ShuffleTournamentConfig(name="Cup", map_sequence=["de_mirage"], team_size=0).validate()

    def test_unknown_round_limit(self):
        with pytest.raises(InvalidTournamentConfig):
            ShuffleTournamentConfig(name="Cup", map_sequence=["a"], round_limit_type="bo3").validate()

    def test_unknown_overtime_mode(self):
        with pytest.raises(InvalidTournamentConfig):
            ShuffleTournamentConfig(name="Cup", map_sequence=["a"], overtime_mode="sudden_death").validate()

    def test_invalid_config_is_value_error(self):
        with pytest.raises(ValueError):
            ShuffleTournamentConfig(name="", map_sequence=["a"]).validate()


class TestCreateTournament:
    """Tests for tournament creation."""

    def test_created_in_setup(self, service):
        tournament = service.create_shuffle_tournament(
            ShuffleTournamentConfig(name="Cup", map_sequence=["de_mirage", "de_nuke", "de_anubis"])
        )

        assert tournament.status == "setup"
        assert tournament.total_rounds == 3
        assert tournament.map_for_round(2) == "de_nuke"
        assert tournament.started_at is None

    def test_replaces_previous_tournament(self, service, setup_tournament):
        old, _ = setup_tournament(players=10)
        service.advance_to_next_round(old.id)

        new = service.create_shuffle_tournament(ShuffleTournamentConfig(name="Next", map_sequence=["a"]))

        with pytest.raises(TournamentNotFound):
            service.get_tournament(old.id)
        assert service.storage.count_matches(old.id) == 0
        assert service.storage.count_registrations(old.id) == 0
        assert [t.id for t in service.list_tournaments()] == [new.id]

    def test_keep_existing(self, service):
        first = service.create_shuffle_tournament(ShuffleTournamentConfig(name="A", map_sequence=["a"]))
        second = service.create_shuffle_tournament(
            ShuffleTournamentConfig(name="B", map_sequence=["b"]), replace_existing=False
        )

        assert service.get_tournament(first.id).name == "A"
        assert service.get_tournament(second.id).name == "B"

    def test_invalid_config_creates_nothing(self, service):
        with pytest.raises(InvalidTournamentConfig):
            service.create_shuffle_tournament(ShuffleTournamentConfig(name="", map_sequence=["a"]))
        assert service.list_tournaments() == []


class TestRegistration:
    """Tests for bulk registration with per-item outcomes."""

    @pytest.fixture
    def tournament(self, service):
        return service.create_shuffle_tournament(ShuffleTournamentConfig(name="Cup", map_sequence=["a"]))

    def test_register_reports_each_item(self, service, tournament, make_players):
        ids = make_players(3)
        service.register_players(tournament.id, [ids[0]])

        result = service.register_players(tournament.id, [ids[0], ids[1], "unknown", ids[2]])

        statuses = {o.player_id: (o.success, o.status, o.error) for o in result.outcomes}
        assert statuses[ids[0]] == (True, "already_registered", None)
        assert statuses[ids[1]] == (True, "registered", None)
        assert statuses["unknown"] == (False, "failed", "Player not found")
        assert result.success_count == 3
        assert result.registered_count == 2
        assert result.error_count == 1
        assert [p.id for p in service.get_registered_players(tournament.id)] == ids

    def test_duplicate_ids_collapsed(self, service, tournament, make_players):
        ids = make_players(2)
        result = service.register_players(tournament.id, [ids[0], ids[0], ids[1]])

        assert len(result.outcomes) == 2

    def test_empty_list(self, service, tournament):
        with pytest.raises(EmptyInput, match="No players provided"):
            service.register_players(tournament.id, [])

    def test_unknown_tournament(self, service):
        with pytest.raises(TournamentNotFound):
            service.register_players(404, ["x"])

    def test_only_in_setup(self, service, setup_tournament, make_players):
        tournament, _ = setup_tournament(players=10)
        service.advance_to_next_round(tournament.id)

        with pytest.raises(TournamentStateError) as exc_info:
            service.register_players(tournament.id, make_players(1, prefix="9999"))

        assert '"in_progress" status' in str(exc_info.value)
        assert '"setup" status' in str(exc_info.value)

    def test_unregister(self, service, tournament, make_players):
        ids = make_players(2)
        service.register_players(tournament.id, ids)

        result = service.unregister_players(tournament.id, [ids[0], "never-registered"])

        assert result.success_count == 1
        assert result.errors[0].error == "Player not registered"
        assert [p.id for p in service.get_registered_players(tournament.id)] == [ids[1]]

    def test_set_registered_players(self, service, tournament, make_players):
        ids = make_players(4)
        service.register_players(tournament.id, ids[:3])

        result = service.set_registered_players(tournament.id, [ids[1], ids[3], "ghost"])

        registered = {p.id for p in service.get_registered_players(tournament.id)}
        assert registered == {ids[1], ids[3]}
        statuses = {o.player_id: o.status for o in result.outcomes}
        assert statuses[ids[0]] == "unregistered"
        assert statuses[ids[2]] == "unregistered"
        assert statuses[ids[3]] == "registered"
        assert statuses["ghost"] == "failed"
        assert ids[1] not in statuses

    def test_set_registered_players_counts_adds_and_removals(self, service, tournament, make_players):
        ids = make_players(5)
        service.register_players(tournament.id, ids[:3])

        result = service.set_registered_players(tournament.id, ids[3:])

        assert result.registered_count == 2
        assert result.unregistered_count == 3
        assert result.error_count == 0
        data = result.to_dict()
        assert (data["registered_count"], data["unregistered_count"]) == (2, 3)

    def test_unregister_counts_removals_only(self, service, tournament, make_players):
        ids = make_players(3)
        service.register_players(tournament.id, ids)

        result = service.unregister_players(tournament.id, ids[:2])

        assert result.unregistered_count == 2
        assert result.registered_count == 0

    def test_set_registered_players_to_empty(self, service, tournament, make_players):
        ids = make_players(2)
        service.register_players(tournament.id, ids)

        service.set_registered_players(tournament.id, [])

        assert service.get_registered_players(tournament.id) == []

    def test_registration_result_dict(self, service, tournament, make_players):
        ids = make_players(1)
        data = service.register_players(tournament.id, ids + ["nope"]).to_dict()

        assert data['registered_count'] == 1
        assert data['unregistered_count'] == 0
        assert data['error_count'] == 1
        assert data['outcomes'][1]['error'] == "Player not found"


class TestPreviewBalance:
    """Tests for balancing without persistence."""

    def test_preview_does_not_persist(self, service, make_players):
        ids = make_players(10)

        result = service.preview_balance(ids, 5)

        assert len(result.teams) == 2
        assert service.db.query_one("SELECT COUNT(*) AS n FROM matches")['n'] == 0
        assert service.db.query_one("SELECT COUNT(*) AS n FROM teams")['n'] == 0
