"""
Tests for environment-driven settings.
"""

import pytest
from pydantic import ValidationError

from cs2shuffle.config import ShuffleSettings
from cs2shuffle.tournament.service import ShuffleTournamentService


class TestShuffleSettings:
    """Tests for defaults and SHUFFLE_ overrides."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SHUFFLE_DEFAULT_TEAM_SIZE", raising=False)
        settings = ShuffleSettings(_env_file=None)

        assert settings.default_team_size == 5
        assert settings.optimization_passes == 10
        assert settings.db_filename == "shuffle.db"
        assert (settings.host, settings.port) == ("127.0.0.1", 8000)

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("SHUFFLE_DEFAULT_TEAM_SIZE", "2")
        monkeypatch.setenv("SHUFFLE_LOG_LEVEL", "DEBUG")

        settings = ShuffleSettings(_env_file=None)

        assert settings.default_team_size == 2
        assert settings.log_level == "DEBUG"

    def test_invalid_value(self, monkeypatch):
        monkeypatch.setenv("SHUFFLE_OPTIMIZATION_PASSES", "-1")

        with pytest.raises(ValidationError):
            ShuffleSettings(_env_file=None)

    def test_service_from_settings(self, tmp_path):
        settings = ShuffleSettings(_env_file=None, data_dir=str(tmp_path), optimization_passes=3)

        service = ShuffleTournamentService.from_settings(settings)

        assert service.db.db_path == tmp_path / "shuffle.db"
        assert service.balancer.max_passes == 3
