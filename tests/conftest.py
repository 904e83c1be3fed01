"""
Shared fixtures: a fresh database per test and helpers to populate it.
"""

import random
import tempfile

import pytest

from cs2shuffle.storage.database import Database
from cs2shuffle.tournament.models import ShuffleTournamentConfig
from cs2shuffle.tournament.service import ShuffleTournamentService


@pytest.fixture
def db():
    """Database in a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Database(data_dir=tmpdir)


@pytest.fixture
def service(db):
    """Service with seeded side selection."""
    return ShuffleTournamentService(db, rng=random.Random(1234))


@pytest.fixture
def make_players(service):
    """Import ``count`` players with spread-out skill scores; returns their ids."""
    def _make(count, base_elo=2600, step=75, prefix="7656119800000"):
        players = [
            {'id': f"{prefix}{i:04d}", 'name': f"player{i:02d}", 'elo': base_elo + i * step}
            for i in range(count)
        ]
        service.import_players(players)
        return [p['id'] for p in players]
    return _make


@pytest.fixture
def setup_tournament(service, make_players):
    """Create a tournament and register ``players`` fresh players to it."""
    def _setup(players=10, maps=("de_mirage", "de_inferno"), team_size=5, **config):
        ids = make_players(players)
        tournament = service.create_shuffle_tournament(ShuffleTournamentConfig(
            name="Friday Shuffle",
            map_sequence=list(maps),
            team_size=team_size,
            **config
        ))
        service.register_players(tournament.id, ids)
        return tournament, ids
    return _setup


@pytest.fixture
def finish_round(service):
    """
    Complete every open match of a round.

    With ``record`` the winner is recorded (stats and ratings change);
    without it only the match status moves to completed.
    """
    def _finish(tournament_id, round_number, winner="team1", record=True):
        for match in service.get_round_matches(tournament_id, round_number):
            if match.is_completed:
                continue
            if record:
                service.record_match_result(tournament_id, match.slug, winner)
            else:
                service.update_match_status(tournament_id, match.slug, "completed")
    return _finish
