"""
Shared pytest fixtures for club analytics tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os
import yaml
from datetime import datetime

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from club_analytics.models import Member, Match
from club_analytics.cache import EntityCache
from club_analytics.match_counts import MatchCountIndex

NOW = datetime(2026, 3, 15, 14, 30)


class FakeClock:
    """Settable stand-in for time.time."""

    def __init__(self, start=1_000_000.0):
        self.value = start

    def __call__(self):
        return self.value

    def advance(self, seconds):
        self.value += seconds


def make_match(match_id, p1, p2, when=None, updated=None):
    return Match(id=match_id, player1_id=p1, player2_id=p2,
                 created_at=when or NOW.replace(hour=10), updated_at=updated)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def round_robin_matches():
    """Three matches between players 1, 2 and 3, all played today."""
    return [
        make_match(1, 1, 2),
        make_match(2, 2, 3),
        make_match(3, 1, 3),
    ]


@pytest.fixture
def matches_cache(clock, round_robin_matches):
    cache = EntityCache('matches', clock=clock)
    cache.set_all(round_robin_matches)
    return cache


@pytest.fixture
def index(matches_cache):
    return MatchCountIndex(matches_cache, now=lambda: NOW)


@pytest.fixture
def members():
    return [
        Member(1, 'Ana', 'Ruiz', rating=1800),
        Member(2, 'Ben', 'Ode', rating=1650),
        Member(3, 'Cai', 'Lin', rating=1650),
        Member(4, 'Dee', 'Park', rating=None),
        Member(5, 'Eli', 'Moss', rating=1500),
    ]


@pytest.fixture
def data_dir(tmp_path, monkeypatch, members, round_robin_matches):
    """Temporary snapshot directory wired into the Flask app."""
    import app as app_module

    (tmp_path / 'members.yaml').write_text(
        yaml.dump([m.to_dict() for m in members], default_flow_style=False))
    (tmp_path / 'matches.yaml').write_text(
        yaml.dump([m.to_dict() for m in round_robin_matches], default_flow_style=False))

    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path))
    monkeypatch.setattr(app_module, 'SETTINGS_FILE', str(tmp_path / 'settings.yaml'))
    app_module.reset_store()
    yield tmp_path
    app_module.reset_store()


@pytest.fixture
def client(data_dir):
    """Create a test client backed by the temporary snapshots."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client
