from datetime import datetime, timezone

import pytest

from ritmo.application.clock import ReviewClock
from ritmo.application.config import EngineConfig
from ritmo.application.events import EventDispatcher
from ritmo.application.factory import create_engine, new_learner_state

D0 = datetime(2024, 3, 10, 9, 30, tzinfo=timezone.utc)


class SteppingClock:
    """A settable time source for tests."""

    def __init__(self, start: datetime = D0):
        self.current = start

    def __call__(self) -> datetime:
        return self.current


@pytest.fixture
def d0():
    return D0


@pytest.fixture
def clock_source():
    return SteppingClock()


@pytest.fixture
def clock(clock_source):
    return ReviewClock(clock_source)


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def dispatcher():
    return EventDispatcher()


@pytest.fixture
def learner_state():
    return new_learner_state("learner-1")


@pytest.fixture
def engine(learner_state, config, clock_source):
    return create_engine(learner_state, config, now_fn=clock_source)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Isolate config lookups from the real home directory
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setattr(
        "ritmo.application.config.CONFIG_FILES",
        [home / ".config/ritmo/config.toml", home / ".ritmo.toml"],
    )
    return home
