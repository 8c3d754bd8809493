import pytest
from fastapi.testclient import TestClient

from scoreboard.broadcaster import Broadcaster
from scoreboard.commands import MatchController
from scoreboard.config import Config
from scoreboard.state import StateStore
from scoreboard.timer import TimerDriver
from scoreboard.web import create_app


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture()
def fake_clock():
    return FakeClock()


@pytest.fixture()
def store(fake_clock):
    return StateStore(clock=fake_clock)


@pytest.fixture()
def broadcaster(store):
    return Broadcaster(store, queue_size=16)


@pytest.fixture()
def controller(store, broadcaster):
    return MatchController(store, broadcaster)


@pytest.fixture()
def driver(store, broadcaster):
    return TimerDriver(store, broadcaster, interval=0.01)


@pytest.fixture()
def published(broadcaster, store, monkeypatch):
    """Record every publish as the snapshot it would have sent."""
    snapshots = []

    def record():
        snapshots.append(store.read())
        return 0

    monkeypatch.setattr(broadcaster, "publish", record)
    return snapshots


@pytest.fixture()
def app(tmp_path, store):
    class TestConfig(Config):
        SAVES_DIR = str(tmp_path / "saved")
        STATIC_DIR = str(tmp_path / "static")
        CONTROL_DIR = str(tmp_path / "control")
        # Ticks are driven by hand in tests
        TIMER_INTERVAL_SEC = 3600

    return create_app(TestConfig, store=store)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client
