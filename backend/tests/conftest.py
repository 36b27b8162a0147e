import os
import sys
import threading
import pytest

# Ensure the backend root (containing the `scavenger` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from scavenger import create_app, db, socketio, get_coordinator
from scavenger.items import Item
from scavenger.services.hunt import ClassificationResult, LeaderboardStore, RoundCoordinator, RoundTimers


NOTEBOOK = Item('Notebook', 'Lines, pages, and notes.')


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BCRYPT_LOG_ROUNDS = 4
    APP_PASSWORD = 'letmein'
    AZURE_VISION_ENDPOINT = ''
    AZURE_VISION_KEY = ''
    INTERMISSION_SEC = 10
    SKIP_GRACE_SEC = 3
    LEADERBOARD_WRITE_ATTEMPTS = 2
    LEADERBOARD_RETRY_DELAY_SEC = 0
    MAX_CONTENT_LENGTH = 1024 * 1024
    CLIENT_BUILD_PATH = os.path.join(CURRENT_DIR, 'no-client-build')
    ITEMS = [NOTEBOOK]


class RecordingChannel:
    """Broadcast channel that keeps every emitted event in order."""

    def __init__(self):
        self.events = []

    def emit(self, event, payload, to=None):
        self.events.append((event, payload, to))

    def names(self):
        return [name for name, _, _ in self.events]

    def of(self, event):
        return [payload for name, payload, _ in self.events if name == event]

    def clear(self):
        self.events.clear()


class ScriptedGateway:
    """Classifier stand-in returning a fixed verdict and counting calls."""

    def __init__(self, matched=False, confidence=0.0):
        self.result = ClassificationResult(matched, confidence)
        self.calls = []
        self._lock = threading.Lock()

    def classify(self, image_bytes, target_label):
        with self._lock:
            self.calls.append((image_bytes, target_label))
        return self.result


class FakeClock:
    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture()
def flask_app(tmp_path):
    class _Config(TestConfig):
        UPLOAD_FOLDER = str(tmp_path / 'uploads')

    application = create_app(_Config)
    with application.app_context():
        # Ensure models are imported so tables are created
        import scavenger.models  # noqa: F401
        db.create_all()
        get_coordinator(application).start_round()
        yield application
        get_coordinator(application).reset()
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def app_coordinator(flask_app):
    return get_coordinator(flask_app)


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
    yield test_client
    try:
        test_client.disconnect()
    except Exception:
        pass


@pytest.fixture()
def channel():
    return RecordingChannel()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def make_coordinator(flask_app, channel, clock):
    """Build a standalone coordinator wired to recording collaborators."""
    built = []

    def _make(gateway=None, items=None, **kwargs):
        coordinator = RoundCoordinator(
            gateway=gateway or ScriptedGateway(),
            leaderboard=LeaderboardStore(write_attempts=2, retry_delay=0),
            channel=channel,
            timers=RoundTimers(),
            items=items or [NOTEBOOK],
            clock=clock,
            **kwargs
        )
        built.append(coordinator)
        return coordinator

    yield _make
    for coordinator in built:
        coordinator.reset()
