import os
import sys
import pytest

# Ensure the backend root (containing the `dicegame` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from dicegame import create_app, socketio
from dicegame.services.games.registry import SessionRegistry


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SOCKETIO_NAMESPACE = '/ws'
    CORS_ORIGINS = ['http://localhost:3000']
    LOG_LEVEL = 'DEBUG'
    ROOM_CODE_LENGTH = 6
    MIN_PLAYERS = 2
    DEFAULT_MAX_PLAYERS = 3
    DEFAULT_WAGER_AMOUNT = 1
    MIN_WAGER_AMOUNT = 0.01


class ScriptedRng:
    """Stands in for SystemRandom: hands out queued faces, then sixes."""

    def __init__(self, faces=None):
        self.faces = list(faces or [])

    def push(self, *faces):
        self.faces.extend(faces)

    def randint(self, a, b):
        value = self.faces.pop(0) if self.faces else 6
        assert a <= value <= b
        return value


@pytest.fixture()
def rng():
    return ScriptedRng()


@pytest.fixture()
def registry(rng):
    return SessionRegistry.from_config(
        {k: getattr(TestConfig, k) for k in dir(TestConfig) if k.isupper()}, rng=rng
    )


@pytest.fixture()
def flask_app(registry):
    application = create_app(TestConfig, registry=registry)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_sio(flask_app):
    clients = []

    def _make():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws'
        )
        test_client.get_received('/ws')  # flush connect ack
        clients.append(test_client)
        return test_client

    yield _make
    for c in clients:
        try:
            if c.is_connected('/ws'):
                c.disconnect(namespace='/ws')
        except Exception:
            pass
