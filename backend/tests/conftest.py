import os
import sys
import pytest

# Ensure the backend root (containing the `sudoku_arena` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from sudoku_arena import create_app, socketio
from sudoku_arena.models import Puzzle
from sudoku_arena.services.rooms.registry import RoomRegistry


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')


def solved_grid():
    # Shifted-row pattern: every row, column and box holds 1..9 exactly once
    return tuple((r * 3 + r // 3 + c) % 9 + 1 for r in range(9) for c in range(9))


def build_puzzle(erased):
    solution = solved_grid()
    erased = set(erased)
    initial = tuple(0 if i in erased else v for i, v in enumerate(solution))
    return Puzzle(initial=initial, solution=solution)


# Five holes, enough to play a short territory round by hand
ERASED = (0, 5, 10, 40, 80)


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture()
def puzzle():
    return build_puzzle(ERASED)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def registry(puzzle, clock):
    return RoomRegistry(puzzle_source=lambda difficulty: puzzle, clock=clock)


@pytest.fixture()
def flask_app(puzzle):
    application = create_app(TestConfig)
    application.extensions['room_registry'].puzzle_source = lambda difficulty: puzzle
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def make():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws'
        )
        test_client.get_received('/ws')  # drop the 'connected' greeting
        clients.append(test_client)
        return test_client

    yield make
    for test_client in clients:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except Exception:
            pass


@pytest.fixture()
def sio_client(sio_factory):
    return sio_factory()
