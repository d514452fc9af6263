import os
import sys

import pytest

# Ensure the backend root (containing the `imprompt` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from imprompt.config import Config, GameSettings
from imprompt.game.scheduler import ManualScheduler
from imprompt.game.store import RoomStore
from imprompt.imaging.generator import ImageGenerator, MockImageGenerator
from imprompt.realtime.events import RecordingTransport
from imprompt.realtime.gateway import Gateway
from imprompt.server import create_app


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    TRUST_PROXY_HEADERS = False
    IMAGE_PROVIDER = 'mock'
    MOCK_IMAGE_DELAY_SEC = 0


class FixedImageGenerator(ImageGenerator):
    provider = 'fixed'

    def __init__(self, url='https://img.test/fixed.png'):
        self.url = url
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        return self.url


class FailingImageGenerator(ImageGenerator):
    provider = 'failing'

    def __init__(self, exc):
        self.exc = exc

    def generate(self, prompt):
        raise self.exc


@pytest.fixture()
def settings():
    return GameSettings()


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def store():
    return RoomStore()


@pytest.fixture()
def gateway(store, scheduler, transport, settings):
    return Gateway(
        store=store,
        scheduler=scheduler,
        transport=transport,
        image_generator=MockImageGenerator(),
        stock_images=FixedImageGenerator('https://img.test/stock.png'),
        settings=settings,
        filler_prompt=lambda: 'cat',
    )


@pytest.fixture()
def flask_app():
    application, socketio = create_app(TestConfig)
    application.extensions['test_socketio'] = socketio
    yield application
    application.extensions['imprompt'].store.clear()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def socketio(flask_app):
    return flask_app.extensions['test_socketio']


@pytest.fixture()
def sio_factory(flask_app, socketio):
    clients = []

    def _make():
        test_client = socketio.test_client(flask_app)
        clients.append(test_client)
        return test_client

    yield _make
    for c in clients:
        try:
            if c.is_connected():
                c.disconnect()
        except Exception:
            pass
