import pytest
import requests

from imprompt.game.errors import GenerationFailure
from imprompt.game.prompts import STOCK_IMAGES
from imprompt.imaging.costs import CostTracker
from imprompt.imaging.generator import (
    MockImageGenerator,
    StockImageGenerator,
    TogetherImageGenerator,
    TrackedImageGenerator,
    build_image_generator,
)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=''):
        self.status_code = status_code
        self.ok = status_code < 400
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError('no json')
        return self._payload


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.exc is not None:
            raise self.exc
        return self.response


def _together(session):
    return TogetherImageGenerator('key', 'https://api.test/images', 'model-x', timeout=5, session=session)


def test_together_returns_first_url():
    session = FakeSession(FakeResponse(payload={'data': [{'url': 'https://img.test/a.png'}]}))
    assert _together(session).generate('red car') == 'https://img.test/a.png'

    url, kwargs = session.calls[0]
    assert url == 'https://api.test/images'
    assert kwargs['headers']['Authorization'] == 'Bearer key'
    assert kwargs['json']['prompt'] == 'red car'
    assert kwargs['json']['model'] == 'model-x'
    assert kwargs['timeout'] == 5


@pytest.mark.parametrize('session', [
    FakeSession(FakeResponse(status_code=500, text='boom')),
    FakeSession(FakeResponse(payload={'data': []})),
    FakeSession(FakeResponse(payload=None)),
    FakeSession(exc=requests.ConnectionError('down')),
])
def test_together_failures_become_generation_failures(session):
    with pytest.raises(GenerationFailure):
        _together(session).generate('red car')


def test_mock_generator_is_stable_per_prompt():
    gen = MockImageGenerator()
    assert gen.generate('cat') == gen.generate('cat')
    assert gen.generate('cat') != gen.generate('dog')


def test_stock_generator_picks_known_image():
    assert StockImageGenerator().generate('anything') in STOCK_IMAGES


def test_tracked_generator_counts_successes_only():
    tracker = CostTracker()
    gen = TrackedImageGenerator(_together(FakeSession(FakeResponse(payload={'data': [{'url': 'u'}]}))), tracker)
    gen.generate('a')
    gen.generate('b')

    failing = TrackedImageGenerator(_together(FakeSession(exc=requests.Timeout('slow'))), tracker)
    with pytest.raises(GenerationFailure):
        failing.generate('c')

    stats = tracker.usage_stats()
    assert stats['totalImages'] == 2
    assert stats['totalCost'] == '0.0160'
    together = next(row for row in stats['breakdown'] if row['provider'] == 'together')
    assert together['percentage'] == '100.0'

    assert tracker.total_cost() == pytest.approx(0.016)


def test_build_image_generator():
    assert build_image_generator({'IMAGE_PROVIDER': 'mock'}).provider == 'mock'
    assert build_image_generator({'IMAGE_PROVIDER': 'Stock'}).provider == 'stock'
    tracked = build_image_generator({'IMAGE_PROVIDER': 'together'}, tracker=CostTracker())
    assert isinstance(tracked, TrackedImageGenerator)
    assert tracked.provider == 'together'

    with pytest.raises(ValueError):
        build_image_generator({'IMAGE_PROVIDER': 'crayons'})
