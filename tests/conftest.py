import os
from datetime import date, timedelta

import pytest

os.environ.setdefault("FLASK_ENV", "testing")

from config.settings import TestingConfig
from src.forecasting import TimeSeries
from web.app import create_app


class FixedRandom:
    """Random source that always returns the same draw"""

    def __init__(self, value):
        self.value = value
        self.calls = 0

    def random(self):
        self.calls += 1
        return self.value


def make_series(counts, start=date(2024, 1, 1)):
    return TimeSeries.from_pairs(
        (start + timedelta(days=i), c) for i, c in enumerate(counts)
    )


@pytest.fixture
def fixed_random():
    return FixedRandom


@pytest.fixture
def series_factory():
    return make_series


@pytest.fixture
def app():
    return create_app(TestingConfig)


@pytest.fixture
def client(app):
    return app.test_client()
