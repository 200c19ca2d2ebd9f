import random

import pytest

from guess_the_word.engine import GameEngine


class FakeCountdown:
    """start/cancel を記録し、tick/finish をテストから手動で送るカウントダウン"""

    def __init__(self):
        self.on_tick = None
        self.on_finish = None
        self.start_calls = 0
        self.cancel_calls = 0

    def start(self, on_tick, on_finish):
        self.start_calls += 1
        self.on_tick = on_tick
        self.on_finish = on_finish

    def cancel(self):
        self.cancel_calls += 1

    @property
    def cancelled(self):
        return self.cancel_calls > 0

    def tick(self, seconds):
        if not self.cancelled:
            self.on_tick(seconds)

    def finish(self):
        if not self.cancelled:
            self.on_finish()


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture()
def countdown():
    return FakeCountdown()


@pytest.fixture()
def clock():
    return FakeClock(100.0)


@pytest.fixture()
def engine(countdown):
    return GameEngine(countdown, rng=random.Random(1234))
