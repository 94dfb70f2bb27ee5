"""TDD: RateLimiter tests written FIRST"""
from src.rate_limit import RateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_allows_up_to_limit_then_reports_wait():
    clock = FakeClock()
    limiter = RateLimiter(max_per_window=2, window=60, clock=clock)

    assert limiter.check("1") == 0
    clock.now = 10
    assert limiter.check("1") == 0
    clock.now = 20
    assert limiter.check("1") == 40


def test_window_slides():
    clock = FakeClock()
    limiter = RateLimiter(max_per_window=1, window=60, clock=clock)
    limiter.check("1")

    clock.now = 60
    assert limiter.check("1") == 0


def test_chats_are_independent():
    limiter = RateLimiter(max_per_window=1, clock=FakeClock())
    limiter.check("1")

    assert limiter.check("2") == 0
