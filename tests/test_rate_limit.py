from fastapi.testclient import TestClient

from streakstats.core.middleware import SlidingWindowLimiter
from streakstats.engine.streaks import StreakStats
from streakstats.main import create_app


def test_streak_endpoint_rate_limited_after_threshold(monkeypatch) -> None:
    """Rate limiter blocks repeated requests to /streak/* routes."""

    monkeypatch.setenv("RATE_LIMIT_PER_MINUTE", "1")
    monkeypatch.setenv("RATE_LIMIT_WINDOW_SECONDS", "60")
    monkeypatch.setattr(
        "streakstats.api.routes.streak.get_streak_stats",
        lambda **kwargs: StreakStats(),
    )
    app = create_app()
    client = TestClient(app)

    headers = {"X-Forwarded-For": "203.0.113.10"}

    first = client.get("/streak/octocat", headers=headers)
    second = client.get("/streak/octocat/badge", headers=headers)

    assert first.status_code == 200
    assert second.status_code == 429
    assert second.headers["Retry-After"]


def test_clients_are_limited_independently(monkeypatch) -> None:
    """Each forwarded client address gets its own window."""

    monkeypatch.setenv("RATE_LIMIT_PER_MINUTE", "1")
    monkeypatch.setattr(
        "streakstats.api.routes.streak.get_streak_stats",
        lambda **kwargs: StreakStats(),
    )
    client = TestClient(create_app())

    first = client.get("/streak/octocat", headers={"X-Forwarded-For": "203.0.113.10"})
    second = client.get("/streak/octocat", headers={"X-Forwarded-For": "203.0.113.11"})

    assert first.status_code == 200
    assert second.status_code == 200


def test_non_streak_routes_not_rate_limited(monkeypatch) -> None:
    """Rate limiter does not affect routes outside /streak/."""

    monkeypatch.setenv("RATE_LIMIT_PER_MINUTE", "1")
    monkeypatch.setenv("RATE_LIMIT_WINDOW_SECONDS", "60")
    app = create_app()
    client = TestClient(app)

    first = client.get("/health/live")
    second = client.get("/health/live")

    assert first.status_code == 200
    assert second.status_code == 200


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_limiter_reports_seconds_until_next_slot() -> None:
    clock = FakeClock()
    limiter = SlidingWindowLimiter(max_requests=2, window_seconds=60, clock=clock)

    assert limiter.acquire("203.0.113.10") is None
    clock.now += 15
    assert limiter.acquire("203.0.113.10") is None
    clock.now += 5

    assert limiter.acquire("203.0.113.10") == 40


def test_limiter_allows_again_after_window() -> None:
    clock = FakeClock()
    limiter = SlidingWindowLimiter(max_requests=1, window_seconds=60, clock=clock)

    assert limiter.acquire("203.0.113.10") is None
    assert limiter.acquire("203.0.113.10") is not None
    clock.now += 61

    assert limiter.acquire("203.0.113.10") is None


def test_limiter_forgets_idle_clients() -> None:
    """Buckets for clients that stop calling are dropped after a window."""

    clock = FakeClock()
    limiter = SlidingWindowLimiter(max_requests=5, window_seconds=60, clock=clock)

    for index in range(100):
        limiter.acquire(f"198.51.100.{index}")
    assert len(limiter) == 100

    clock.now += 61
    limiter.acquire("203.0.113.10")

    assert len(limiter) == 1
