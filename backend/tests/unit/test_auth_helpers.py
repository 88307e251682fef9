import pytest

from app.core.security import InvalidTokenError, create_access_token, decode_access_token
from app.services.rate_limit import SimpleRateLimiter

SECRET = "unit-test-secret-that-is-long-enough-1234"


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_limiter_blocks_then_recovers_after_window():
    clock = FakeClock()
    limiter = SimpleRateLimiter(max_events=2, window_seconds=60, clock=clock)
    assert limiter.allow("a")
    clock.now += 10
    assert limiter.allow("a")
    assert not limiter.allow("a")
    assert limiter.allow("b")
    assert limiter.retry_after("a") == 50

    clock.now += 50
    assert limiter.retry_after("a") == 0
    assert limiter.allow("a")


def test_token_round_trip():
    token = create_access_token(subject="42", secret=SECRET, alg="HS256", expires_minutes=5)
    assert decode_access_token(token, secret=SECRET, alg="HS256") == 42


@pytest.mark.parametrize(
    "token",
    [
        "not-a-jwt",
        create_access_token(subject="42", secret="another-secret-of-reasonable-length", alg="HS256", expires_minutes=5),
        create_access_token(subject="42", secret=SECRET, alg="HS256", expires_minutes=-1),
        create_access_token(subject="owner", secret=SECRET, alg="HS256", expires_minutes=5),
    ],
)
def test_bad_tokens_are_rejected(token):
    with pytest.raises(InvalidTokenError):
        decode_access_token(token, secret=SECRET, alg="HS256")


def test_limiter_forgets_idle_callers():
    clock = FakeClock()
    limiter = SimpleRateLimiter(max_events=3, window_seconds=60, clock=clock)
    for caller in ("a@clinic.com", "b@clinic.com", "10.0.0.7"):
        assert limiter.allow(caller)
    assert len(limiter) == 3

    clock.now += 61
    assert limiter.retry_after("a@clinic.com") == 0
    assert limiter.allow("b@clinic.com")
    assert len(limiter) == 2
    assert limiter.retry_after("10.0.0.7") == 0
    assert len(limiter) == 1
