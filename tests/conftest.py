"""
Token Lifecycle - Pytest Configuration
Fixtures partagées pour tous les tests.
"""

import pytest

from src.tokens.interfaces import ClaimSet


TEST_NOW = 1_700_000_000
TEST_SECRET = "test-secret-with-enough-entropy-0123456789"


class FrozenClock:
    """Horloge figée, avançable à la main."""

    def __init__(self, now: int = TEST_NOW) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FrozenClock:
    """Horloge figée à TEST_NOW."""
    return FrozenClock()


@pytest.fixture
def now(clock: FrozenClock) -> int:
    return clock.now


@pytest.fixture
def secret() -> str:
    return TEST_SECRET


@pytest.fixture
def make_claims(now: int):
    """Fabrique de ClaimSet de test (sub=1, jti=foo, exp=now+3600 par défaut)."""

    def _make(**overrides) -> ClaimSet:
        values = {
            "sub": 1,
            "iss": "http://example.com",
            "exp": now + 3600,
            "nbf": now,
            "iat": now,
            "jti": "foo",
        }
        values.update(overrides)
        return ClaimSet.from_dict({k: v for k, v in values.items() if v is not None})

    return _make
