"""
Pytest configuration and shared fixtures.

Provides isolated identifier contexts, common configs, and async
collaborator fakes used across the test suite.
"""

import pytest

from sigid.core.config import clear_cache
from sigid.core.config.models import IdentifierConfig
from sigid.core.ids import IdentifierContext, IdentifierGenerator, reset_default_context
from sigid.core.security import EntropyPool

# ==============================================================================
# Isolation
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_state(monkeypatch, tmp_path):
    """
    Keep tests from sharing process-wide state or reading real config.

    Resets the default context and config cache, points XDG_CONFIG_HOME at a
    temp directory, and clears SIGID_* variables.
    """
    for name in (
        "SIGID_SECRET",
        "SIGID_PEPPER",
        "SIGID_SALT",
        "SIGID_LENGTH",
        "SIGID_ALGORITHM",
        "SIGID_MODE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    reset_default_context()
    clear_cache()
    yield
    reset_default_context()
    clear_cache()


# ==============================================================================
# Context Fixtures
# ==============================================================================


@pytest.fixture
def context():
    """A fresh context with a small entropy pool."""
    return IdentifierContext(entropy_pool=EntropyPool(min_size=2, max_size=4))


@pytest.fixture
def generator(context):
    """A generator bound to the fresh context."""
    return IdentifierGenerator(context)


# ==============================================================================
# Config Fixtures
# ==============================================================================


@pytest.fixture
def checksum_config():
    """20 characters with two 2-char checksum blocks at the end."""
    return IdentifierConfig(length=20, checksum=True, checksum_count=2, checksum_length=2)


@pytest.fixture
def metadata_config():
    """Config embedding every fixed-width metadata feature."""
    return IdentifierConfig(
        length=80,
        secret="s3cret",
        checksum=True,
        checksum_length=4,
        security={
            "timestamp_embed": True,
            "counter_embed": True,
            "embed_expiry": True,
            "ttl": 3600,
            "embed_geo": True,
            "geo_region": "EU-W",
            "device_binding": True,
            "device_id": "device-uuid-12345",
        },
    )


# ==============================================================================
# Async Collaborator Fakes
# ==============================================================================


class AsyncCollisionStore:
    """Collision store whose methods are coroutines."""

    def __init__(self, seen=None):
        self.seen = set(seen or ())
        self.has_calls = 0

    async def has(self, identifier):
        self.has_calls += 1
        return identifier in self.seen

    async def add(self, identifier):
        self.seen.add(identifier)

    async def remove(self, identifier):
        self.seen.discard(identifier)


class AsyncRevocationList:
    """Revocation list whose methods are coroutines."""

    def __init__(self):
        self.revoked = set()

    async def is_revoked(self, identifier):
        return identifier in self.revoked

    async def revoke(self, identifier):
        self.revoked.add(identifier)

    async def unrevoke(self, identifier):
        self.revoked.discard(identifier)


class AsyncRateLimiter:
    """Rate limiter that allows a fixed number of calls."""

    def __init__(self, allowed=1):
        self.remaining = allowed

    async def check(self, identifier, max_requests, window_ms):
        self.remaining -= 1
        return self.remaining >= 0


@pytest.fixture
def async_collision_store():
    return AsyncCollisionStore()


@pytest.fixture
def async_revocation_list():
    return AsyncRevocationList()


@pytest.fixture
def async_rate_limiter():
    return AsyncRateLimiter()
