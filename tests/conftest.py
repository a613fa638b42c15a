"""Shared pytest fixtures and configuration."""

import os
from datetime import datetime, timedelta, timezone

import pytest
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("ADMIN_API_TOKEN", "test-admin-token")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from src.services.number_allocator import NumberAllocator  # noqa: E402
from src.services.tenant_lifecycle import TenantLifecycle  # noqa: E402
from tests.utils.memory_store import InMemoryInventoryStore  # noqa: E402


class ManualClock:
    """Controllable allocator clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return ManualClock(datetime(2024, 12, 9, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def memory_store():
    """Empty in-memory inventory store."""
    return InMemoryInventoryStore()


@pytest.fixture
def allocator(memory_store, clock):
    """Allocator over the in-memory store with a 30-day cooldown."""
    return NumberAllocator(
        memory_store,
        cooldown_period=timedelta(days=30),
        claim_ttl=timedelta(minutes=5),
        max_acquire_attempts=5,
        candidate_batch_size=5,
        clock=clock,
    )


@pytest.fixture
def lifecycle(allocator):
    return TenantLifecycle(allocator)


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time


@pytest.fixture(scope="function")
def reset_environment(monkeypatch):
    """Reset environment variables for each test."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)
