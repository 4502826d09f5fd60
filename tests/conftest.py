"""
Pytest configuration and shared fixtures.

This file adds the project root to the Python path so that tests can import
from the domain, repositories, services and api packages.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from repositories.deal_repository import DealStore  # noqa: E402
from services.broadcast_service import RecordingBroadcastChannel  # noqa: E402
from services.deal_lifecycle_service import DealLifecycleService  # noqa: E402
from services.notification_service import NotificationDispatcher  # noqa: E402


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 1, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def store() -> DealStore:
    return DealStore()


@pytest.fixture
def broadcaster() -> RecordingBroadcastChannel:
    return RecordingBroadcastChannel()


@pytest.fixture
def dispatcher():
    disabled = NotificationDispatcher(None)
    yield disabled
    disabled.shutdown()


@pytest.fixture
def service(store, broadcaster, dispatcher, clock) -> DealLifecycleService:
    return DealLifecycleService(store, broadcaster, dispatcher, clock=clock)
