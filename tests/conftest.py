from datetime import datetime, timedelta, timezone

import pytest

from srs_tracker.db import init_db
from srs_tracker.review_queue import ReviewQueue
from srs_tracker.session import ReviewSessionService
from srs_tracker.srs import SRSCalculator
from srs_tracker.store import SQLiteStore

T0 = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Clock that stays put until advanced."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_tracker.db")
    return db_path


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def calculator():
    return SRSCalculator()


@pytest.fixture
def store(tmp_db):
    init_db(tmp_db)
    return SQLiteStore(tmp_db)


@pytest.fixture
def queue(store, calculator, clock):
    return ReviewQueue(store, calculator, clock=clock)


@pytest.fixture
def sessions(store, queue, clock):
    return ReviewSessionService(store, queue, clock=clock)
