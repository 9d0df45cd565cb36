from datetime import datetime, timedelta, timezone

import pytest

from vocab_tutor.store import CardStore

T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Injectable clock that only moves when told to."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, days: float = 0, **kwargs) -> None:
        self.now += timedelta(days=days, **kwargs)


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_vocab.db")
    return db_path


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(tmp_db):
    with CardStore(tmp_db) as s:
        yield s
