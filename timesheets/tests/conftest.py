import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from uuid import UUID

_test_db_path = Path(tempfile.gettempdir()) / "timesheets_test.db"
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", f"sqlite:///{_test_db_path}")
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

import pytest

from timesheets import database
from timesheets.models import timecard_record  # noqa: F401


class TickingClock:
    """Deterministic clock: each call advances by one second."""

    def __init__(self, start: datetime = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value


class FrozenClock:
    def __init__(self, value: datetime = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)):
        self.value = value

    def __call__(self) -> datetime:
        return self.value


class SequentialIds:
    def __init__(self):
        self.counter = 0

    def __call__(self) -> UUID:
        self.counter += 1
        return UUID(int=self.counter)


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def frozen_clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def ids() -> SequentialIds:
    return SequentialIds()


@pytest.fixture(scope="session", autouse=True)
def _prepare_test_database():
    database.configure_database()
    database.Base.metadata.drop_all(database.engine)
    database.Base.metadata.create_all(database.engine)
    yield
    database.Base.metadata.drop_all(database.engine)


def _empty_tables() -> None:
    with database.engine.begin() as conn:
        for table in reversed(database.Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture(scope="function", autouse=True)
def _truncate_tables_between_tests():
    _empty_tables()
    yield
    _empty_tables()
