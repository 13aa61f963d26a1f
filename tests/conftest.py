"""
Shared fixtures for the tuido tests.
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from tuido.app import App
from tuido.models import Task
from tuido.storage import TaskStore

BASE_TIME = datetime(2024, 6, 15, 9, 30, tzinfo=timezone.utc)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start=BASE_TIME):
        self.current = start

    def __call__(self):
        return self.current

    def advance(self, **kwargs):
        self.current += timedelta(**kwargs)


def make_task(id, title=None, due=None, created_offset=0, **kwargs):
    return Task(
        id=id,
        title=title or f"task {id}",
        created_at=BASE_TIME + timedelta(minutes=created_offset),
        due_date=date.fromisoformat(due) if due else None,
        **kwargs,
    )


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def store(tmp_path):
    return TaskStore(tmp_path / "data" / "todos.json")


@pytest.fixture
def make_app(store, clock):
    """Build an App over ``store`` after seeding it with ``tasks``."""
    def _make(tasks=()):
        if tasks:
            store.write(list(tasks))
        return App(store, clock=clock)
    return _make
