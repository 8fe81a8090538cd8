"""Shared pytest fixtures for Tree Timers tests."""

import sys
import pytest

from PyQt6.QtCore import QCoreApplication

from treetimers.database.db import configure_engine, init_db
from treetimers.database.store import KeyValueStore
from treetimers.timer.repository import TimerRepository
from treetimers.timer.tree import TimerTree

from helpers import FakeClock, NotificationCollector


@pytest.fixture(scope="session")
def qapp():
    """A single QCoreApplication instance shared across the entire test run."""
    app = QCoreApplication.instance() or QCoreApplication(sys.argv)
    yield app


@pytest.fixture(autouse=True)
def test_db():
    """Point every test at a fresh in-memory SQLite database."""
    configure_engine("sqlite:///:memory:")
    init_db()
    yield


@pytest.fixture
def store():
    return KeyValueStore()


@pytest.fixture
def repo(store):
    return TimerRepository(store)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifications():
    return NotificationCollector()


@pytest.fixture
def tree(qapp, repo, clock, notifications):
    """Fresh TimerTree on a fake clock, notifications ON."""
    return TimerTree(
        repo, clock=clock, notifier=notifications, notify_when_finished=True
    )
