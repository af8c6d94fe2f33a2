"""Pytest configuration and shared fixtures."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Ensure src directory is in Python path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from todo_store.config import Config
from todo_store.storage import MemoryStorage, TodoStore, reset_store
from todo_store.todo import Todo, TodoStatus, Priority


BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Clock that advances one minute per call."""

    def __init__(self, start: datetime = BASE_TIME):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(minutes=1)
        return value


class SequentialIds:
    """Id factory yielding todo-1, todo-2, ..."""

    def __init__(self):
        self.counter = 0

    def __call__(self) -> str:
        self.counter += 1
        return f"todo-{self.counter}"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ids():
    return SequentialIds()


@pytest.fixture
def memory_storage():
    return MemoryStorage()


@pytest.fixture
def store(memory_storage):
    return TodoStore(memory_storage)


@pytest.fixture
def make_todo():
    """Build a consistent Todo with sensible defaults."""

    def _make(todo_id="t1", text="Task", status=TodoStatus.TODO,
              priority=Priority.MEDIUM, minutes=0):
        return Todo(
            id=todo_id,
            text=text,
            completed=status is TodoStatus.DONE,
            created_at=BASE_TIME + timedelta(minutes=minutes),
            status=status,
            priority=priority,
        )

    return _make


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep configuration and storage singletons away from the real home dir."""
    monkeypatch.setenv("TODO_STORE_DATA_DIR", str(tmp_path / "data"))
    Config._instance = None
    reset_store()
    yield
    Config._instance = None
    reset_store()
