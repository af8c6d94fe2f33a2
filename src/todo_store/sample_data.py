"""Sample todos for demos and manual testing."""

from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from .todo import Todo, TodoStatus, Priority
from .utils.datetime import now_utc, truncate_to_millis


def generate_sample_todos(now: Optional[datetime] = None) -> List[Todo]:
    """Build six demo todos covering every status and priority.

    Ids are fixed so loading the samples twice does not duplicate them.
    """
    now = truncate_to_millis(now or now_utc())
    specs = [
        ("sample-1", "Write the project proposal", timedelta(days=1),
         TodoStatus.TODO, Priority.HIGH),
        ("sample-2", "Design and document the API", timedelta(hours=12),
         TodoStatus.IN_PROGRESS, Priority.HIGH),
        ("sample-3", "Create UI/UX mockups", timedelta(hours=6),
         TodoStatus.IN_PROGRESS, Priority.MEDIUM),
        ("sample-4", "Finish the database design", timedelta(days=2),
         TodoStatus.DONE, Priority.MEDIUM),
        ("sample-5", "Set up the development environment", timedelta(days=3),
         TodoStatus.DONE, Priority.LOW),
        ("sample-6", "Run a code review", timedelta(hours=2),
         TodoStatus.TODO, Priority.MEDIUM),
    ]
    return [
        Todo(
            id=todo_id,
            text=text,
            completed=status is TodoStatus.DONE,
            created_at=now - age,
            status=status,
            priority=priority,
        )
        for todo_id, text, age, status, priority in specs
    ]


def merge_sample_data(todos: Sequence[Todo], samples: Sequence[Todo]) -> List[Todo]:
    """Append the samples whose ids are not already in ``todos``."""
    existing = {todo.id for todo in todos}
    return list(todos) + [sample for sample in samples if sample.id not in existing]
