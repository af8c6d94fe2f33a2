"""Todo data model for the todo store."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Union

from .utils.datetime import now_utc, ensure_aware, to_timestamp_string


class Priority(Enum):
    """Task priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def weight(self) -> int:
        """Sort weight, higher is more important."""
        return _PRIORITY_WEIGHTS[self]


class TodoStatus(Enum):
    """Kanban status states."""
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class TodoFilter(Enum):
    """List view filter preference."""
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


_PRIORITY_WEIGHTS = {
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}

PRIORITY_CYCLE = [Priority.LOW, Priority.MEDIUM, Priority.HIGH]
STATUS_CYCLE = [TodoStatus.TODO, TodoStatus.IN_PROGRESS, TodoStatus.DONE]


@dataclass(frozen=True)
class Todo:
    """A single task record.

    Instances are immutable; every change produces a new record through
    :func:`dataclasses.replace`. ``completed`` and ``status`` are coupled:
    ``completed`` is true exactly when ``status`` is ``DONE``. Use
    :func:`set_status` and :func:`set_completed` rather than replacing either
    field directly.
    """

    id: str
    text: str
    completed: bool = False
    created_at: datetime = field(default_factory=now_utc)
    status: TodoStatus = TodoStatus.TODO
    priority: Priority = Priority.MEDIUM

    def __post_init__(self):
        """Normalise the creation timestamp to aware UTC."""
        object.__setattr__(self, "created_at", ensure_aware(self.created_at))

    def is_consistent(self) -> bool:
        """Check the completed/status coupling."""
        return self.completed == (self.status is TodoStatus.DONE)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the Todo to its persisted dictionary shape."""
        return {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "createdAt": to_timestamp_string(self.created_at),
            "status": self.status.value,
            "priority": self.priority.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Todo":
        """Create a Todo from an already validated dictionary.

        Schema defaults and validation live in :mod:`todo_store.codec`; this
        constructor only maps keys onto fields.
        """
        return cls(
            id=data["id"],
            text=data["text"],
            completed=data["completed"],
            created_at=data["createdAt"],
            status=TodoStatus(data["status"]),
            priority=Priority(data["priority"]),
        )


def coerce_status(value: Union[TodoStatus, str]) -> TodoStatus:
    """Accept a TodoStatus or its string value."""
    return value if isinstance(value, TodoStatus) else TodoStatus(value)


def coerce_priority(value: Union[Priority, str]) -> Priority:
    """Accept a Priority or its string value."""
    return value if isinstance(value, Priority) else Priority(value)


def coerce_filter(value: Union[TodoFilter, str]) -> TodoFilter:
    """Accept a TodoFilter or its string value."""
    return value if isinstance(value, TodoFilter) else TodoFilter(value)


def set_status(todo: Todo, status: Union[TodoStatus, str]) -> Todo:
    """Return ``todo`` with ``status`` set and ``completed`` derived from it."""
    status = coerce_status(status)
    return replace(todo, status=status, completed=status is TodoStatus.DONE)


def set_completed(todo: Todo, completed: bool) -> Todo:
    """Return ``todo`` with ``completed`` set and ``status`` derived from it.

    Un-completing always lands on ``TODO``; an item that was ``IN_PROGRESS``
    before it was completed does not get that status back.
    """
    status = TodoStatus.DONE if completed else TodoStatus.TODO
    return replace(todo, completed=bool(completed), status=status)


def cycle_priority(todo: Todo) -> Todo:
    """low -> medium -> high -> low."""
    index = PRIORITY_CYCLE.index(todo.priority)
    return replace(todo, priority=PRIORITY_CYCLE[(index + 1) % len(PRIORITY_CYCLE)])


def cycle_status(todo: Todo) -> Todo:
    """todo -> in-progress -> done -> todo."""
    index = STATUS_CYCLE.index(todo.status)
    return set_status(todo, STATUS_CYCLE[(index + 1) % len(STATUS_CYCLE)])
