"""Mutation engine for todo collections.

Every operation here is a pure function ``(todos, args) -> todos``: it never
modifies the list it is given and always returns a collection whose records
satisfy the completed/status coupling. Blank or unchanged input and ids that
are not in the collection are silent no-ops; the input list comes back as-is.
"""

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Optional, Sequence, Tuple, Union

from .errors import ConfirmationDeclined
from .todo import (
    Todo,
    TodoStatus,
    Priority,
    TodoFilter,
    coerce_priority,
    coerce_status,
    cycle_priority,
    cycle_status,
    set_completed,
    set_status,
)
from .utils.datetime import now_utc, truncate_to_millis


logger = logging.getLogger(__name__)

IdFactory = Callable[[], str]
Clock = Callable[[], datetime]
Confirm = Callable[[], bool]

# Guards against an id factory that keeps returning taken ids
MAX_ID_ATTEMPTS = 100


def default_id_factory() -> str:
    return str(uuid.uuid4())


def _new_id(todos: Sequence[Todo], id_factory: IdFactory) -> str:
    taken = {todo.id for todo in todos}
    for _ in range(MAX_ID_ATTEMPTS):
        candidate = str(id_factory())
        if candidate not in taken:
            return candidate
        logger.debug(f"Generated id {candidate!r} already in use, retrying")
    # Fall back to a random id rather than break uniqueness
    candidate = default_id_factory()
    while candidate in taken:
        candidate = default_id_factory()
    return candidate


def _replace_by_id(todos: Sequence[Todo], todo_id: str,
                   update: Callable[[Todo], Todo], operation: str) -> List[Todo]:
    """Apply ``update`` to the record with ``todo_id``, or no-op if absent."""
    for index, todo in enumerate(todos):
        if todo.id == todo_id:
            updated = list(todos)
            updated[index] = update(todo)
            return updated

    logger.debug(f"{operation}: no todo with id {todo_id!r}, ignoring")
    return list(todos)


def create(todos: Sequence[Todo], text: str, *,
           id_factory: Optional[IdFactory] = None,
           clock: Optional[Clock] = None) -> List[Todo]:
    """Prepend a new todo built from ``text``.

    Args:
        todos: Current collection
        text: Raw user input; surrounding whitespace is trimmed
        id_factory: Returns opaque id strings, defaults to uuid4
        clock: Returns the creation time, defaults to now in UTC

    Returns:
        New collection with the todo at the front, or the input unchanged
        when ``text`` is blank
    """
    text = (text or "").strip()
    if not text:
        logger.debug("create: blank text, ignoring")
        return list(todos)

    created_at = truncate_to_millis((clock or now_utc)())
    todo = Todo(
        id=_new_id(todos, id_factory or default_id_factory),
        text=text,
        completed=False,
        created_at=created_at,
        status=TodoStatus.TODO,
        priority=Priority.MEDIUM,
    )
    logger.debug(f"create: added {todo.id!r}")
    return [todo] + list(todos)


def edit(todos: Sequence[Todo], todo_id: str, text: str) -> List[Todo]:
    """Replace the text of a todo with the trimmed ``text``."""
    text = (text or "").strip()
    if not text:
        logger.debug(f"edit: blank text for {todo_id!r}, ignoring")
        return list(todos)

    def update(todo: Todo) -> Todo:
        if todo.text == text:
            logger.debug(f"edit: text of {todo_id!r} unchanged, ignoring")
            return todo
        return replace(todo, text=text)

    return _replace_by_id(todos, todo_id, update, "edit")


def delete(todos: Sequence[Todo], todo_id: str) -> List[Todo]:
    """Remove the todo with ``todo_id``."""
    remaining = [todo for todo in todos if todo.id != todo_id]
    if len(remaining) == len(todos):
        logger.debug(f"delete: no todo with id {todo_id!r}, ignoring")
    return remaining


def toggle(todos: Sequence[Todo], todo_id: str) -> List[Todo]:
    """Flip ``completed``; status follows (done <-> todo)."""
    return _replace_by_id(
        todos, todo_id, lambda todo: set_completed(todo, not todo.completed), "toggle"
    )


def update_status(todos: Sequence[Todo], todo_id: str,
                  status: Union[TodoStatus, str]) -> List[Todo]:
    """Set the kanban status; ``completed`` follows."""
    status = coerce_status(status)
    return _replace_by_id(
        todos, todo_id, lambda todo: set_status(todo, status), "update_status"
    )


def update_priority(todos: Sequence[Todo], todo_id: str,
                    priority: Union[Priority, str]) -> List[Todo]:
    """Set the priority of a todo."""
    priority = coerce_priority(priority)
    return _replace_by_id(
        todos, todo_id, lambda todo: replace(todo, priority=priority), "update_priority"
    )


def cycle_todo_status(todos: Sequence[Todo], todo_id: str) -> List[Todo]:
    """Advance a todo to the next status in the kanban cycle."""
    return _replace_by_id(todos, todo_id, cycle_status, "cycle_status")


def cycle_todo_priority(todos: Sequence[Todo], todo_id: str) -> List[Todo]:
    """Advance a todo to the next priority level."""
    return _replace_by_id(todos, todo_id, cycle_priority, "cycle_priority")


def clear_completed(todos: Sequence[Todo]) -> List[Todo]:
    """Drop every completed todo, keeping the order of the rest."""
    return [todo for todo in todos if not todo.completed]


def require_confirmation(confirm: Confirm, operation: str) -> None:
    """Ask the confirmation collaborator once.

    Raises:
        ConfirmationDeclined: If the answer is anything but yes
    """
    if not confirm():
        raise ConfirmationDeclined(operation)


def clear_all(todos: Sequence[Todo], filter_pref: TodoFilter,
              confirm: Confirm) -> Tuple[List[Todo], TodoFilter, bool]:
    """Empty the collection and reset the filter preference.

    Args:
        todos: Current collection
        filter_pref: Current filter preference
        confirm: Blocking yes/no prompt, asked exactly once

    Returns:
        ``([], TodoFilter.ALL, True)`` when confirmed, otherwise the inputs
        unchanged and False
    """
    try:
        require_confirmation(confirm, "clear_all")
    except ConfirmationDeclined as e:
        logger.info(str(e))
        return list(todos), filter_pref, False

    logger.info(f"clear_all: removed {len(todos)} todos")
    return [], TodoFilter.ALL, True
