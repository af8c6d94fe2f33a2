"""Per-view session over a todo store.

Each view (list, kanban board, search) keeps its own in-memory copy of the
collection, loaded when the view is activated and written straight through
to storage after every change. Sessions do not notify one another: two views
active at the same time can disagree until one of them calls
:meth:`TodoSession.activate` again.
"""

import logging
from typing import Callable, List, Optional, Union

from . import mutations
from .errors import ConfirmationDeclined
from .projection import TodoStats, aggregate_stats, filter_by_criterion
from .sample_data import generate_sample_todos, merge_sample_data
from .storage import TodoStore
from .todo import Todo, TodoFilter, TodoStatus, Priority, coerce_filter


logger = logging.getLogger(__name__)


class TodoSession:
    """In-memory todo collection of one view, with write-through persistence.

    The in-memory collection is authoritative for the lifetime of the
    session; a failed write is logged and the session carries on.
    """

    def __init__(self, store: TodoStore, *,
                 id_factory: Optional[mutations.IdFactory] = None,
                 clock: Optional[mutations.Clock] = None):
        self.store = store
        self.id_factory = id_factory
        self.clock = clock
        self.todos: List[Todo] = []
        self.filter = TodoFilter.ALL
        self.last_save_ok = True

    def activate(self) -> "TodoSession":
        """(Re)load the collection and filter preference from storage."""
        self.todos = self.store.load_todos()
        self.filter = self.store.load_filter()
        logger.debug(f"Session activated with {len(self.todos)} todos, filter={self.filter.value}")
        return self

    def _commit(self, updated: List[Todo]) -> bool:
        """Adopt ``updated`` and persist it if anything changed."""
        if updated == self.todos:
            return False
        self.todos = updated
        self.last_save_ok = self.store.save_todos(self.todos)
        return True

    def get(self, todo_id: str) -> Optional[Todo]:
        return next((todo for todo in self.todos if todo.id == todo_id), None)

    def add(self, text: str) -> Optional[Todo]:
        """Create a todo; returns it, or None if ``text`` was blank."""
        changed = self._commit(
            mutations.create(self.todos, text, id_factory=self.id_factory, clock=self.clock)
        )
        return self.todos[0] if changed else None

    def edit(self, todo_id: str, text: str) -> bool:
        return self._commit(mutations.edit(self.todos, todo_id, text))

    def delete(self, todo_id: str) -> bool:
        return self._commit(mutations.delete(self.todos, todo_id))

    def toggle(self, todo_id: str) -> bool:
        return self._commit(mutations.toggle(self.todos, todo_id))

    def update_status(self, todo_id: str, status: Union[TodoStatus, str]) -> bool:
        return self._commit(mutations.update_status(self.todos, todo_id, status))

    def update_priority(self, todo_id: str, priority: Union[Priority, str]) -> bool:
        return self._commit(mutations.update_priority(self.todos, todo_id, priority))

    def cycle_status(self, todo_id: str) -> bool:
        return self._commit(mutations.cycle_todo_status(self.todos, todo_id))

    def cycle_priority(self, todo_id: str) -> bool:
        return self._commit(mutations.cycle_todo_priority(self.todos, todo_id))

    def clear_completed(self) -> int:
        """Remove completed todos; returns how many were removed."""
        before = len(self.todos)
        self._commit(mutations.clear_completed(self.todos))
        return before - len(self.todos)

    def set_filter(self, filter_pref: Union[TodoFilter, str]) -> None:
        """Change and persist the filter preference."""
        self.filter = coerce_filter(filter_pref)
        self.last_save_ok = self.store.save_filter(self.filter)

    def clear_all(self, confirm: Callable[[], bool]) -> bool:
        """Delete everything after confirmation.

        Returns:
            True if the data was cleared, False if the user declined
        """
        todos, filter_pref, cleared = mutations.clear_all(self.todos, self.filter, confirm)
        if not cleared:
            return False

        self.todos = todos
        self.filter = filter_pref
        self.last_save_ok = self.store.clear()
        return True

    def load_sample_data(self, confirm: Callable[[], bool]) -> int:
        """Append the sample todos after confirmation; returns how many were added."""
        try:
            mutations.require_confirmation(confirm, "load_sample_data")
        except ConfirmationDeclined as e:
            logger.info(str(e))
            return 0

        before = len(self.todos)
        self._commit(merge_sample_data(self.todos, generate_sample_todos(
            self.clock() if self.clock else None
        )))
        return len(self.todos) - before

    def visible_todos(self) -> List[Todo]:
        """The collection as seen through the filter preference."""
        return filter_by_criterion(self.todos, self.filter)

    def stats(self) -> TodoStats:
        return aggregate_stats(self.todos)
