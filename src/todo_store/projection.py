"""
View projection engine for todo collections

This module derives read-only views from a collection: the list view's
filter, the search view's text/priority/status filtering and sorting, the
kanban board's column grouping, and aggregate counts. Nothing here mutates
its input; every function returns a new list.
"""

import locale
import unicodedata
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Sequence, Union

from .todo import (
    Todo,
    TodoFilter,
    TodoStatus,
    Priority,
    STATUS_CYCLE,
    coerce_filter,
    coerce_priority,
    coerce_status,
)


ALL = "all"


class SortOrder(Enum):
    """Sort orders offered by the search view"""
    NEWEST = "newest"
    OLDEST = "oldest"
    PRIORITY = "priority"
    ALPHABETICAL = "alphabetical"


def filter_by_criterion(todos: Sequence[Todo], filter_pref: Union[TodoFilter, str]) -> List[Todo]:
    """Apply the list view's all/active/completed filter."""
    filter_pref = coerce_filter(filter_pref)

    if filter_pref is TodoFilter.ACTIVE:
        return [todo for todo in todos if not todo.completed]
    if filter_pref is TodoFilter.COMPLETED:
        return [todo for todo in todos if todo.completed]
    return list(todos)


def matches_query(todo: Todo, query: str) -> bool:
    """Case-insensitive substring match; a blank query matches everything"""
    needle = query.strip().lower()
    return not needle or needle in todo.text.lower()


def _strip_accents(text: str) -> str:
    return "".join(ch for ch in unicodedata.normalize("NFKD", text)
                   if not unicodedata.combining(ch))


def collation_key(text: str) -> tuple:
    """Locale-aware sort key for todo text.

    Text is compared case-folded and without accents first, so "éclair"
    sorts among the e's even under the C locale. The collating locale
    (``LC_COLLATE``, set up by the CLI) then orders accented variants, and
    the raw text breaks any remaining tie.
    """
    folded = unicodedata.normalize("NFKC", text).casefold()
    base = _strip_accents(folded)
    try:
        return (locale.strxfrm(base), locale.strxfrm(folded), text)
    except ValueError:
        # strxfrm rejects embedded NUL characters
        return (base, folded, text)


def sort_todos(todos: Iterable[Todo], sort_order: Union[SortOrder, str]) -> List[Todo]:
    """Sort todos; ties keep their relative input order"""
    sort_order = sort_order if isinstance(sort_order, SortOrder) else SortOrder(sort_order)
    result = list(todos)

    if sort_order is SortOrder.NEWEST:
        result.sort(key=lambda todo: todo.created_at, reverse=True)
    elif sort_order is SortOrder.OLDEST:
        result.sort(key=lambda todo: todo.created_at)
    elif sort_order is SortOrder.PRIORITY:
        result.sort(key=lambda todo: todo.priority.weight, reverse=True)
    elif sort_order is SortOrder.ALPHABETICAL:
        result.sort(key=lambda todo: collation_key(todo.text))

    return result


def search_and_sort(todos: Sequence[Todo],
                    query: str = "",
                    priority_filter: Union[Priority, str] = ALL,
                    status_filter: Union[TodoStatus, str] = ALL,
                    sort_order: Union[SortOrder, str] = SortOrder.NEWEST) -> List[Todo]:
    """Search view projection.

    Args:
        todos: Collection to project
        query: Text to look for in each todo's text
        priority_filter: A priority, or ``"all"`` to pass everything through
        status_filter: A status, or ``"all"`` to pass everything through
        sort_order: Applied after all filters

    Returns:
        Matching todos in the requested order
    """
    priority = None if priority_filter == ALL else coerce_priority(priority_filter)
    status = None if status_filter == ALL else coerce_status(status_filter)

    result = [
        todo for todo in todos
        if matches_query(todo, query)
        and (priority is None or todo.priority is priority)
        and (status is None or todo.status is status)
    ]
    return sort_todos(result, sort_order)


@dataclass
class SearchCriteria:
    """Current state of the search view's controls"""
    query: str = ""
    priority: Union[Priority, str] = ALL
    status: Union[TodoStatus, str] = ALL
    sort_order: Union[SortOrder, str] = SortOrder.NEWEST

    def apply(self, todos: Sequence[Todo]) -> List[Todo]:
        return search_and_sort(todos, self.query, self.priority, self.status, self.sort_order)

    def is_default(self) -> bool:
        return (
            not self.query.strip()
            and self.priority == ALL
            and self.status == ALL
            and SortOrder(getattr(self.sort_order, "value", self.sort_order)) is SortOrder.NEWEST
        )

    def reset(self) -> None:
        """Clear the query and all filters, and go back to newest-first"""
        self.query = ""
        self.priority = ALL
        self.status = ALL
        self.sort_order = SortOrder.NEWEST


def kanban_grouping(todos: Sequence[Todo]) -> Dict[TodoStatus, List[Todo]]:
    """Partition todos into the three board columns.

    Every status is present as a key, in column order. Within a column,
    higher priority comes first and, for equal priority, newer todos first.
    """
    groups: Dict[TodoStatus, List[Todo]] = {status: [] for status in STATUS_CYCLE}
    for todo in todos:
        groups[todo.status].append(todo)

    for column in groups.values():
        column.sort(key=lambda todo: (todo.priority.weight, todo.created_at), reverse=True)

    return groups


@dataclass
class TodoStats:
    """Aggregate counts over a collection"""
    total: int = 0
    completed: int = 0
    priority: Dict[Priority, int] = field(
        default_factory=lambda: {priority: 0 for priority in Priority}
    )

    @property
    def active(self) -> int:
        return self.total - self.completed

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "total": self.total,
            "completed": self.completed,
            "active": self.active,
            "priority": {
                Priority.HIGH.value: self.priority[Priority.HIGH],
                Priority.MEDIUM.value: self.priority[Priority.MEDIUM],
                Priority.LOW.value: self.priority[Priority.LOW],
            },
        }


def aggregate_stats(todos: Iterable[Todo]) -> TodoStats:
    """Count todos in a single pass.

    The counts describe whatever collection is passed in; give it a filtered
    projection to get stats for the current results only.
    """
    stats = TodoStats()
    for todo in todos:
        stats.total += 1
        if todo.completed:
            stats.completed += 1
        stats.priority[todo.priority] += 1
    return stats
