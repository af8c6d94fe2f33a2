"""Todo Store - client-side todo collection with list, kanban and search views."""

__version__ = "0.1.0"
__author__ = "Todo Store Team"

from .todo import (
    Todo,
    TodoStatus,
    Priority,
    TodoFilter,
    set_status,
    set_completed,
    cycle_priority,
    cycle_status,
)
from .errors import TodoStoreError, DecodeFailure, PersistFailure, ConfirmationDeclined
from .projection import (
    SortOrder,
    SearchCriteria,
    TodoStats,
    filter_by_criterion,
    search_and_sort,
    kanban_grouping,
    aggregate_stats,
)
from .storage import KeyValueStorage, MemoryStorage, FileStorage, TodoStore
from .session import TodoSession

__all__ = [
    "Todo",
    "TodoStatus",
    "Priority",
    "TodoFilter",
    "set_status",
    "set_completed",
    "cycle_priority",
    "cycle_status",
    "TodoStoreError",
    "DecodeFailure",
    "PersistFailure",
    "ConfirmationDeclined",
    "SortOrder",
    "SearchCriteria",
    "TodoStats",
    "filter_by_criterion",
    "search_and_sort",
    "kanban_grouping",
    "aggregate_stats",
    "KeyValueStorage",
    "MemoryStorage",
    "FileStorage",
    "TodoStore",
    "TodoSession",
    "__version__",
]
