"""Persistence codec for todo collections.

Snapshots are JSON arrays of records shaped like::

    {"id": "...", "text": "...", "completed": false,
     "createdAt": "2024-01-01T00:00:00.000Z",
     "status": "todo", "priority": "medium"}

``status`` and ``priority`` were added after the first release, so older
snapshots may lack them. Missing optional fields are filled in one place,
:func:`apply_schema_defaults`, before a record is turned into a ``Todo``.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Set, Union

from .errors import DecodeFailure
from .todo import Todo, TodoFilter, TodoStatus, Priority
from .utils.datetime import parse_timestamp


logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("id", "text", "completed", "createdAt")
STATUS_VALUES = {status.value for status in TodoStatus}
PRIORITY_VALUES = {priority.value for priority in Priority}
FILTER_VALUES = {f.value for f in TodoFilter}


def encode(todos: List[Todo]) -> str:
    """Serialize a collection to its JSON snapshot."""
    return json.dumps([todo.to_dict() for todo in todos], ensure_ascii=False)


def apply_schema_defaults(record: Dict[str, Any]) -> Dict[str, Any]:
    """Fill optional fields that older snapshots do not carry.

    - ``status`` defaults to ``done`` for completed records, else ``todo``
    - ``priority`` defaults to ``medium``
    """
    filled = dict(record)
    if filled.get("status") is None:
        filled["status"] = (
            TodoStatus.DONE.value if filled.get("completed") else TodoStatus.TODO.value
        )
    if filled.get("priority") is None:
        filled["priority"] = Priority.MEDIUM.value
    return filled


def _validate_record(record: Any, index: int) -> Dict[str, Any]:
    """Check one raw record and return it with defaults and parsed fields."""
    if not isinstance(record, dict):
        raise DecodeFailure(f"expected an object, got {type(record).__name__}", index)

    missing = [name for name in REQUIRED_FIELDS if name not in record]
    if missing:
        raise DecodeFailure(f"missing field(s): {', '.join(missing)}", index)

    if not isinstance(record["id"], str) or not record["id"]:
        raise DecodeFailure("'id' must be a non-empty string", index)
    if not isinstance(record["text"], str) or not record["text"].strip():
        raise DecodeFailure("'text' must be a non-blank string", index)
    if not isinstance(record["completed"], bool):
        raise DecodeFailure("'completed' must be a boolean", index)

    data = apply_schema_defaults(record)

    if data["status"] not in STATUS_VALUES:
        raise DecodeFailure(f"unknown status {data['status']!r}", index)
    if data["priority"] not in PRIORITY_VALUES:
        raise DecodeFailure(f"unknown priority {data['priority']!r}", index)

    try:
        data["createdAt"] = parse_timestamp(data["createdAt"])
    except ValueError as e:
        raise DecodeFailure(f"invalid createdAt: {e}", index)

    completed = data["status"] == TodoStatus.DONE.value
    if data["completed"] != completed:
        # status is the richer field, completed is re-derived from it
        logger.warning(
            f"Record {data['id']!r} has completed={data['completed']} but "
            f"status={data['status']!r}, using status"
        )
        data["completed"] = completed

    return data


def _load_records(snapshot: Union[str, bytes]) -> List[Any]:
    """Parse the snapshot text into its list of raw records."""
    try:
        raw = json.loads(snapshot)
    except (TypeError, ValueError, RecursionError) as e:
        # RecursionError: pathologically nested arrays
        raise DecodeFailure(f"invalid JSON: {e}")

    if not isinstance(raw, list):
        raise DecodeFailure(f"expected a JSON array, got {type(raw).__name__}")
    return raw


def _decode_record(record: Any, index: int, seen: Set[str]) -> Todo:
    data = _validate_record(record, index)
    if data["id"] in seen:
        raise DecodeFailure(f"duplicate id {data['id']!r}", index)
    seen.add(data["id"])
    return Todo.from_dict(data)


def decode_strict(snapshot: Union[str, bytes]) -> List[Todo]:
    """Decode a snapshot, raising on any malformed input.

    Raises:
        DecodeFailure: If the snapshot or any record in it is malformed
    """
    seen: Set[str] = set()
    return [
        _decode_record(record, index, seen)
        for index, record in enumerate(_load_records(snapshot))
    ]


def decode(snapshot: Optional[Union[str, bytes]]) -> List[Todo]:
    """Decode a snapshot, recovering from malformed input.

    A missing snapshot (``None``) is an empty store, not a failure. A
    snapshot that is not a JSON array decodes to an empty collection; inside
    a readable array, malformed records and repeated ids are skipped and the
    rest are kept.
    """
    if snapshot is None:
        return []

    try:
        records = _load_records(snapshot)
    except DecodeFailure as e:
        logger.warning(f"Discarding unreadable todo snapshot: {e}")
        return []

    todos = []
    seen: Set[str] = set()
    for index, record in enumerate(records):
        try:
            todos.append(_decode_record(record, index, seen))
        except DecodeFailure as e:
            logger.warning(f"Skipping unreadable todo: {e}")

    return todos


def encode_filter(filter_pref: TodoFilter) -> str:
    return filter_pref.value


def decode_filter(value: Optional[str]) -> TodoFilter:
    """Restore the filter preference; anything unrecognised means ``all``."""
    if value in FILTER_VALUES:
        return TodoFilter(value)
    return TodoFilter.ALL
