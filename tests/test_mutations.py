"""Tests for the mutation engine."""

import pytest
from datetime import datetime, timezone

from todo_store import mutations
from todo_store.todo import TodoStatus, Priority, TodoFilter


def assert_consistent(todos):
    for todo in todos:
        assert todo.completed == (todo.status is TodoStatus.DONE)


class TestCreate:
    """Test creating todos."""

    def test_create_prepends_with_defaults(self, make_todo, ids, clock):
        existing = [make_todo("old", "Old task")]
        todos = mutations.create(existing, "  New task  ", id_factory=ids, clock=clock)

        assert len(todos) == 2
        new = todos[0]
        assert new.id == "todo-1"
        assert new.text == "New task"
        assert new.completed is False
        assert new.status == TodoStatus.TODO
        assert new.priority == Priority.MEDIUM
        assert new.created_at == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        assert todos[1] == existing[0]

    @pytest.mark.parametrize("text", ["", "   ", "\t\n", None])
    def test_blank_text_is_noop(self, make_todo, text):
        existing = [make_todo()]
        assert mutations.create(existing, text) == existing

    def test_create_does_not_modify_input(self, ids):
        existing = []
        mutations.create(existing, "Task", id_factory=ids)
        assert existing == []

    def test_colliding_ids_are_regenerated(self, make_todo):
        existing = [make_todo("dup")]
        candidates = iter(["dup", "dup", "fresh"])

        todos = mutations.create(existing, "Task", id_factory=lambda: next(candidates))

        assert todos[0].id == "fresh"

    def test_default_ids_are_unique(self):
        todos = []
        for i in range(20):
            todos = mutations.create(todos, f"Task {i}")
        assert len({todo.id for todo in todos}) == 20

    def test_created_at_is_truncated_to_millis(self, ids):
        moment = datetime(2024, 5, 1, 8, 0, 0, 123456, tzinfo=timezone.utc)
        todos = mutations.create([], "Task", id_factory=ids, clock=lambda: moment)
        assert todos[0].created_at.microsecond == 123000


class TestEdit:
    """Test editing todo text."""

    def test_edit_replaces_trimmed_text(self, make_todo):
        todos = mutations.edit([make_todo("a", "Old")], "a", "  New  ")
        assert todos[0].text == "New"

    def test_edit_keeps_other_fields(self, make_todo):
        original = make_todo("a", "Old", status=TodoStatus.IN_PROGRESS, priority=Priority.HIGH)
        edited = mutations.edit([original], "a", "New")[0]

        assert edited.id == original.id
        assert edited.created_at == original.created_at
        assert edited.status == TodoStatus.IN_PROGRESS
        assert edited.priority == Priority.HIGH

    @pytest.mark.parametrize("text", ["", "  ", "Old", "  Old  "])
    def test_blank_or_unchanged_text_is_noop(self, make_todo, text):
        existing = [make_todo("a", "Old")]
        assert mutations.edit(existing, "a", text) == existing

    def test_missing_id_is_noop(self, make_todo):
        existing = [make_todo("a", "Old")]
        assert mutations.edit(existing, "missing", "New") == existing


class TestDeleteAndToggle:
    """Test delete and toggle."""

    def test_delete_removes_entry(self, make_todo):
        todos = mutations.delete([make_todo("a"), make_todo("b")], "a")
        assert [todo.id for todo in todos] == ["b"]

    def test_delete_missing_id_is_noop(self, make_todo):
        existing = [make_todo("a")]
        assert mutations.delete(existing, "missing") == existing

    def test_toggle_completes_and_reopens(self, make_todo):
        todos = mutations.toggle([make_todo("a")], "a")
        assert todos[0].completed is True
        assert todos[0].status == TodoStatus.DONE

        todos = mutations.toggle(todos, "a")
        assert todos[0].completed is False
        assert todos[0].status == TodoStatus.TODO

    def test_toggle_in_progress_twice_lands_on_todo(self, make_todo):
        todos = [make_todo("a", status=TodoStatus.IN_PROGRESS)]
        todos = mutations.toggle(mutations.toggle(todos, "a"), "a")
        assert todos[0].status == TodoStatus.TODO

    def test_toggle_missing_id_is_noop(self, make_todo):
        existing = [make_todo("a")]
        assert mutations.toggle(existing, "missing") == existing

    def test_toggle_only_touches_target(self, make_todo):
        todos = mutations.toggle([make_todo("a"), make_todo("b")], "b")
        assert todos[0].completed is False
        assert todos[1].completed is True


class TestStatusAndPriority:
    """Test status and priority updates."""

    def test_update_status_syncs_completed(self, make_todo):
        todos = mutations.update_status([make_todo("a")], "a", TodoStatus.DONE)
        assert todos[0].completed is True

        todos = mutations.update_status(todos, "a", "in-progress")
        assert todos[0].completed is False
        assert todos[0].status == TodoStatus.IN_PROGRESS

    def test_update_priority(self, make_todo):
        todos = mutations.update_priority([make_todo("a")], "a", "high")
        assert todos[0].priority == Priority.HIGH

    def test_updates_on_missing_id_are_noops(self, make_todo):
        existing = [make_todo("a")]
        assert mutations.update_status(existing, "x", TodoStatus.DONE) == existing
        assert mutations.update_priority(existing, "x", Priority.LOW) == existing

    def test_cycle_by_id(self, make_todo):
        todos = [make_todo("a", priority=Priority.HIGH)]
        todos = mutations.cycle_todo_priority(todos, "a")
        todos = mutations.cycle_todo_status(todos, "a")

        assert todos[0].priority == Priority.LOW
        assert todos[0].status == TodoStatus.IN_PROGRESS

    def test_invariant_holds_after_every_mutation(self, make_todo, ids, clock):
        todos = [make_todo("a"), make_todo("b", status=TodoStatus.DONE)]
        steps = [
            lambda t: mutations.create(t, "c", id_factory=ids, clock=clock),
            lambda t: mutations.toggle(t, "a"),
            lambda t: mutations.update_status(t, "b", TodoStatus.IN_PROGRESS),
            lambda t: mutations.cycle_todo_status(t, "b"),
            lambda t: mutations.toggle(t, "b"),
            lambda t: mutations.update_priority(t, "a", Priority.LOW),
            lambda t: mutations.edit(t, "a", "renamed"),
            lambda t: mutations.clear_completed(t),
        ]
        for step in steps:
            todos = step(todos)
            assert_consistent(todos)


class TestClearing:
    """Test bulk clearing."""

    def test_clear_completed_preserves_order(self, make_todo):
        todos = [
            make_todo("a"),
            make_todo("b", status=TodoStatus.DONE),
            make_todo("c", status=TodoStatus.IN_PROGRESS),
            make_todo("d", status=TodoStatus.DONE),
            make_todo("e"),
        ]

        remaining = mutations.clear_completed(todos)

        assert [todo.id for todo in remaining] == ["a", "c", "e"]

    def test_clear_all_confirmed(self, make_todo):
        todos, filter_pref, cleared = mutations.clear_all(
            [make_todo("a")], TodoFilter.COMPLETED, lambda: True
        )
        assert todos == []
        assert filter_pref is TodoFilter.ALL
        assert cleared is True

    def test_clear_all_declined_is_noop(self, make_todo):
        existing = [make_todo("a")]
        todos, filter_pref, cleared = mutations.clear_all(existing, TodoFilter.ACTIVE, lambda: False)

        assert todos == existing
        assert filter_pref is TodoFilter.ACTIVE
        assert cleared is False

    def test_clear_all_asks_once(self):
        calls = []

        def confirm():
            calls.append(1)
            return True

        mutations.clear_all([], TodoFilter.ALL, confirm)
        assert len(calls) == 1
