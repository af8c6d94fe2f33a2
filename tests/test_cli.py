"""Tests for the command-line interface."""

import pytest
from click.testing import CliRunner

from todo_store.cli import format_todo_for_display, main
from todo_store.storage import MemoryStorage, TodoStore, get_store, reset_store
from todo_store.todo import TodoStatus, Priority, TodoFilter


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cli_store():
    return TodoStore(MemoryStorage())


@pytest.fixture
def invoke(runner, cli_store):
    """Run one CLI command against the shared in-memory store."""

    def _invoke(*args, input=None):
        return runner.invoke(main, list(args), obj={"store": cli_store}, input=input)

    return _invoke


def only_todo(store):
    todos = store.load_todos()
    assert len(todos) == 1
    return todos[0]


class TestAddAndList:
    """Adding and listing todos."""

    def test_add(self, invoke, cli_store):
        result = invoke("add", "Buy milk")

        assert result.exit_code == 0
        assert "Added" in result.output
        assert only_todo(cli_store).text == "Buy milk"

    def test_add_blank(self, invoke, cli_store):
        result = invoke("add", "   ")

        assert result.exit_code == 0
        assert "empty" in result.output
        assert cli_store.load_todos() == []

    def test_list_shows_counts(self, invoke):
        invoke("add", "Buy milk")
        result = invoke("list")

        assert result.exit_code == 0
        assert "Buy milk" in result.output
        assert "1 active, 0 completed" in result.output

    def test_no_command_lists(self, invoke):
        invoke("add", "Buy milk")
        result = invoke()

        assert result.exit_code == 0
        assert "Buy milk" in result.output

    def test_list_filter_is_remembered(self, invoke, cli_store):
        invoke("add", "Buy milk")
        result = invoke("list", "--filter", "completed")

        assert "No completed tasks" in result.output
        assert cli_store.load_filter() is TodoFilter.COMPLETED

        result = invoke("list")
        assert "No completed tasks" in result.output

    def test_empty_list(self, invoke):
        result = invoke("list")
        assert "No tasks yet" in result.output


class TestItemCommands:
    """Commands addressing a single todo."""

    def test_toggle_by_prefix(self, invoke, cli_store):
        invoke("add", "Task")
        todo_id = only_todo(cli_store).id

        result = invoke("toggle", todo_id[:6])

        assert result.exit_code == 0
        assert only_todo(cli_store).status == TodoStatus.DONE

    def test_unknown_id_exits_with_error(self, invoke):
        result = invoke("toggle", "does-not-exist")

        assert result.exit_code == 1
        assert "No todo matches" in result.output

    def test_edit(self, invoke, cli_store):
        invoke("add", "Old")
        todo_id = only_todo(cli_store).id

        result = invoke("edit", todo_id, "New")

        assert "Updated" in result.output
        assert only_todo(cli_store).text == "New"

    def test_edit_unchanged(self, invoke, cli_store):
        invoke("add", "Same")
        result = invoke("edit", only_todo(cli_store).id, "Same")
        assert "Nothing changed" in result.output

    def test_status_and_priority(self, invoke, cli_store):
        invoke("add", "Task")
        todo_id = only_todo(cli_store).id

        invoke("status", todo_id, "done")
        invoke("priority", todo_id, "high")

        todo = only_todo(cli_store)
        assert todo.completed is True
        assert todo.priority == Priority.HIGH

    def test_invalid_status_rejected(self, invoke, cli_store):
        invoke("add", "Task")
        result = invoke("status", only_todo(cli_store).id, "archived")
        assert result.exit_code == 2

    def test_cycle_commands(self, invoke, cli_store):
        invoke("add", "Task")
        todo_id = only_todo(cli_store).id

        invoke("cycle-status", todo_id)
        invoke("cycle-priority", todo_id)

        todo = only_todo(cli_store)
        assert todo.status == TodoStatus.IN_PROGRESS
        assert todo.priority == Priority.HIGH

    def test_delete_confirmed(self, invoke, cli_store):
        invoke("add", "Task")
        result = invoke("delete", only_todo(cli_store).id, input="y\n")

        assert "Delete 'Task'?" in result.output
        assert "Deleted" in result.output
        assert cli_store.load_todos() == []

    def test_delete_declined(self, invoke, cli_store):
        invoke("add", "Task")
        result = invoke("delete", only_todo(cli_store).id, input="n\n")

        assert result.exit_code == 0
        assert "Cancelled" in result.output
        assert only_todo(cli_store).text == "Task"

    def test_delete_yes_flag(self, invoke, cli_store):
        invoke("add", "Task")
        invoke("delete", "--yes", only_todo(cli_store).id)
        assert cli_store.load_todos() == []

    def test_delete_without_confirmation_setting(self, runner, cli_store):
        runner.invoke(main, ["add", "Task"], obj={"store": cli_store})
        todo_id = only_todo(cli_store).id

        runner.invoke(main, ["delete", todo_id],
                      obj={"store": cli_store, "confirm_destructive": False})

        assert cli_store.load_todos() == []


class TestBulkCommands:
    """Clearing data."""

    def test_clear_completed(self, invoke, cli_store):
        invoke("add", "Keep")
        invoke("add", "Drop")
        drop = next(t for t in cli_store.load_todos() if t.text == "Drop")
        invoke("toggle", drop.id)

        result = invoke("clear-completed")

        assert "Removed 1 completed todo" in result.output
        assert [t.text for t in cli_store.load_todos()] == ["Keep"]

    def test_clear_all_declined(self, invoke, cli_store):
        invoke("add", "Task")
        result = invoke("clear-all", input="n\n")

        assert "Cancelled" in result.output
        assert len(cli_store.load_todos()) == 1

    def test_clear_all_confirmed(self, invoke, cli_store):
        invoke("add", "Task")
        invoke("list", "--filter", "active")

        result = invoke("clear-all", input="y\n")

        assert "All data cleared" in result.output
        assert cli_store.load_todos() == []
        assert cli_store.load_filter() is TodoFilter.ALL

    def test_clear_all_yes_flag(self, invoke, cli_store):
        invoke("add", "Task")
        invoke("clear-all", "--yes")
        assert cli_store.load_todos() == []


class TestViews:
    """Search, board and stats views."""

    @pytest.fixture
    def populated(self, invoke):
        invoke("sample", "--yes")
        return invoke

    def test_sample(self, invoke, cli_store):
        result = invoke("sample", "--yes")

        assert "Added 6 sample todos" in result.output
        assert len(cli_store.load_todos()) == 6

    def test_search_with_filters(self, populated):
        result = populated("search", "API", "--priority", "high")

        assert result.exit_code == 0
        assert "Search results (1)" in result.output
        assert "Result statistics" in result.output

    def test_search_no_results(self, populated):
        result = populated("search", "zzz")
        assert "No matching todos" in result.output

    def test_search_rejects_bad_sort(self, populated):
        assert populated("search", "--sort", "random").exit_code == 2

    def test_board_has_three_columns(self, populated):
        result = populated("board")

        assert result.exit_code == 0
        assert "To do (2)" in result.output
        assert "In progress (2)" in result.output
        assert "Done (2)" in result.output

    def test_stats(self, populated):
        result = populated("stats")

        assert result.exit_code == 0
        assert "Total" in result.output
        assert "6" in result.output


class TestFormatting:
    """Display helpers."""

    def test_format_escapes_markup(self, make_todo):
        todo = make_todo("abcdefghij", "[bold]not markup[/bold]")
        rendered = format_todo_for_display(todo)

        assert "abcdefgh" in rendered
        assert "ghij" not in rendered
        assert "\\[bold]" in rendered

    def test_format_without_emoji(self, make_todo):
        rendered = format_todo_for_display(make_todo(status=TodoStatus.DONE), use_emoji=False)
        assert "Done" in rendered
        assert "[strike]" in rendered


class TestDefaultStore:
    """Without an injected store the CLI uses the configured one."""

    def test_commands_share_the_global_store(self, runner, tmp_path):
        runner.invoke(main, ["add", "Persisted"])

        assert [todo.text for todo in get_store().load_todos()] == ["Persisted"]
        assert (tmp_path / "data" / "storage.json").exists()

        reset_store()
        result = runner.invoke(main, ["list"])
        assert "Persisted" in result.output
