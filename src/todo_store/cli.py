"""Command-line interface for the todo store."""

import locale
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

import click
from rich.columns import Columns
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import get_config, load_config
from .projection import SortOrder, TodoStats, aggregate_stats, kanban_grouping, search_and_sort
from .session import TodoSession
from .storage import get_store
from .todo import Todo, TodoFilter, TodoStatus, Priority
from .utils.datetime import relative_time


logger = logging.getLogger(__name__)
console = Console()

SHORT_ID_LENGTH = 8

STATUS_EMOJI = {
    TodoStatus.TODO: "⏳",
    TodoStatus.IN_PROGRESS: "🔄",
    TodoStatus.DONE: "✅",
}

STATUS_LABELS = {
    TodoStatus.TODO: "To do",
    TodoStatus.IN_PROGRESS: "In progress",
    TodoStatus.DONE: "Done",
}

PRIORITY_COLORS = {
    Priority.HIGH: "red",
    Priority.MEDIUM: "yellow",
    Priority.LOW: "green",
}

EMPTY_MESSAGES = {
    TodoFilter.ALL: "No tasks yet. Add one with 'todo-store add'.",
    TodoFilter.ACTIVE: "No active tasks.",
    TodoFilter.COMPLETED: "No completed tasks.",
}


def configure_logging(level: str) -> None:
    """Route log records through rich, once per process."""
    root = logging.getLogger("todo_store")
    root.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        handler = RichHandler(console=Console(stderr=True), show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)


def configure_collation() -> None:
    """Sort text by the user's locale rather than the C locale."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.debug(f"Keeping default collation: {e}")


def get_session(ctx: click.Context) -> TodoSession:
    """Get the session of this invocation, activating it on first use."""
    if "session" not in ctx.obj:
        store = ctx.obj.get("store") or get_store(ctx.obj.get("config"))
        ctx.obj["session"] = TodoSession(store).activate()
    return ctx.obj["session"]


def resolve_id(session: TodoSession, id_or_prefix: str) -> str:
    """Map a full id or a unique id prefix to a todo id, or exit."""
    if session.get(id_or_prefix) is not None:
        return id_or_prefix

    matches = [todo.id for todo in session.todos if todo.id.startswith(id_or_prefix)]
    if len(matches) == 1:
        return matches[0]

    if not matches:
        console.print(f"[red]Error: No todo matches '{escape(id_or_prefix)}'[/red]")
    else:
        console.print(f"[red]Error: '{escape(id_or_prefix)}' is ambiguous "
                      f"({len(matches)} todos match)[/red]")
    sys.exit(1)


def warn_if_unsaved(session: TodoSession) -> None:
    if not session.last_save_ok:
        console.print("[yellow]Warning: changes could not be saved and will be lost "
                      "when this session ends[/yellow]")


def destructive_confirmation(ctx: click.Context, yes: bool, prompt: str) -> Callable[[], bool]:
    """Build the yes/no collaborator for an irreversible command."""

    def confirm() -> bool:
        if yes or not ctx.obj["confirm_destructive"]:
            return True
        return click.confirm(prompt, default=False)

    return confirm


def format_todo_for_display(todo: Todo, use_emoji: bool = True, show_id: bool = True) -> str:
    """Format a todo for display."""
    priority_color = PRIORITY_COLORS[todo.priority]

    text_parts = []
    if show_id:
        text_parts.append(f"[dim]{todo.id[:SHORT_ID_LENGTH]}[/dim]")

    if use_emoji:
        text_parts.append(STATUS_EMOJI[todo.status])
    else:
        text_parts.append(escape(f"[{STATUS_LABELS[todo.status]}]"))

    text = escape(todo.text)
    if todo.completed:
        text = f"[strike]{text}[/strike]"
    text_parts.append(text)
    text_parts.append(f"[{priority_color}]{todo.priority.value.upper()}[/{priority_color}]")

    return " ".join(text_parts)


def build_todo_table(todos: List[Todo], title: Optional[str] = None) -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Status")
    table.add_column("Priority")
    table.add_column("Task")
    table.add_column("Created", style="dim")

    for todo in todos:
        color = PRIORITY_COLORS[todo.priority]
        text = escape(todo.text)
        table.add_row(
            todo.id[:SHORT_ID_LENGTH],
            STATUS_LABELS[todo.status],
            f"[{color}]{todo.priority.value}[/{color}]",
            f"[strike]{text}[/strike]" if todo.completed else text,
            relative_time(todo.created_at),
        )
    return table


def build_stats_table(stats: TodoStats, title: str = "Statistics") -> Table:
    table = Table(title=title, show_header=False)
    table.add_column("Metric")
    table.add_column("Count", justify="right")
    table.add_row("Total", str(stats.total))
    table.add_row("Active", str(stats.active))
    table.add_row("Completed", str(stats.completed))
    for priority in (Priority.HIGH, Priority.MEDIUM, Priority.LOW):
        color = PRIORITY_COLORS[priority]
        table.add_row(f"[{color}]{priority.value.capitalize()} priority[/{color}]",
                      str(stats.priority[priority]))
    return table


@click.group(invoke_without_command=True)
@click.option("--config", type=click.Path(), help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.pass_context
def main(ctx, config, verbose):
    """Todo Store - manage todos as a list, a kanban board, or by search."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    if config:
        cfg = load_config(Path(config))
    else:
        cfg = get_config()
    ctx.obj["config"] = cfg

    ctx.obj.setdefault("confirm_destructive", cfg.confirm_destructive)
    ctx.obj.setdefault("use_emoji", cfg.use_emoji)
    ctx.obj.setdefault("default_sort", cfg.default_sort)
    configure_logging("DEBUG" if verbose else cfg.log_level)
    configure_collation()

    # If no command provided, show the list
    if ctx.invoked_subcommand is None:
        ctx.invoke(list_todos)


@main.command()
@click.argument("text", required=True)
@click.pass_context
def add(ctx, text):
    """Add a new todo item."""
    session = get_session(ctx)
    todo = session.add(text)
    if todo is None:
        console.print("[yellow]Nothing to add: the task text is empty[/yellow]")
        return

    console.print(f"[green]✓[/green] Added: {format_todo_for_display(todo, ctx.obj['use_emoji'])}")
    warn_if_unsaved(session)


@main.command(name="list")
@click.option("--filter", "-f", "filter_name", type=click.Choice([f.value for f in TodoFilter]),
              help="Show all, active or completed todos (remembered)")
@click.pass_context
def list_todos(ctx, filter_name):
    """List todos using the saved filter preference."""
    session = get_session(ctx)
    if filter_name:
        session.set_filter(filter_name)
        warn_if_unsaved(session)

    todos = session.visible_todos()
    if not todos:
        console.print(f"[dim]{EMPTY_MESSAGES[session.filter]}[/dim]")
    else:
        console.print(build_todo_table(todos, title=f"Todos ({session.filter.value})"))

    if session.todos:
        stats = session.stats()
        console.print(f"[dim]{stats.active} active, {stats.completed} completed[/dim]")


@main.command()
@click.argument("todo_id")
@click.argument("text")
@click.pass_context
def edit(ctx, todo_id, text):
    """Change the text of a todo."""
    session = get_session(ctx)
    todo_id = resolve_id(session, todo_id)
    if session.edit(todo_id, text):
        console.print(f"[green]✓[/green] Updated: {format_todo_for_display(session.get(todo_id), ctx.obj['use_emoji'])}")
        warn_if_unsaved(session)
    else:
        console.print("[yellow]Nothing changed[/yellow]")


@main.command()
@click.argument("todo_id")
@click.pass_context
def toggle(ctx, todo_id):
    """Mark a todo done, or back to to-do."""
    session = get_session(ctx)
    todo_id = resolve_id(session, todo_id)
    session.toggle(todo_id)
    console.print(format_todo_for_display(session.get(todo_id), ctx.obj["use_emoji"]))
    warn_if_unsaved(session)


@main.command()
@click.argument("todo_id")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete(ctx, todo_id, yes):
    """Delete a todo."""
    session = get_session(ctx)
    todo_id = resolve_id(session, todo_id)
    todo = session.get(todo_id)

    if not destructive_confirmation(ctx, yes, f"Delete '{todo.text}'?")():
        console.print("Cancelled")
        return

    session.delete(todo_id)
    console.print(f"[red]✗[/red] Deleted: {escape(todo.text)}")
    warn_if_unsaved(session)


@main.command()
@click.argument("todo_id")
@click.argument("status", type=click.Choice([s.value for s in TodoStatus]))
@click.pass_context
def status(ctx, todo_id, status):
    """Set the board status of a todo."""
    session = get_session(ctx)
    todo_id = resolve_id(session, todo_id)
    session.update_status(todo_id, status)
    console.print(format_todo_for_display(session.get(todo_id), ctx.obj["use_emoji"]))
    warn_if_unsaved(session)


@main.command()
@click.argument("todo_id")
@click.argument("priority", type=click.Choice([p.value for p in Priority]))
@click.pass_context
def priority(ctx, todo_id, priority):
    """Set the priority of a todo."""
    session = get_session(ctx)
    todo_id = resolve_id(session, todo_id)
    session.update_priority(todo_id, priority)
    console.print(format_todo_for_display(session.get(todo_id), ctx.obj["use_emoji"]))
    warn_if_unsaved(session)


@main.command(name="cycle-status")
@click.argument("todo_id")
@click.pass_context
def cycle_status(ctx, todo_id):
    """Move a todo to the next status (todo, in-progress, done)."""
    session = get_session(ctx)
    todo_id = resolve_id(session, todo_id)
    session.cycle_status(todo_id)
    console.print(format_todo_for_display(session.get(todo_id), ctx.obj["use_emoji"]))
    warn_if_unsaved(session)


@main.command(name="cycle-priority")
@click.argument("todo_id")
@click.pass_context
def cycle_priority(ctx, todo_id):
    """Move a todo to the next priority (low, medium, high)."""
    session = get_session(ctx)
    todo_id = resolve_id(session, todo_id)
    session.cycle_priority(todo_id)
    console.print(format_todo_for_display(session.get(todo_id), ctx.obj["use_emoji"]))
    warn_if_unsaved(session)


@main.command(name="clear-completed")
@click.pass_context
def clear_completed(ctx):
    """Remove all completed todos."""
    session = get_session(ctx)
    removed = session.clear_completed()
    console.print(f"Removed {removed} completed todo{'s' if removed != 1 else ''}")
    warn_if_unsaved(session)


@main.command(name="clear-all")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def clear_all(ctx, yes):
    """Delete every todo and reset the filter. This cannot be undone."""
    session = get_session(ctx)
    confirm = destructive_confirmation(ctx, yes, "Delete all data? This cannot be undone.")

    if session.clear_all(confirm):
        console.print("[red]All data cleared[/red]")
        warn_if_unsaved(session)
    else:
        console.print("Cancelled")


@main.command()
@click.argument("query", required=False, default="")
@click.option("--priority", "-p", "priority_filter", default="all",
              type=click.Choice(["all"] + [p.value for p in Priority]), help="Only this priority")
@click.option("--status", "-s", "status_filter", default="all",
              type=click.Choice(["all"] + [s.value for s in TodoStatus]), help="Only this status")
@click.option("--sort", "sort_order", type=click.Choice([o.value for o in SortOrder]),
              help="Sort order (default from config)")
@click.pass_context
def search(ctx, query, priority_filter, status_filter, sort_order):
    """Search todos by text, priority and status."""
    session = get_session(ctx)
    sort_order = sort_order or ctx.obj["default_sort"]
    results = search_and_sort(session.todos, query, priority_filter, status_filter, sort_order)

    if not results:
        console.print("[dim]No matching todos[/dim]")
        return

    console.print(build_todo_table(results, title=f"Search results ({len(results)})"))
    console.print(build_stats_table(aggregate_stats(results), title="Result statistics"))


@main.command()
@click.pass_context
def board(ctx):
    """Show todos as a kanban board."""
    session = get_session(ctx)
    use_emoji = ctx.obj["use_emoji"]

    panels = []
    for column_status, todos in kanban_grouping(session.todos).items():
        lines = [format_todo_for_display(todo, use_emoji=False) for todo in todos]
        body = "\n".join(lines) if lines else "[dim]No tasks[/dim]"
        title = STATUS_LABELS[column_status]
        if use_emoji:
            title = f"{STATUS_EMOJI[column_status]} {title}"
        panels.append(Panel(body, title=f"{title} ({len(todos)})", expand=True))

    console.print(Columns(panels, equal=True, expand=True))


@main.command()
@click.pass_context
def stats(ctx):
    """Show counts by completion and priority."""
    session = get_session(ctx)
    console.print(build_stats_table(session.stats()))


@main.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def sample(ctx, yes):
    """Add demo todos to the existing data."""
    session = get_session(ctx)

    def confirm() -> bool:
        return yes or click.confirm("Load sample data? It is added to your existing todos.",
                                    default=False)

    added = session.load_sample_data(confirm)
    console.print(f"Added {added} sample todo{'s' if added != 1 else ''}")
    warn_if_unsaved(session)


if __name__ == "__main__":
    main()
