"""Output formatters for different formats."""

import json
from datetime import UTC, datetime
from typing import Any

import yaml
from rich.table import Table
from rich.text import Text

from taskshare.utils.ui.console import get_console

console = get_console()


def format_output(data: Any, output_format: str = "pretty", compact: bool = False) -> None:
    """Format and display output based on format."""
    if output_format == "json":
        print(json.dumps(data, indent=2, default=str))
    elif output_format == "yaml":
        print(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
    elif output_format == "table":
        format_table(data)
    elif output_format == "quiet":
        format_quiet(data)
    else:
        format_pretty(data, compact=compact)


def format_table(data: Any) -> None:
    """Format data as a table."""
    if not data:
        console.print("[yellow]No data to display[/yellow]")
        return

    if isinstance(data, list):
        if isinstance(data[0], dict):
            format_dict_table(data)
        else:
            for item in data:
                console.print(item)
    elif isinstance(data, dict):
        format_single_item(data)
    else:
        console.print(data)


def _cell(value: Any) -> str:
    if isinstance(value, bool):
        return "✓" if value else "✗"
    if isinstance(value, list):
        return ", ".join(
            v.get("user_id", "") if isinstance(v, dict) else _cell(v) for v in value
        )
    if value is None:
        return "-"
    return str(value)


def format_dict_table(items: list[dict]) -> None:
    """Format a list of dictionaries as a table."""
    if not items:
        console.print("[yellow]No items found[/yellow]")
        return

    columns = list(items[0].keys())
    table = Table(show_header=True, header_style="bold magenta")
    for col in columns:
        table.add_column(col.replace("_", " ").title())
    for item in items:
        table.add_row(*[_cell(item.get(col)) for col in columns])

    console.print(table)


def format_single_item(item: dict) -> None:
    """Format a single item as key-value pairs."""
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="white")
    for key, value in item.items():
        table.add_row(key.replace("_", " ").title(), _cell(value))

    console.print(table)


def format_error(message: str) -> None:
    """Format and display an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def format_warning(message: str) -> None:
    """Format and display a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def format_info(message: str) -> None:
    """Format and display an info message."""
    console.print(f"[bold blue]Info:[/bold blue] {message}")


# ============================================================================
# Pretty Format Implementation
# ============================================================================

PRIORITY_ICONS = {
    "high": "🟠",
    "medium": "🟡",
    "low": "🟢",
}

PRIORITY_NAMES = {
    "high": "HIGH PRIORITY",
    "medium": "MEDIUM PRIORITY",
    "low": "LOW PRIORITY",
}

PRIORITY_COLORS = {
    "high": "bold orange3",
    "medium": "bold yellow",
    "low": "green",
}

STATUS_ICONS = {
    "pending": "⬜",
    "in_progress": "🔄",
    "completed": "☑️",
}


def format_pretty(data: Any, compact: bool = False) -> None:
    """Format data in pretty format with colors and icons."""
    if not data:
        console.print("[yellow]No data to display[/yellow]")
        return

    if isinstance(data, list):
        if isinstance(data[0], dict) and "owner_id" in data[0]:
            format_tasks_pretty(data, compact)
        else:
            for item in data:
                if isinstance(item, dict):
                    label = item.get("email") or item.get("name") or item.get("id", "Item")
                    console.print(f"• {label}")
                else:
                    console.print(f"• {item}")
    elif isinstance(data, dict):
        if "owner_id" in data:
            format_task_item(data, compact=False)
        else:
            for key, value in data.items():
                console.print(f"[cyan]{key.replace('_', ' ').title()}:[/cyan] {_cell(value)}")
    else:
        console.print(data)


def format_tasks_pretty(tasks: list[dict], compact: bool = False) -> None:
    """Format tasks grouped by priority, overdue ones last."""
    open_tasks = [t for t in tasks if t.get("status") != "completed"]

    header = Text()
    header.append("📋 Tasks ", style="bold cyan")
    header.append(f"({len(open_tasks)} open, {len(tasks)} total)", style="dim")
    console.print(header)
    console.print()

    overdue_tasks = []
    tasks_by_priority: dict[str, list[dict]] = {"high": [], "medium": [], "low": []}
    for task in tasks:
        if task.get("status") != "completed" and is_overdue(task.get("due_date")):
            overdue_tasks.append(task)
        else:
            tasks_by_priority.setdefault(task.get("priority", "medium"), []).append(task)

    for priority in ("high", "medium", "low"):
        priority_tasks = tasks_by_priority[priority]
        if not priority_tasks:
            continue
        console.print(
            f"{PRIORITY_ICONS[priority]} {PRIORITY_NAMES[priority]}",
            style=PRIORITY_COLORS[priority],
        )
        for task in priority_tasks:
            format_task_item(task, compact, indent="  ")
        console.print()

    if overdue_tasks:
        console.print(f"⏱️  OVERDUE ({len(overdue_tasks)})", style="bold red")
        for task in overdue_tasks:
            format_task_item(task, compact, indent="  ")
        console.print()


def format_task_item(task: dict, compact: bool = False, indent: str = "") -> None:
    """Format a single task item."""
    status = task.get("status", "pending")
    is_completed = status == "completed"
    title = task.get("title", "Untitled")

    line = Text(f"{indent}{STATUS_ICONS.get(status, '⬜')} ")
    if is_completed:
        title_style = "dim"
    else:
        title_style = "bold" if task.get("priority") == "high" else ""
    line.append(title, style=title_style)
    for tag in task.get("tags", [])[: 3 if compact else None]:
        line.append(f" #{tag}", style="blue")
    if compact and task.get("due_date"):
        overdue = is_overdue(task["due_date"]) and not is_completed
        line.append(
            f" • {format_due_date(task['due_date'])}",
            style="bold red" if overdue else "cyan",
        )
    console.print(line)
    if compact:
        return

    meta: list[tuple[str, str]] = []
    if task.get("due_date"):
        overdue = is_overdue(task["due_date"]) and not is_completed
        meta.append((format_due_date(task["due_date"]), "bold red" if overdue else "cyan"))
    elif is_completed and task.get("completed_at"):
        meta.append((f"Completed {format_relative_time(task['completed_at'])}", "dim green"))
    shares = task.get("share_list", [])
    if shares:
        meta.append((f"Shared with {len(shares)}", "magenta"))
    if task.get("permission"):
        meta.append((f"Access: {task['permission']}", "yellow"))
    if task.get("id"):
        meta.append((f"#{task['id'][:8]}", "dim"))
    meta.append((f"v{task.get('version', 1)}", "dim"))

    meta_line = Text()
    meta_line.append(f"{indent}   └─ ", style="dim")
    for i, (text, style) in enumerate(meta):
        if i > 0:
            meta_line.append(" • ", style="dim")
        meta_line.append(text, style=style)
    console.print(meta_line)


def format_quiet(data: Any) -> None:
    """Format output in quiet mode (IDs only)."""
    if isinstance(data, list):
        for item in data:
            if isinstance(item, dict) and "id" in item:
                print(item["id"])
    elif isinstance(data, dict) and "id" in data:
        print(data["id"])


# ============================================================================
# Helper Functions
# ============================================================================


def _parse(value: str | datetime) -> datetime:
    if isinstance(value, datetime):
        date = value
    else:
        date = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if date.tzinfo is None:
        date = date.replace(tzinfo=UTC)
    return date


def is_overdue(due_date: str | datetime | None) -> bool:
    """Check if a due date has passed."""
    if not due_date:
        return False
    try:
        return _parse(due_date) < datetime.now(UTC)
    except ValueError:
        return False


def format_due_date(value: str | datetime) -> str:
    """Format due date as HH:MM DD/MM DayOfWeek, adding the year when it differs."""
    try:
        date = _parse(value)
    except (ValueError, AttributeError):
        return str(value) if value else ""

    day_fmt = "%d/%m" if date.year == datetime.now(UTC).year else "%d/%m/%Y"
    return date.strftime(f"%H:%M {day_fmt} %a")


def format_relative_time(value: str | datetime | None) -> str:
    """Format timestamp as relative time."""
    if not value:
        return ""
    try:
        date = _parse(value)
    except (ValueError, AttributeError):
        return ""

    seconds = (datetime.now(UTC) - date).total_seconds()
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{int(seconds / 60)}m ago"
    if seconds < 86400:
        return f"{int(seconds / 3600)}h ago"
    return f"{int(seconds / 86400)}d ago"
