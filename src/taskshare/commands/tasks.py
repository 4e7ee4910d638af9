"""Task management commands."""

import asyncio
from datetime import datetime
from typing import Annotated

import typer
from pydantic import ValidationError as PydanticValidationError

from taskshare.exceptions import ValidationError
from taskshare.models import Task, TaskFilters, TaskStatus
from taskshare.services.config_service import get_config_service, get_task_service
from taskshare.utils.ui.console import get_console
from taskshare.utils.ui.formatters import (
    format_info,
    format_output,
    format_success,
    format_warning,
)

from .decorators import command_wrapper, resolve_actor

app = typer.Typer(help="Task management commands")
console = get_console()

AsOption = Annotated[
    str | None, typer.Option("--as", help="Act as this user (id or email)")
]
OutputOption = Annotated[
    str | None, typer.Option("--output", "-o", help="Output format")
]


def _output(output: str | None) -> str:
    return output or get_config_service().config.output.format


def _parse_due(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise ValidationError(["due_date"], f"Invalid date: {value}") from e


def _task_data(task: Task, **extra) -> dict:
    data = task.model_dump(mode="json")
    data.update(extra)
    return data


@app.command("add")
@command_wrapper
async def add_task(
    title: Annotated[str, typer.Argument(help="Task title (3-200 characters)")],
    description: Annotated[
        str | None, typer.Option("--description", "-d", help="Description")
    ] = None,
    priority: Annotated[
        str, typer.Option("--priority", "-p", help="low, medium or high")
    ] = "medium",
    status: Annotated[
        str, typer.Option("--status", help="pending, in_progress or completed")
    ] = "pending",
    due: Annotated[
        str | None, typer.Option("--due", help="Due date (ISO 8601)")
    ] = None,
    tags: Annotated[
        list[str] | None, typer.Option("--tag", "-t", help="Tag (repeatable)")
    ] = None,
    as_user: AsOption = None,
    output: OutputOption = None,
) -> None:
    """Create a task owned by the acting user."""
    actor = await resolve_actor(as_user)
    async with get_task_service() as service:
        task = await service.create_task(
            actor.id,
            title,
            description=description,
            priority=priority,
            status=status,
            due_date=_parse_due(due),
            tags=tags,
        )
    format_success(f"Created task {task.id[:8]}: {task.title}")
    if _output(output) != "pretty":
        format_output(_task_data(task), _output(output))


@app.command("list")
@command_wrapper
async def list_tasks(
    status: Annotated[str | None, typer.Option("--status", help="Filter by status")] = None,
    priority: Annotated[
        str | None, typer.Option("--priority", help="Filter by priority")
    ] = None,
    search: Annotated[
        str | None, typer.Option("--search", "-s", help="Search title and description")
    ] = None,
    due: Annotated[
        str | None, typer.Option("--due", help="today or overdue")
    ] = None,
    sort: Annotated[
        str, typer.Option("--sort", help="e.g. created_at:desc, due_date:asc, priority:desc")
    ] = "created_at:desc",
    limit: Annotated[int | None, typer.Option("--limit", help="Limit results")] = None,
    offset: Annotated[int, typer.Option("--offset", help="Pagination offset")] = 0,
    compact: Annotated[bool, typer.Option("--compact", help="Compact output")] = False,
    watch: Annotated[
        bool, typer.Option("--watch", "-w", help="Refetch at the configured sync interval")
    ] = False,
    as_user: AsOption = None,
    output: OutputOption = None,
) -> None:
    """List tasks owned by or shared with the acting user."""
    try:
        filters = TaskFilters(
            status=status,
            priority=priority,
            search=search,
            due=due,
            sort=sort,
            limit=limit,
            offset=offset,
        )
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e

    actor = await resolve_actor(as_user)
    interval = get_config_service().config.sync.interval
    output_format = _output(output)

    async with get_task_service() as service:
        while True:
            page = await service.list_page(actor.id, filters)
            if watch:
                console.clear()
                format_info(f"Refreshing every {interval}s (Ctrl+C to stop)")
            format_output(
                [_task_data(t) for t in page.tasks], output_format, compact=compact
            )
            if output_format in ("pretty", "table") and (page.has_next or page.has_prev):
                format_info(
                    f"Showing {page.offset + 1}-{page.offset + len(page.tasks)}"
                    f" of {page.total} tasks"
                )
            if not watch:
                return
            await asyncio.sleep(interval)


@app.command("show")
@command_wrapper
async def show_task(
    task_id: Annotated[str, typer.Argument(help="Task ID or prefix")],
    as_user: AsOption = None,
    output: OutputOption = None,
) -> None:
    """Show one task with the acting user's permission on it."""
    actor = await resolve_actor(as_user)
    async with get_task_service() as service:
        resolved = await service.resolve_task_id(actor.id, task_id)
        task, permission = await service.get_task(actor.id, resolved)
    format_output(_task_data(task, permission=permission.value), _output(output))


@app.command("update")
@command_wrapper
async def update_task(
    task_id: Annotated[str, typer.Argument(help="Task ID or prefix")],
    title: Annotated[str | None, typer.Option("--title", help="New title")] = None,
    description: Annotated[
        str | None, typer.Option("--description", "-d", help="New description")
    ] = None,
    status: Annotated[str | None, typer.Option("--status", help="New status")] = None,
    priority: Annotated[
        str | None, typer.Option("--priority", "-p", help="New priority")
    ] = None,
    due: Annotated[str | None, typer.Option("--due", help="New due date (ISO 8601)")] = None,
    clear_due: Annotated[bool, typer.Option("--clear-due", help="Remove the due date")] = False,
    tags: Annotated[
        list[str] | None, typer.Option("--tag", "-t", help="Replace tags (repeatable)")
    ] = None,
    expect_version: Annotated[
        int | None,
        typer.Option("--expect-version", help="Fail if the task is no longer at this version"),
    ] = None,
    as_user: AsOption = None,
    output: OutputOption = None,
) -> None:
    """Update a task. Collaborators with edit access cannot change the title."""
    fields: dict = {}
    if title is not None:
        fields["title"] = title
    if description is not None:
        fields["description"] = description
    if status is not None:
        fields["status"] = status
    if priority is not None:
        fields["priority"] = priority
    if clear_due:
        fields["due_date"] = None
    elif due is not None:
        fields["due_date"] = _parse_due(due)
    if tags is not None:
        fields["tags"] = tags
    if not fields:
        raise ValidationError([], "Nothing to update")

    actor = await resolve_actor(as_user)
    async with get_task_service() as service:
        resolved = await service.resolve_task_id(actor.id, task_id)
        if expect_version is None:
            current, _ = await service.get_task(actor.id, resolved)
            expect_version = current.version

        task = await service.update_task(
            actor.id, resolved, expected_version=expect_version, **fields
        )
    format_success(f"Updated task {task.id[:8]} (v{task.version})")
    if _output(output) != "pretty":
        format_output(_task_data(task), _output(output))


@app.command("complete")
@command_wrapper
async def complete_task(
    task_id: Annotated[str, typer.Argument(help="Task ID or prefix")],
    as_user: AsOption = None,
) -> None:
    """Mark a task as completed."""
    actor = await resolve_actor(as_user)
    async with get_task_service() as service:
        resolved = await service.resolve_task_id(actor.id, task_id)
        current, _ = await service.get_task(actor.id, resolved)
        task = await service.update_task(
            actor.id, resolved, expected_version=current.version, status=TaskStatus.COMPLETED
        )
    format_success(f"✓ Completed: {task.title}")


@app.command("delete")
@command_wrapper
async def delete_task(
    task_id: Annotated[str, typer.Argument(help="Task ID or prefix")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
    as_user: AsOption = None,
) -> None:
    """Delete a task (owner only). Collaborators lose it too."""
    actor = await resolve_actor(as_user)
    async with get_task_service() as service:
        resolved = await service.resolve_task_id(actor.id, task_id)
        if not yes and not typer.confirm(f"Delete task {resolved[:8]}?"):
            format_info("Cancelled")
            raise typer.Exit(0)
        task = await service.delete_task(actor.id, resolved)
    format_success(f"Deleted task {task.id[:8]}: {task.title}")


@app.command("share")
@command_wrapper
async def share_task(
    task_id: Annotated[str, typer.Argument(help="Task ID or prefix")],
    targets: Annotated[list[str], typer.Argument(help="User ids or emails")],
    permission: Annotated[
        str, typer.Option("--permission", "-p", help="view or edit")
    ] = "view",
    as_user: AsOption = None,
) -> None:
    """Share a task with other users (owner only)."""
    actor = await resolve_actor(as_user)
    async with get_task_service() as service:
        resolved = await service.resolve_task_id(actor.id, task_id)
        result = await service.share(actor.id, resolved, targets, permission)
    for warning in result.warnings:
        format_warning(f"{warning.target}: {warning.reason}")
    shared = len(result.new_recipients) + len(result.updated_recipients)
    format_success(f"Shared task {resolved[:8]} with {shared} user(s) ({permission})")


@app.command("unshare")
@command_wrapper
async def unshare_task(
    task_id: Annotated[str, typer.Argument(help="Task ID or prefix")],
    target: Annotated[str, typer.Argument(help="User id or email")],
    as_user: AsOption = None,
) -> None:
    """Revoke a user's access to a task (owner only)."""
    actor = await resolve_actor(as_user)
    async with get_task_service() as service:
        resolved = await service.resolve_task_id(actor.id, task_id)
        await service.unshare(actor.id, resolved, target)
    format_success(f"{target} no longer has access to task {resolved[:8]}")


@app.command("collaborators")
@command_wrapper
async def list_collaborators(
    task_id: Annotated[str, typer.Argument(help="Task ID or prefix")],
    as_user: AsOption = None,
    output: OutputOption = "table",
) -> None:
    """List who a task is shared with."""
    actor = await resolve_actor(as_user)
    async with get_task_service() as service:
        resolved = await service.resolve_task_id(actor.id, task_id)
        collaborators = await service.collaborators(actor.id, resolved)
    format_output([c.model_dump(mode="json") for c in collaborators], _output(output))


@app.command("stats")
@command_wrapper
async def task_stats(
    as_user: AsOption = None,
    output: OutputOption = "table",
) -> None:
    """Show task counts for the acting user."""
    actor = await resolve_actor(as_user)
    async with get_task_service() as service:
        stats = await service.stats(actor.id)
    format_output(stats.model_dump(), _output(output))
