"""Configuration management commands."""

from typing import Annotated

import typer

from taskshare.exceptions import ValidationError
from taskshare.models.config_models import Context
from taskshare.services.config_service import get_config_service
from taskshare.utils.ui.console import get_console
from taskshare.utils.ui.formatters import format_output, format_success

from .decorators import command_wrapper

app = typer.Typer(help="Configuration management commands")
console = get_console()


@app.command("show")
@command_wrapper
def show_config(
    output: Annotated[str, typer.Option("--output", "-o", help="Output format")] = "yaml",
) -> None:
    """Show the current configuration."""
    format_output(get_config_service().config.model_dump(mode="json"), output)


@app.command("get")
@command_wrapper
def get_config(
    key: Annotated[str, typer.Argument(help="Configuration key (e.g. sync.interval)")],
) -> None:
    """Print one configuration value."""
    console.print(get_config_service().get(key))


@app.command("set")
@command_wrapper
def set_config(
    key: Annotated[str, typer.Argument(help="Configuration key (e.g. sync.interval)")],
    value: Annotated[str, typer.Argument(help="Configuration value")],
) -> None:
    """Set a configuration value."""
    get_config_service().set(key, value)
    format_success(f"Configuration '{key}' set to '{value}'")


@app.command("contexts")
@command_wrapper
def list_contexts(
    output: Annotated[str, typer.Option("--output", "-o", help="Output format")] = "table",
) -> None:
    """List storage contexts; the active one is marked."""
    service = get_config_service()
    current = service.config.current_context_name
    rows = [
        {"current": ctx.name == current, **ctx.model_dump()}
        for ctx in service.list_contexts()
    ]
    format_output(rows, output)


@app.command("use")
@command_wrapper
def use_context(
    name: Annotated[str, typer.Argument(help="Context name")],
) -> None:
    """Switch the active storage context."""
    try:
        context = get_config_service().use_context(name)
    except ValueError as e:
        raise ValidationError(["context"], str(e)) from e
    format_success(f"Switched to context '{context.name}' ({context.type})")


@app.command("add-context")
@command_wrapper
def add_context(
    name: Annotated[str, typer.Argument(help="Unique context name")],
    source: Annotated[str, typer.Argument(help="Database or document file path")],
    type_: Annotated[
        str, typer.Option("--type", help="sqlite or document")
    ] = "sqlite",
    description: Annotated[
        str, typer.Option("--description", help="Human-readable description")
    ] = "",
) -> None:
    """Register a new storage context."""
    try:
        context = Context(name=name, type=type_, source=source, description=description)
        get_config_service().add_context(context)
    except ValueError as e:
        # pydantic.ValidationError is a ValueError as well
        raise ValidationError(["context"], str(e)) from e
    format_success(f"Added context '{name}'")


@app.command("remove-context")
@command_wrapper
def remove_context(
    name: Annotated[str, typer.Argument(help="Context name")],
) -> None:
    """Remove a storage context that is not in use."""
    try:
        get_config_service().remove_context(name)
    except ValueError as e:
        raise ValidationError(["context"], str(e)) from e
    format_success(f"Removed context '{name}'")
