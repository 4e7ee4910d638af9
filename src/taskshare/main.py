"""Main entry point for the taskshare CLI."""

import typer

from taskshare import __version__
from taskshare.commands import config, tasks, users
from taskshare.services.config_service import get_config_service
from taskshare.utils.ui.console import get_console

app = typer.Typer(
    name="taskshare",
    help="Shared task management with change notifications",
    no_args_is_help=True,
)

console = get_console()

app.add_typer(users.app, name="users", help="User management commands")
app.add_typer(tasks.app, name="tasks", help="Task management commands")
app.add_typer(config.app, name="config", help="Configuration management")


@app.command()
def version() -> None:
    """Show version and active storage context."""
    console.print(f"[bold]taskshare[/bold] version [cyan]{__version__}[/cyan]")
    context = get_config_service().get_current_context()
    console.print(f"[dim]context: {context.name} ({context.type}) {context.source}[/dim]")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
