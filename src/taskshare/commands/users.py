"""Identity commands: register, login, deactivate."""

from typing import Annotated

import typer

from taskshare.services.config_service import get_config_service, get_user_service
from taskshare.utils.ui.console import get_console
from taskshare.utils.ui.formatters import format_info, format_output, format_success

from .decorators import command_wrapper, resolve_actor

app = typer.Typer(help="User management commands")
console = get_console()

OutputOption = Annotated[str, typer.Option("--output", "-o", help="Output format")]


@app.command("register")
@command_wrapper
async def register_user(
    email: Annotated[str, typer.Argument(help="Email address (the sharing key)")],
    name: Annotated[str, typer.Option("--name", "-n", help="Display name")] = "",
    login: Annotated[
        bool, typer.Option("--login", help="Also make this the acting user")
    ] = False,
) -> None:
    """Register a user, or re-activate an existing one."""
    async with get_user_service() as service:
        user = await service.register(email, name)
    format_success(f"Registered {user.email} ({user.id})")
    if login:
        get_config_service().set_current_user(user.id)
        format_info(f"Now acting as {user.email}")


@app.command("list")
@command_wrapper
async def list_users(output: OutputOption = "table") -> None:
    """List every registered user."""
    async with get_user_service() as service:
        users = await service.list_users()
    format_output([u.model_dump(mode="json") for u in users], output)


@app.command("search")
@command_wrapper
async def search_users(
    query: Annotated[str, typer.Argument(help="Part of a name or email")],
    as_user: Annotated[
        str | None, typer.Option("--as", help="Exclude this user from the results")
    ] = None,
    output: OutputOption = "table",
) -> None:
    """Find active users to share with."""
    exclude_id = None
    if as_user or get_config_service().config.current_user:
        exclude_id = (await resolve_actor(as_user)).id
    async with get_user_service() as service:
        users = await service.search(query, exclude_id=exclude_id)
    if not users and output in ("pretty", "table"):
        format_info(f"No users match '{query.strip()}'")
        return
    format_output([u.model_dump(mode="json") for u in users], output)


@app.command("deactivate")
@command_wrapper
async def deactivate_user(
    user: Annotated[str, typer.Argument(help="User id or email")],
) -> None:
    """Deactivate a user; they lose every grant and can no longer act."""
    async with get_user_service() as service:
        deactivated = await service.deactivate(user)
    format_success(f"Deactivated {deactivated.email}")


@app.command("login")
@command_wrapper
async def login(
    user: Annotated[str, typer.Argument(help="User id or email")],
) -> None:
    """Set the acting user for subsequent commands."""
    actor = await resolve_actor(user)
    get_config_service().set_current_user(actor.id)
    format_success(f"Now acting as {actor.email}")


@app.command("logout")
@command_wrapper
def logout() -> None:
    """Forget the acting user."""
    get_config_service().set_current_user(None)
    format_success("Logged out")


@app.command("whoami")
@command_wrapper
async def whoami(output: OutputOption = "pretty") -> None:
    """Show the acting user."""
    actor = await resolve_actor()
    if output == "pretty":
        console.print(f"[bold]{actor.email}[/bold] [dim]{actor.name} ({actor.id})[/dim]")
    else:
        format_output(actor.model_dump(mode="json"), output)
