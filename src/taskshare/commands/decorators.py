"""Decorators and shared helpers for command functions."""

import asyncio
import functools
import inspect
import time
import traceback
from collections.abc import Callable

import typer

from taskshare.exceptions import NotFound, TaskShareError
from taskshare.models import User
from taskshare.services.config_service import get_config_service, get_user_service
from taskshare.utils import exit_codes
from taskshare.utils.logger import get_logger
from taskshare.utils.ui.formatters import format_error


class AppError(TaskShareError):
    """Command-level error with an explicit exit code."""

    def __init__(self, message: str, exit_code: int = exit_codes.ERROR_GENERAL):
        super().__init__(message)
        self.exit_code = exit_code


async def resolve_actor(as_identity: str | None = None) -> User:
    """Return the acting identity: ``--as`` if given, else the logged-in user.

    Raises:
        AppError: If nobody is logged in or the identity is unknown or inactive
    """
    identity = as_identity or get_config_service().config.current_user
    if not identity:
        raise AppError(
            "No acting user. Use 'taskshare users login EMAIL' or pass --as.",
            exit_codes.ERROR_AUTH_FAILURE,
        )
    try:
        user = await get_user_service().find(identity)
    except NotFound as e:
        raise AppError(f"Unknown user: {identity}", exit_codes.ERROR_AUTH_FAILURE) from e
    if not user.is_active:
        raise AppError(f"User {user.email} is deactivated", exit_codes.ERROR_AUTH_FAILURE)
    return user


def command_wrapper(func: Callable):
    """Log the command, run it (awaiting coroutines) and map errors to exit codes."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger()
        cmd = func.__name__
        start = time.monotonic()
        logger.info("command started: %s", cmd)
        try:
            if inspect.iscoroutinefunction(func):
                result = asyncio.run(func(*args, **kwargs))
            else:
                result = func(*args, **kwargs)

            logger.info("command completed: %s (%.3fs)", cmd, time.monotonic() - start)
            return result

        except TaskShareError as e:
            logger.error(
                "command failed: %s (%.3fs) - %s: %s",
                cmd,
                time.monotonic() - start,
                type(e).__name__,
                e.message,
            )
            format_error(e.message)
            raise typer.Exit(code=e.exit_code) from e

        except typer.Exit:
            raise

        except KeyboardInterrupt as e:
            logger.info("command interrupted: %s", cmd)
            raise typer.Exit(code=130) from e

        except Exception as e:
            logger.error(
                "command failed: %s (%.3fs) - %s\n%s",
                cmd,
                time.monotonic() - start,
                str(e),
                traceback.format_exc(),
            )
            format_error(f"An unexpected error occurred: {str(e)}")
            raise typer.Exit(code=exit_codes.ERROR_GENERAL) from e

    return wrapper
