"""Configuration service for managing taskshare configuration.

This module provides the ConfigService class, the single source of truth for
configuration. It handles:

- Loading and saving config.json
- Context management (list, add, remove, switch)
- Choosing the storage strategy for the active context
- Building the notification transport
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir, user_data_dir
from pydantic import ValidationError as PydanticValidationError

from taskshare.exceptions import StorageError, ValidationError
from taskshare.models.config_models import AppConfig, Context
from taskshare.models.strategy import (
    DocumentStrategy,
    SqliteStrategy,
    StorageStrategy,
    StrategyContext,
)
from taskshare.services.notifier import ChangeNotifier
from taskshare.services.task_service import TaskService
from taskshare.services.transports import build_transport
from taskshare.services.user_service import UserService
from taskshare.utils.logger import get_logger, set_level

_APP_NAME = "taskshare"

logger = get_logger().getChild("config")


def build_strategy(context: Context) -> StorageStrategy:
    """Create the storage strategy a context names."""
    if context.type == "document":
        return DocumentStrategy(path=context.source)
    return SqliteStrategy(db_path=context.source)


class ConfigService:
    """Service for managing application configuration.

    Loads ``config.json`` lazily, creates a default one on first run and
    builds the storage strategy for the active context on demand.
    """

    def __init__(self):
        """Initialize the config service."""
        self.config_dir = Path(user_config_dir(_APP_NAME))
        self.config_path = self.config_dir / "config.json"
        self.data_dir = Path(user_data_dir(_APP_NAME))

        # Ensure directories exist
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self._config: AppConfig | None = None
        self._storage_strategy_context: StrategyContext | None = None

    @property
    def config(self) -> AppConfig:
        """Get or load the current configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    @property
    def storage_strategy_context(self) -> StrategyContext:
        """Strategy context for the active context, built on first access."""
        if self._storage_strategy_context is None:
            context = self.get_current_context()
            strategy = build_strategy(context)
            logger.debug("using %s storage at %s", strategy.storage_type, context.source)
            self._storage_strategy_context = StrategyContext(strategy)
        return self._storage_strategy_context

    def load_config(self) -> AppConfig:
        """Load configuration from storage, creating defaults on first run."""
        if self._config is not None:
            return self._config

        try:
            with open(self.config_path, encoding="utf-8") as f:
                self._config = AppConfig.model_validate_json(f.read())
        except FileNotFoundError:
            # Expected on first run
            self._config = self.create_default_config()
        except (OSError, PydanticValidationError) as e:
            raise StorageError(f"Failed to load config {self.config_path}: {e}") from e

        set_level(self._config.logging.level)
        return self._config

    def save_config(self):
        """Save the current configuration to storage."""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(self.config.model_dump_json(indent=4))
            self.config_path.chmod(0o600)
        except OSError as e:
            raise StorageError(f"Failed to save config: {e}") from e

    def create_default_config(self) -> AppConfig:
        """Create a default configuration with a relational and a document context."""
        local_context = Context(
            name="local",
            type="sqlite",
            source=str(self.data_dir / "taskshare.db"),
            description="Relational SQLite storage",
        )
        documents_context = Context(
            name="documents",
            type="document",
            source=str(self.data_dir / "taskshare.json"),
            description="JSON document storage",
        )

        self._config = AppConfig(
            current_context_name=local_context.name,
            contexts=[local_context, documents_context],
        )
        self.save_config()
        return self._config

    def get(self, key: str) -> Any:
        """Read a dotted configuration key such as ``sync.interval``."""
        value: Any = self.config
        for part in key.split("."):
            if not hasattr(value, part):
                raise ValidationError([key], f"Unknown config key: {key}")
            value = getattr(value, part)
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a dotted configuration key, validating the whole config."""
        parts = key.split(".")
        data = self.config.model_dump()
        target = data
        for part in parts[:-1]:
            if not isinstance(target.get(part), dict):
                raise ValidationError([key], f"Unknown config key: {key}")
            target = target[part]
        if parts[-1] not in target or isinstance(target[parts[-1]], (dict, list)):
            raise ValidationError([key], f"Unknown config key: {key}")
        target[parts[-1]] = value

        try:
            self._config = AppConfig.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic(e) from e
        self.save_config()
        if key == "current_context_name":
            self._storage_strategy_context = None
        if key == "logging.level":
            set_level(self._config.logging.level)

    def list_contexts(self) -> list[Context]:
        """List all available contexts."""
        return self.config.contexts

    def get_current_context(self) -> Context:
        """Get the currently active context.

        Raises:
            ValueError: If the current context is not configured
        """
        return self.config.get_current_context()

    def use_context(self, name: str) -> Context:
        """Set the current context by name."""
        context = self.config.get_context(name)
        self.config.current_context_name = context.name
        self._storage_strategy_context = None
        self.save_config()
        return context

    def add_context(self, context: Context):
        """Add a new context to the configuration."""
        self.config.add_context(context)
        self.save_config()

    def remove_context(self, name: str):
        """Remove a context from the configuration."""
        self.config.remove_context(name)
        self.save_config()

    def set_current_user(self, identity: str | None):
        """Remember the acting identity (id or email) for later commands."""
        self.config.current_user = identity
        self.save_config()


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Get a cached ConfigService instance."""
    config_service = ConfigService()
    config_service.load_config()
    return config_service


def get_storage_strategy_context() -> StrategyContext:
    """Get the StrategyContext for the active configuration context."""
    return get_config_service().storage_strategy_context


def get_notifier() -> ChangeNotifier:
    """ChangeNotifier over the configured transport; close it when done."""
    return ChangeNotifier(build_transport(get_config_service().config.notifications))


def get_task_service() -> TaskService:
    """TaskService wired to the active storage and configured transport.

    Use it as ``async with get_task_service() as service`` so the transport
    is closed when the command ends.
    """
    context = get_storage_strategy_context()
    return TaskService(context.task_repository, context.user_repository, get_notifier())


def get_user_service() -> UserService:
    """UserService wired to the active storage and configured transport."""
    context = get_storage_strategy_context()
    return UserService(context.user_repository, context.task_repository, get_notifier())
