"""Configuration models.

A context names one storage backend (relational SQLite file or JSON document
store); the active context decides which repositories the services get.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class NotificationConfig(BaseModel):
    """Change notification transport configuration."""

    transport: Literal["log", "webhook", "none"] = Field(default="log")
    endpoint: str | None = Field(
        default=None, description="Base URL of the push service (webhook only)"
    )
    timeout: float = Field(default=5.0, gt=0)


class SyncConfig(BaseModel):
    """Client refetch configuration."""

    interval: int = Field(default=30, ge=1, description="Poll interval in seconds")


class OutputConfig(BaseModel):
    """Output configuration."""

    format: Literal["pretty", "table", "json", "yaml", "quiet"] = Field(default="pretty")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")


class Context(BaseModel):
    """Context configuration for a storage backend."""

    name: str = Field(..., description="Unique context name")
    type: Literal["sqlite", "document"] = Field(..., description="Storage backend")
    source: str = Field(..., description="Database or document file path")
    description: str = Field(default="", description="Human-readable description")

    @field_validator("source")
    @classmethod
    def validate_source(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("source cannot be empty")
        return v.strip()


class AppConfig(BaseModel):
    """Main taskshare configuration"""

    current_context_name: str = Field(
        default="local", description="Active context name"
    )
    contexts: list[Context] = Field(
        default_factory=list, description="Available contexts"
    )
    current_user: str | None = Field(
        default=None, description="Acting identity (id or email)"
    )

    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def get_context(self, name: str) -> Context:
        """Get context by name."""
        for ctx in self.contexts:
            if ctx.name == name:
                return ctx
        raise ValueError(f"Context '{name}' not found")

    def get_current_context(self) -> Context:
        """Get the currently active context."""
        return self.get_context(self.current_context_name)

    def add_context(self, context: Context):
        """Add a new context.

        Raises:
            ValueError: If context with the same name already exists
        """
        existing = [ctx for ctx in self.contexts if ctx.name == context.name]
        if existing:
            raise ValueError(
                f"Context '{context.name}' already exists."
                " Use a different name or remove the existing context first."
            )
        self.contexts.append(context)

    def remove_context(self, name: str):
        """Remove a context by name."""
        if name == self.current_context_name:
            raise ValueError(f"Context '{name}' is in use")
        original_len = len(self.contexts)
        self.contexts = [ctx for ctx in self.contexts if ctx.name != name]
        if len(self.contexts) == original_len:
            raise ValueError(f"Context '{name}' not found")
        return True
