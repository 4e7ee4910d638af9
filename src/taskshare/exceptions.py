"""Custom exceptions for taskshare.

Every error raised by the services derives from TaskShareError and carries
the semantic exit code the CLI reports for it.
"""

from __future__ import annotations

from taskshare.utils import exit_codes


class TaskShareError(Exception):
    """Base exception for all taskshare errors."""

    exit_code: int = exit_codes.ERROR_GENERAL

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(TaskShareError):
    """Raised when one or more fields are malformed or out of range."""

    exit_code = exit_codes.ERROR_INVALID_ARGS

    def __init__(self, fields: list[str], message: str | None = None):
        self.fields = list(fields)
        super().__init__(message or f"Invalid value for: {', '.join(self.fields)}")

    @classmethod
    def from_pydantic(cls, error) -> ValidationError:
        """Build from a pydantic.ValidationError, keeping the offending fields."""
        fields: list[str] = []
        messages: list[str] = []
        for item in error.errors():
            field = ".".join(str(part) for part in item["loc"]) or "__root__"
            if field not in fields:
                fields.append(field)
            messages.append(f"{field}: {item['msg']}")
        return cls(fields, "; ".join(messages))


class PermissionDenied(TaskShareError):
    """Raised when the caller lacks owner or edit rights on a task."""

    exit_code = exit_codes.ERROR_PERMISSION_DENIED


class NotFound(TaskShareError):
    """Raised when a task or identity does not exist (or is deleted)."""

    exit_code = exit_codes.ERROR_NOT_FOUND


class UnknownRecipient(TaskShareError):
    """Raised when none of the share targets resolves to an active identity."""

    exit_code = exit_codes.ERROR_NOT_FOUND

    def __init__(self, targets: list[str]):
        self.targets = list(targets)
        super().__init__(
            f"No active user found for: {', '.join(self.targets) or '(none)'}"
        )


class ConflictError(TaskShareError):
    """Raised when an update carries a stale task version."""

    exit_code = exit_codes.ERROR_CONFLICT

    def __init__(self, task_id: str, expected: int, actual: int | None):
        self.task_id = task_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Task {task_id} was modified concurrently "
            f"(expected version {expected}, found {actual})"
        )


class TransportError(TaskShareError):
    """Raised by a notification transport when dispatch fails.

    The notifier logs and swallows it during fan-out. It only reaches a
    caller when no transport can be built from the configuration.
    """

    exit_code = exit_codes.ERROR_NETWORK


class StorageError(TaskShareError):
    """Raised when the backing store fails (connectivity, constraints, decoding)."""

    exit_code = exit_codes.ERROR_STORAGE
