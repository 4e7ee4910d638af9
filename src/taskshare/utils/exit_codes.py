"""
Exit codes for taskshare.

Semantic exit codes so scripts calling the CLI can tell what happened
and react without parsing output.
"""

# Success
SUCCESS = 0

# General error (unspecified)
ERROR_GENERAL = 1

# Invalid arguments or validation error
ERROR_INVALID_ARGS = 2

# No acting identity configured, or identity deactivated
ERROR_AUTH_FAILURE = 3

# Notification endpoint unreachable
ERROR_NETWORK = 4

# Resource not found
ERROR_NOT_FOUND = 5

# Permission denied
ERROR_PERMISSION_DENIED = 6

# Stale version on update
ERROR_CONFLICT = 7

# Backing store failure
ERROR_STORAGE = 8


def get_exit_code_name(code: int) -> str:
    """Get the name of an exit code for display purposes."""
    code_names = {
        SUCCESS: "SUCCESS",
        ERROR_GENERAL: "ERROR_GENERAL",
        ERROR_INVALID_ARGS: "ERROR_INVALID_ARGS",
        ERROR_AUTH_FAILURE: "ERROR_AUTH_FAILURE",
        ERROR_NETWORK: "ERROR_NETWORK",
        ERROR_NOT_FOUND: "ERROR_NOT_FOUND",
        ERROR_PERMISSION_DENIED: "ERROR_PERMISSION_DENIED",
        ERROR_CONFLICT: "ERROR_CONFLICT",
        ERROR_STORAGE: "ERROR_STORAGE",
    }
    return code_names.get(code, f"UNKNOWN({code})")


def get_exit_code_description(code: int) -> str:
    """Get a human-readable description of an exit code."""
    descriptions = {
        SUCCESS: "Command executed successfully",
        ERROR_GENERAL: "A general error occurred",
        ERROR_INVALID_ARGS: "Invalid arguments or validation error",
        ERROR_AUTH_FAILURE: "No active identity - run 'taskshare users login'",
        ERROR_NETWORK: "Notification endpoint unreachable",
        ERROR_NOT_FOUND: "Resource not found",
        ERROR_PERMISSION_DENIED: "Permission denied",
        ERROR_CONFLICT: "Task changed since it was read - reload and retry",
        ERROR_STORAGE: "Storage backend failure",
    }
    return descriptions.get(code, "Unknown error")
