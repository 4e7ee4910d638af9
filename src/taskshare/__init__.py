"""taskshare - shared task management with change notifications."""

__version__ = "0.3.0"
