# hello_service/errors.py

from typing import Optional


class ConfigError(RuntimeError):
    """Raised when configuration cannot be loaded or validated."""


class BootstrapError(RuntimeError):
    """Raised when composing the application fails."""

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message)
        self.step = step


class AlreadyConfiguredError(BootstrapError):
    """Raised when an application is composed twice or after it started serving."""
