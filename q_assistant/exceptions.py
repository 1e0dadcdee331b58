"""Exception classes for q."""

from typing import Optional


class QError(Exception):
    """Base exception for q errors."""

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.hint = hint


class ConfigError(QError):
    """Raised when configuration is invalid or missing."""
    pass


class ContextError(QError):
    """Raised when the system context cannot be gathered."""
    pass


class ProviderError(QError):
    """Raised when the AI provider cannot produce a reply."""
    pass


class ResponseFormatError(ProviderError):
    """Raised when the AI reply is not the expected JSON object."""

    def __init__(self, content: str):
        super().__init__(
            "Failed to parse AI response as JSON. Response was not in expected format."
        )
        self.content = content


class ExecutionError(QError):
    """Raised when a command could not be started."""
    pass


class CommandFailedError(ExecutionError):
    """Raised when an executed command exits with a non-zero status."""

    def __init__(self, exit_code: int):
        super().__init__(f"Command failed with exit code: {exit_code}")
        self.exit_code = exit_code
