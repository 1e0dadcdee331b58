"""Data types shared by the provider and the executor."""

import logging
import os
import sys

from dataclasses import dataclass
from typing import Dict, Optional

from .exceptions import ContextError, ProviderError

log = logging.getLogger("q.models")


@dataclass
class CommandSuggestion:
    """Represents a command suggestion from the AI."""

    command: str
    explanation: str
    warning: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> "CommandSuggestion":
        if not isinstance(data, dict):
            raise ProviderError(f"Expected a JSON object, got {type(data).__name__}")

        command = data.get("command")
        explanation = data.get("explanation")
        if not isinstance(command, str) or not isinstance(explanation, str):
            raise ProviderError("'command' and 'explanation' must be strings")

        warning = data.get("warning")
        if warning is not None and not isinstance(warning, str):
            raise ProviderError("'warning' must be a string or null")
        if warning is not None and not warning.strip():
            warning = None

        return cls(command=command, explanation=explanation, warning=warning)


@dataclass
class SystemContext:
    """System information sent along with the query."""

    os: str
    shell: str
    current_dir: str

    @classmethod
    def gather(cls, shell_override: Optional[str] = None) -> "SystemContext":
        """
        Collects the OS name, the shell and the working directory.

        Args:
            shell_override: Shell name from the config. When set, auto-detection is skipped.
        """
        try:
            current_dir = os.getcwd()
        except OSError as e:
            raise ContextError(f"Failed to gather system context: {e}") from e

        context = cls(
            os=_detect_os(),
            shell=shell_override or _detect_shell(),
            current_dir=current_dir,
        )
        log.debug("gathered context: %s", context)
        return context


def _detect_os() -> str:
    if sys.platform.startswith("linux"):
        return "linux"
    if sys.platform == "darwin":
        return "macos"
    if sys.platform in ("win32", "cygwin"):
        return "windows"
    return sys.platform.lower()


def _detect_shell() -> str:
    shell = os.environ.get("SHELL")
    if shell:
        return shell.replace("\\", "/").rsplit("/", 1)[-1] or "unknown"

    if sys.platform == "win32":
        if os.environ.get("PSModulePath") is not None:
            return "powershell"
        return "cmd"

    return "bash"
