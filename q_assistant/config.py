"""Configuration management for q."""

import json
import logging
import os
import sys

from dataclasses import asdict, dataclass, field, fields
from typing import Dict, Optional, Union, get_args, get_origin

from rich.console import Console

from .exceptions import ConfigError

log = logging.getLogger("q.config")

err_console = Console(stderr=True, highlight=False)

DEFAULT_PROVIDER = "openrouter"
DEFAULT_MODEL = "anthropic/claude-4.5-sonnet"
DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
PLACEHOLDER_API_KEY = "sk-or-v1-..."

CONFIG_DIR_NAME = "q"
CONFIG_FILE_NAME = "config.json"


@dataclass
class OpenRouterConfig:
    api_key: str
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL


@dataclass
class AIConfig:
    default_provider: str = DEFAULT_PROVIDER
    openrouter: Optional[OpenRouterConfig] = None


@dataclass
class ExecutionConfig:
    auto_confirm: bool = False
    show_explanation: bool = True
    copy_to_clipboard: bool = False


@dataclass
class ContextConfig:
    include_shell_info: bool = True
    include_directory: bool = True
    # Overrides shell auto-detection (e.g. "powershell", "bash", "zsh")
    shell: Optional[str] = None


def _section(section_cls, data: Dict, exclude=()):
    if not isinstance(data, dict):
        raise TypeError(f"expected an object for {section_cls.__name__}")

    # Unknown keys are ignored so older config files keep loading
    values = {}
    for f in fields(section_cls):
        if f.name in exclude or f.name not in data:
            continue
        value = data[f.name]
        if not isinstance(value, _allowed_types(f.type)):
            raise TypeError(f"invalid value for '{f.name}': {value!r}")
        values[f.name] = value
    return section_cls(**values)


def _allowed_types(annotation):
    if get_origin(annotation) is Union:
        return get_args(annotation)
    return (annotation,)


@dataclass
class Config:
    ai: AIConfig = field(default_factory=AIConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    context: ContextConfig = field(default_factory=ContextConfig)

    @staticmethod
    def config_path() -> str:
        """Returns the path to the config file, creating its directory if needed."""
        if sys.platform == "win32" and os.getenv("APPDATA"):
            base_dir = os.getenv("APPDATA")
        else:
            base_dir = os.getenv("XDG_CONFIG_HOME") or os.path.join(
                os.path.expanduser("~"), ".config"
            )

        config_dir = os.path.join(base_dir, CONFIG_DIR_NAME)
        try:
            os.makedirs(config_dir, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"Failed to create config directory: {e}") from e

        return os.path.join(config_dir, CONFIG_FILE_NAME)

    @classmethod
    def template(cls) -> "Config":
        """The config written on first run, with a placeholder API key to fill in."""
        config = cls()
        config.ai.openrouter = OpenRouterConfig(api_key=PLACEHOLDER_API_KEY)
        return config

    @classmethod
    def load(cls) -> "Config":
        """Loads the configuration, creating a default file if it doesn't exist."""
        config_path = cls.config_path()

        if not os.path.exists(config_path):
            config = cls.template()
            config.save()
            log.info("created default config at %s", config_path)
            err_console.print(
                f"Created default config at: {config_path}", markup=False, soft_wrap=True
            )
            err_console.print("Please edit this file to add your OpenRouter API key.")
            return config

        try:
            with open(config_path, "r", encoding="utf-8") as config_file:
                data = json.load(config_file)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Failed to parse config file: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read config file: {e}") from e

        log.debug("loaded config from %s", config_path)
        return cls.from_dict(data)

    def save(self):
        config_path = self.config_path()
        try:
            with open(config_path, "w", encoding="utf-8") as config_file:
                json.dump(self.to_dict(), config_file, indent=2)
                config_file.write("\n")
        except OSError as e:
            raise ConfigError(f"Failed to write config file: {e}") from e

    @classmethod
    def from_dict(cls, data: Dict) -> "Config":
        try:
            ai_data = data.get("ai") or {}
            ai = _section(AIConfig, ai_data, exclude=("openrouter",))
            if ai_data.get("openrouter") is not None:
                ai.openrouter = _section(OpenRouterConfig, ai_data["openrouter"])

            return cls(
                ai=ai,
                execution=_section(ExecutionConfig, data.get("execution") or {}),
                context=_section(ContextConfig, data.get("context") or {}),
            )
        except (AttributeError, TypeError) as e:
            raise ConfigError(f"Failed to parse config file: {e}") from e

    def to_dict(self) -> Dict:
        return asdict(self)

    def validate(self):
        """Checks that the selected provider is configured."""
        provider = self.ai.default_provider
        if provider != "openrouter":
            raise ConfigError(
                f"Unknown provider: {provider}. Currently only 'openrouter' is supported."
            )

        openrouter = self.ai.openrouter
        if openrouter is None:
            raise ConfigError(
                "OpenRouter is set as default provider but not configured. "
                f"Please edit {self.config_path()}"
            )
        if not openrouter.api_key or openrouter.api_key == PLACEHOLDER_API_KEY:
            raise ConfigError(
                "OpenRouter API key not configured. "
                f"Please edit {self.config_path()} and add your API key."
            )
