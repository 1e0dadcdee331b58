"""
The `ai` package turns a natural language query into a command suggestion,
encapsulating the prompt, the provider and the LLM client.
"""

from ..config import Config
from ..exceptions import ConfigError
from .base import AIProvider
from .openrouter import OpenRouterProvider, parse_suggestion


def _openrouter(config: Config) -> AIProvider:
    if config.ai.openrouter is None:
        raise ConfigError("OpenRouter configuration not found")
    return OpenRouterProvider(
        config.ai.openrouter,
        include_shell_info=config.context.include_shell_info,
        include_directory=config.context.include_directory,
    )


# Provider registry: name -> factory building the provider from the app config
PROVIDERS = {
    "openrouter": _openrouter,
}


def get_provider(name: str, config: Config) -> AIProvider:
    """Builds the provider registered under `name`."""
    if name not in PROVIDERS:
        raise ConfigError(f"Unsupported provider: {name}")
    return PROVIDERS[name](config)


__all__ = [
    "AIProvider",
    "OpenRouterProvider",
    "PROVIDERS",
    "get_provider",
    "parse_suggestion",
]
