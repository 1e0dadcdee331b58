"""OpenRouter chat-completion provider."""

import json
import logging
import re

import openai
from aisuite.provider import LLMError

from ..config import OpenRouterConfig
from ..exceptions import ProviderError, ResponseFormatError
from ..models import CommandSuggestion, SystemContext
from .base import AIProvider
from .llm import LLMClient
from .prompt import build_messages

log = logging.getLogger("q.ai.openrouter")

# OpenRouter speaks the OpenAI chat-completion protocol, so requests go through
# aisuite's OpenAI provider pointed at the OpenRouter base URL.
AISUITE_PROVIDER = "openai"

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n(.*?)\n?```$", re.DOTALL)


class OpenRouterProvider(AIProvider):
    name = "openrouter"

    def __init__(
        self,
        config: OpenRouterConfig,
        include_shell_info: bool = True,
        include_directory: bool = True,
    ):
        self.config = config
        self.include_shell_info = include_shell_info
        self.include_directory = include_directory
        self.llm = LLMClient(
            {
                AISUITE_PROVIDER: {
                    "api_key": config.api_key,
                    "base_url": config.base_url,
                    # One request per query, no retry/backoff
                    "max_retries": 0,
                }
            }
        )

    def generate_command(self, query: str, context: SystemContext) -> CommandSuggestion:
        messages = build_messages(
            query,
            context,
            include_shell_info=self.include_shell_info,
            include_directory=self.include_directory,
        )
        log.debug("requesting %s from %s", self.config.model, self.config.base_url)

        try:
            response = self.llm.completion(
                model=f"{AISUITE_PROVIDER}:{self.config.model}",
                messages=messages,
            )
        except (LLMError, openai.OpenAIError) as e:
            raise _provider_error(e) from e

        content = response.content
        if not content:
            raise ProviderError("No response from AI")

        log.debug("received %d characters from the AI", len(content))
        return parse_suggestion(content)


def parse_suggestion(content: str) -> CommandSuggestion:
    """Parses the AI reply into a CommandSuggestion."""
    text = content.strip()
    match = _CODE_FENCE.match(text)
    if match:
        text = match.group(1).strip()

    try:
        return CommandSuggestion.from_dict(json.loads(text))
    except (json.JSONDecodeError, ProviderError) as e:
        log.debug("unparseable AI response (%s): %r", e, content)
        raise ResponseFormatError(content) from e


def _provider_error(error: Exception) -> ProviderError:
    # aisuite re-raises openai errors as LLMError, keeping the original in the chain
    cause = error
    if isinstance(error, LLMError):
        cause = error.__cause__ or error.__context__ or error

    if isinstance(cause, openai.APIStatusError):
        return ProviderError(
            f"OpenRouter API error ({cause.status_code}): {cause.response.text}"
        )
    if isinstance(cause, openai.APIConnectionError):
        return ProviderError(f"Failed to send request to OpenRouter: {cause}")
    return ProviderError(f"OpenRouter request failed: {error}")
