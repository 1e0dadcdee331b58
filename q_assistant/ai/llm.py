from dataclasses import dataclass
import aisuite

from typing import Dict, List, Optional


@dataclass
class LLMCompletionResponse:
    """Wraps the assistant message returned by the chat-completion API."""

    assistant_message: Dict

    @property
    def content(self) -> Optional[str]:
        """The text content of the message, if any."""
        return self.assistant_message.get("content")


class LLMClient:
    """
    A thin wrapper around aisuite so providers only deal with plain message dicts.
    """

    def __init__(self, provider_configs: Dict):
        """
        Initializes the LLM client.

        Args:
            provider_configs: aisuite provider configuration, keyed by provider name
                (e.g. {"openai": {"api_key": "...", "base_url": "..."}}).
        """
        self.client = aisuite.Client(provider_configs)

    @staticmethod
    def format_system_message(content: str) -> Dict:
        return {"role": "system", "content": content}

    @staticmethod
    def format_user_message(content: str) -> Dict:
        return {"role": "user", "content": content}

    def completion(
        self, model: str, messages: List[Dict], **kwargs
    ) -> LLMCompletionResponse:
        response = self.client.chat.completions.create(
            model=model, messages=messages, **kwargs
        )

        if not response.choices:
            return LLMCompletionResponse(assistant_message={})

        # The message object from aisuite/openai can be converted to a dict.
        # We exclude unset values to keep the payload clean.
        message = response.choices[0].message
        if hasattr(message, "model_dump"):
            message_dict = message.model_dump(exclude_unset=True)
        else:
            message_dict = {
                "role": getattr(message, "role", "assistant"),
                "content": getattr(message, "content", None),
            }
        return LLMCompletionResponse(assistant_message=message_dict)
