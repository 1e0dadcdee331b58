"""Base class for AI providers."""

from abc import ABC, abstractmethod

from ..models import CommandSuggestion, SystemContext


class AIProvider(ABC):
    """A provider that turns a natural language query into a command suggestion."""

    name: str = "base"

    @abstractmethod
    def generate_command(self, query: str, context: SystemContext) -> CommandSuggestion:
        """Generates a command suggestion for the query, given the system context."""
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name={self.name!r})>"
