"""Abstract base class for LLM services."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class MessageRole(str, Enum):
    """Role of a message in the conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """A message in the conversation."""

    role: MessageRole
    content: str


@dataclass
class LLMUsage:
    """Token usage statistics."""

    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass
class LLMResponse:
    """Response from LLM generation."""

    content: str
    finish_reason: str
    usage: LLMUsage
    model: str


class LLMServiceBase(ABC):
    """Abstract base class for prompt-completion services."""

    @abstractmethod
    async def generate(
        self,
        messages: list[Message],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 500,
    ) -> LLMResponse:
        """Generate a completion.

        Args:
            messages: List of conversation messages.
            model: Optional model override.
            temperature: Sampling temperature (0.0-2.0).
            max_tokens: Maximum tokens to generate.

        Returns:
            LLM response with content and usage.

        Raises:
            SummarizationError: If the provider call fails.
        """

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Model used when ``generate`` gets no override."""
