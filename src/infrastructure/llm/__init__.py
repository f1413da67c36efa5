"""LLM services."""

from src.infrastructure.llm.base import (
    LLMResponse,
    LLMServiceBase,
    LLMUsage,
    Message,
    MessageRole,
)
from src.infrastructure.llm.openai_llm import OpenAILLMService

__all__ = [
    # Base classes
    "LLMServiceBase",
    "LLMResponse",
    "LLMUsage",
    "Message",
    "MessageRole",
    # Implementations
    "OpenAILLMService",
]
