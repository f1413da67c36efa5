"""OpenAI implementation of LLM service."""

from openai import AsyncOpenAI, OpenAIError
from openai.types.chat import ChatCompletionMessageParam

from src.commons.telemetry import get_logger
from src.domain.exceptions import SummarizationError
from src.infrastructure.llm.base import (
    LLMResponse,
    LLMServiceBase,
    LLMUsage,
    Message,
)


class OpenAILLMService(LLMServiceBase):
    """OpenAI chat-completions implementation of LLM service.

    Also serves Azure OpenAI deployments through ``base_url``.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4",
        base_url: str | None = None,
        timeout_seconds: float = 60.0,
    ) -> None:
        """Initialize OpenAI LLM client.

        Args:
            api_key: OpenAI API key.
            model: Default model to use.
            base_url: Optional custom API endpoint.
            timeout_seconds: Per-request timeout.
        """
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
        )
        self._model = model
        self._logger = get_logger(__name__)

    async def generate(
        self,
        messages: list[Message],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 500,
    ) -> LLMResponse:
        """Generate a completion."""
        use_model = model or self._model
        openai_messages: list[ChatCompletionMessageParam] = [
            {"role": m.role.value, "content": m.content}  # type: ignore[misc]
            for m in messages
        ]

        try:
            response = await self._client.chat.completions.create(
                model=use_model,
                messages=openai_messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            raise SummarizationError(f"{use_model}: {e}") from e

        if not response.choices:
            raise SummarizationError(f"{use_model}: empty response")

        choice = response.choices[0]
        usage = response.usage

        self._logger.debug(
            "Completion finished",
            extra={
                "model": response.model,
                "total_tokens": usage.total_tokens if usage else 0,
            },
        )

        return LLMResponse(
            content=choice.message.content or "",
            finish_reason=choice.finish_reason or "stop",
            usage=LLMUsage(
                prompt_tokens=usage.prompt_tokens if usage else 0,
                completion_tokens=usage.completion_tokens if usage else 0,
                total_tokens=usage.total_tokens if usage else 0,
            ),
            model=response.model,
        )

    @property
    def default_model(self) -> str:
        return self._model
