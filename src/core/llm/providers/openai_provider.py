"""OpenAI provider for the LLM client abstraction.

Wraps the async ``openai`` SDK client to expose the ``generate`` interface
expected by :class:`~src.core.llm.client.LLMClient`.
"""

from __future__ import annotations

from src.core.llm.client import PromptMessage
from src.utils.exceptions import LLMError
from src.utils.logging import get_logger

logger = get_logger("llm.openai")


class OpenAIProvider:
    """Provider implementation for OpenAI models.

    Parameters
    ----------
    api_key:
        OpenAI API key.
    model:
        Model identifier, e.g. ``"gpt-4o"``.
    """

    MAX_TOKENS = 1024

    def __init__(self, api_key: str, model: str):
        try:
            import openai
        except ImportError as exc:
            raise LLMError(
                "openai",
                "The 'openai' package is not installed. "
                "Install it with: pip install openai",
            ) from exc

        if not api_key:
            raise LLMError("openai", "API key is required but was empty.")

        self.client = openai.AsyncOpenAI(api_key=api_key)
        self.model = model

    async def generate(self, messages: list[PromptMessage]) -> str:
        """Call the chat completions API in JSON mode and return the text."""
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                max_tokens=self.MAX_TOKENS,
                response_format={"type": "json_object"},
                messages=[m.as_dict() for m in messages],
            )
            choice = response.choices[0] if response.choices else None
            if choice and choice.message and choice.message.content:
                return choice.message.content
            return ""
        except Exception as exc:
            logger.error("openai_generate_error", error=str(exc))
            raise LLMError("openai", str(exc)) from exc
