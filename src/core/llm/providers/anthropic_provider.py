"""Anthropic Claude provider for the LLM client abstraction.

Wraps the async ``anthropic`` SDK client to expose the ``generate``
interface expected by :class:`~src.core.llm.client.LLMClient`.
"""

from __future__ import annotations

from src.core.llm.client import PromptMessage, split_system
from src.utils.exceptions import LLMError
from src.utils.logging import get_logger

logger = get_logger("llm.anthropic")


class AnthropicProvider:
    """Provider implementation for Anthropic Claude models.

    Parameters
    ----------
    api_key:
        Anthropic API key.
    model:
        Model identifier, e.g. ``"claude-sonnet-4-20250514"``.
    """

    MAX_TOKENS = 1024

    def __init__(self, api_key: str, model: str):
        try:
            import anthropic
        except ImportError as exc:
            raise LLMError(
                "anthropic",
                "The 'anthropic' package is not installed. "
                "Install it with: pip install anthropic",
            ) from exc

        if not api_key:
            raise LLMError("anthropic", "API key is required but was empty.")

        self.client = anthropic.AsyncAnthropic(api_key=api_key)
        self.model = model

    async def generate(self, messages: list[PromptMessage]) -> str:
        """Call Claude and return the assistant's text response.

        System messages are hoisted into the ``system`` parameter.
        """
        system, chat = split_system(messages)
        try:
            message = await self.client.messages.create(
                model=self.model,
                max_tokens=self.MAX_TOKENS,
                system=system,
                messages=chat,
            )
            return "".join(
                block.text for block in message.content if getattr(block, "type", "") == "text"
            )
        except Exception as exc:
            logger.error("anthropic_generate_error", error=str(exc))
            raise LLMError("anthropic", str(exc)) from exc
