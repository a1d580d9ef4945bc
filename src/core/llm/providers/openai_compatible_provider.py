"""Generic OpenAI-compatible provider for the LLM client abstraction.

Supports any LLM service that exposes an OpenAI-compatible chat completions
API, including:
  - DeepSeek (``https://api.deepseek.com``)
  - Ollama (``http://localhost:11434/v1``)
  - vLLM (``http://localhost:8000/v1``)
  - Together AI (``https://api.together.xyz/v1``)
  - Groq (``https://api.groq.com/openai/v1``)
  - Any other service with a compatible ``/chat/completions`` endpoint
"""

from __future__ import annotations

from src.core.llm.client import PromptMessage
from src.utils.exceptions import LLMError
from src.utils.logging import get_logger

logger = get_logger("llm.openai_compatible")


class OpenAICompatibleProvider:
    """Provider for any OpenAI-compatible API endpoint.

    Parameters
    ----------
    api_key:
        API key (pass an empty string for services that do not require
        authentication, e.g. local Ollama).
    model:
        Model identifier.
    base_url:
        Base URL for the API (e.g. ``"http://localhost:11434/v1"``).
    provider_name:
        Human-readable name used in log messages and error reports.
    """

    MAX_TOKENS = 1024

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        provider_name: str = "openai_compatible",
    ):
        try:
            import openai
        except ImportError as exc:
            raise LLMError(
                provider_name,
                "The 'openai' package is required. "
                "Install it with: pip install openai",
            ) from exc

        if not base_url:
            raise LLMError(provider_name, "base_url is required but was empty.")

        # Some local services (e.g. Ollama) don't need a key.
        effective_key = api_key if api_key else "none"

        self.client = openai.AsyncOpenAI(api_key=effective_key, base_url=base_url)
        self.model = model
        self.provider_name = provider_name
        self._json_mode = True

    async def generate(self, messages: list[PromptMessage]) -> str:
        """Call the remote API and return the assistant's text response.

        JSON mode is requested first; endpoints that reject
        ``response_format`` are retried without it and remembered.
        """
        payload = [m.as_dict() for m in messages]
        try:
            if self._json_mode:
                try:
                    response = await self.client.chat.completions.create(
                        model=self.model,
                        max_tokens=self.MAX_TOKENS,
                        response_format={"type": "json_object"},
                        messages=payload,
                    )
                except Exception as exc:
                    if "response_format" not in str(exc):
                        raise
                    logger.debug("openai_compatible_no_json_mode", provider=self.provider_name)
                    self._json_mode = False
            if not self._json_mode:
                response = await self.client.chat.completions.create(
                    model=self.model,
                    max_tokens=self.MAX_TOKENS,
                    messages=payload,
                )

            choice = response.choices[0] if response.choices else None
            if choice and choice.message and choice.message.content:
                return choice.message.content
            return ""
        except Exception as exc:
            logger.error(
                "openai_compatible_generate_error",
                provider=self.provider_name,
                error=str(exc),
            )
            raise LLMError(self.provider_name, str(exc)) from exc
