"""High-level LLM client abstraction.

Provides a unified interface for interacting with different LLM providers
through a single ``LLMClient`` class.  Supported providers:

  - ``anthropic``: Anthropic Claude
  - ``openai``: OpenAI GPT
  - ``deepseek``, ``ollama``, ``together``, ``groq`` …: OpenAI-compatible
    services with a well-known base URL
  - ``openai_compatible``: Any OpenAI-compatible API with a custom base_url

The concrete provider is selected at initialisation time based on the
``provider`` string.  Every provider exposes the same coroutine,
``generate(messages) -> str``.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.utils.exceptions import LLMError
from src.utils.logging import get_logger

# Well-known OpenAI-compatible providers and their default base URLs.
_KNOWN_COMPATIBLE_PROVIDERS: dict[str, str] = {
    "deepseek": "https://api.deepseek.com",
    "ollama": "http://localhost:11434/v1",
    "together": "https://api.together.xyz/v1",
    "groq": "https://api.groq.com/openai/v1",
    "moonshot": "https://api.moonshot.cn/v1",
    "zhipu": "https://open.bigmodel.cn/api/paas/v4",
    "siliconflow": "https://api.siliconflow.cn/v1",
}


@dataclass(frozen=True)
class PromptMessage:
    """One chat message; ``role`` is ``system``, ``user`` or ``assistant``."""

    role: str
    content: str

    def as_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


def split_system(messages: list[PromptMessage]) -> tuple[str, list[dict[str, str]]]:
    """Separate system text from the chat turns (for APIs that take it apart)."""
    system = "\n\n".join(m.content for m in messages if m.role == "system")
    chat = [m.as_dict() for m in messages if m.role != "system"]
    return system, chat


class LLMClient:
    """Unified LLM client that delegates to a provider-specific backend.

    Parameters
    ----------
    provider:
        Provider name: ``"anthropic"``, ``"openai"``, ``"openai_compatible"``,
        or any key in the well-known providers registry.
    api_key:
        API key for the chosen provider.
    model:
        Model identifier (e.g. ``"claude-sonnet-4-20250514"``, ``"gpt-4o"``,
        ``"deepseek-chat"``, ``"llama3"``).
    base_url:
        Optional base URL.  Required for ``openai_compatible``; ignored for
        ``anthropic`` and ``openai``; overrides the default for well-known
        compatible providers.
    """

    def __init__(
        self,
        provider: str,
        api_key: str,
        model: str,
        base_url: str | None = None,
    ):
        self.provider = provider
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.logger = get_logger("llm")
        self._provider_client = self._init_provider()

    def _init_provider(self):
        """Instantiate the appropriate provider backend."""
        if self.provider == "anthropic":
            from src.core.llm.providers.anthropic_provider import AnthropicProvider

            return AnthropicProvider(self.api_key, self.model)

        if self.provider == "openai":
            from src.core.llm.providers.openai_provider import OpenAIProvider

            return OpenAIProvider(self.api_key, self.model)

        if self.provider in _KNOWN_COMPATIBLE_PROVIDERS or self.provider == "openai_compatible":
            from src.core.llm.providers.openai_compatible_provider import (
                OpenAICompatibleProvider,
            )

            base_url = self.base_url or _KNOWN_COMPATIBLE_PROVIDERS.get(self.provider, "")
            if not base_url:
                raise LLMError(
                    self.provider,
                    "base_url is required for openai_compatible provider. "
                    "Set LLM_BASE_URL in your .env file.",
                )
            return OpenAICompatibleProvider(
                api_key=self.api_key,
                model=self.model,
                base_url=base_url,
                provider_name=self.provider,
            )

        raise LLMError(
            self.provider,
            f"Unknown provider: {self.provider}. "
            f"Supported: anthropic, openai, "
            f"{', '.join(_KNOWN_COMPATIBLE_PROVIDERS.keys())}, openai_compatible",
        )

    async def generate(self, messages: list[PromptMessage]) -> str:
        """Send the conversation and return the model's text reply.

        Raises :class:`LLMError` on provider failures.
        """
        self.logger.info(
            "llm_generate",
            provider=self.provider,
            model=self.model,
            messages=len(messages),
            prompt_len=sum(len(m.content) for m in messages),
        )
        try:
            result = await self._provider_client.generate(messages)
            self.logger.info("llm_generate_success", response_len=len(result))
            return result
        except LLMError:
            raise
        except Exception as exc:
            self.logger.error("llm_generate_error", error=str(exc))
            raise LLMError(self.provider, str(exc)) from exc
