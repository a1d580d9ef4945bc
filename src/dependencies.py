"""FastAPI dependency functions for injection into endpoint handlers.

The session store and the orchestrator are built once during the app
lifespan and stored on ``app.state``; the functions here simply look them
up.  The LLM client is optional: without a usable key the orchestrator runs
its rule-based offline replies.
"""

from __future__ import annotations

from fastapi import Request

from src.config import settings
from src.core.orchestrator import ConversationOrchestrator
from src.core.session.store import SessionStore
from src.utils.logging import get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# LLM client (optional -- returns None when no API key is configured)
# ---------------------------------------------------------------------------

def _resolve_api_key() -> str:
    """Pick the API key for the configured provider.

    Resolution order:
      1. Provider-specific key (``ANTHROPIC_API_KEY``, ``OPENAI_API_KEY``,
         ``DEEPSEEK_API_KEY``)
      2. Generic ``LLM_API_KEY``
      3. Any non-empty provider-specific key
    """
    provider = settings.llm_provider
    provider_keys: dict[str, str] = {
        "anthropic": settings.anthropic_api_key,
        "openai": settings.openai_api_key,
        "deepseek": settings.deepseek_api_key,
    }

    if provider_keys.get(provider):
        return provider_keys[provider]
    if settings.llm_api_key:
        return settings.llm_api_key
    for key in provider_keys.values():
        if key:
            return key
    return ""


def get_llm_client():
    """Build an LLM client if an API key is available, else ``None``."""
    from src.core.llm.client import LLMClient

    api_key = _resolve_api_key()
    provider = settings.llm_provider

    # Ollama and some local providers don't require a key.
    if not api_key and provider not in {"ollama"}:
        logger.info("llm_client_disabled", provider=provider, reason="no API key")
        return None

    return LLMClient(provider, api_key, settings.llm_model, base_url=settings.llm_base_url or None)


def build_orchestrator(store: SessionStore) -> ConversationOrchestrator:
    """Wire an orchestrator from settings; used by the app lifespan."""
    client = get_llm_client()
    return ConversationOrchestrator.from_settings(
        settings,
        generate=client.generate if client is not None else None,
        store=store,
    )


# ---------------------------------------------------------------------------
# Per-request lookups
# ---------------------------------------------------------------------------

def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_orchestrator(request: Request) -> ConversationOrchestrator:
    return request.app.state.orchestrator
