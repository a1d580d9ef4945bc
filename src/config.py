from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # LLM
    llm_provider: str = "anthropic"
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    deepseek_api_key: str = ""
    llm_api_key: str = ""  # Generic key, used when provider-specific key is empty
    llm_model: str = "claude-sonnet-4-20250514"
    llm_base_url: str = ""  # Custom base URL for openai_compatible provider
    llm_timeout_seconds: float = 30.0

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False

    # Conversation flow
    max_depth: int = 2
    max_interactions: int = 5
    intent_confidence_threshold: float = 50.0

    # Word-count budgets per response context: {"brainstorming": [20, 150], ...}
    # Missing contexts keep their built-in budget.
    length_budgets: dict[str, tuple[int, int]] = {}

    # Per-stage required envelope fields: {"Ideation": ["chatResponse", ...]}
    # Missing stages keep their built-in field list.
    stage_required_fields: dict[str, list[str]] = {}

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
