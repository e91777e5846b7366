from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    supabase_url: str | None = None
    supabase_service_role_key: str | None = None

    openai_api_key: str | None = None
    google_api_key: str | None = None

    llm_classifier_enabled: bool = True
    llm_classifier_provider: str = "openai"
    llm_classifier_model: str = "gpt-4o-mini"
    llm_classifier_fallback_provider: str | None = None
    llm_classifier_fallback_model: str | None = None

    llm_chat_provider: str = "openai"
    llm_chat_model: str = "gpt-4o-mini"
    llm_chat_fallback_provider: str | None = None
    llm_chat_fallback_model: str | None = None
    llm_request_timeout_seconds: float = 30.0
    llm_max_attempts: int = 3
    llm_retry_backoff_ms: int = 1000

    intent_direct_route_threshold: float = 0.85

    session_context_storage: str = "auto"
    session_context_table: str = "chat_session_contexts"
    session_context_ttl_seconds: int = 3600
    session_history_limit: int = 50

    integrations_table: str = "external_service_connections"

    frontend_url: str = "http://localhost:3000"
    allowed_origins: str = "http://localhost:3000"

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def parse_allowed_origins(raw: str | None, frontend_url: str | None = None) -> list[str]:
    """Comma-separated origins plus ``frontend_url``, without trailing slashes or repeats."""
    origins: list[str] = []
    for part in [*(raw or "").split(","), frontend_url or ""]:
        origin = part.strip().rstrip("/")
        if origin and origin not in origins:
            origins.append(origin)
    return origins
