import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from functools import lru_cache

import redis
from dotenv import load_dotenv

load_dotenv()

# Placeholder values shipped in sample .env files
_PLACEHOLDER_KEYS = frozenset({"your-api-key-here", "your-huggingface-api-key-here"})

DEFAULT_PROVIDERS = "gemini,cohere,openrouter,glm,deepseek"

# Fast providers get short deadlines, free-tier routed models get long ones
DEFAULT_DEADLINES: dict[str, float] = {
    "gemini": 30.0,
    "cohere": 30.0,
    "openrouter": 60.0,
    "glm": 300.0,
    "deepseek": 300.0,
}

EMBEDDING_BACKENDS = ("none", "ollama", "gemini", "local")


def _parse_csv(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(v.strip() for v in value.split(",") if v.strip())


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _clean_key(value: str | None) -> str | None:
    if not value or value.strip() in _PLACEHOLDER_KEYS:
        return None
    return value.strip()


def _deadlines_from_env() -> dict[str, float]:
    return {
        key: float(os.getenv(f"{key.upper()}_TIMEOUT_SECONDS", str(default)))
        for key, default in DEFAULT_DEADLINES.items()
    }


def build_credential_pool(primary: str | None, pool: Iterable[str] = ()) -> tuple[str, ...]:
    """Build the ordered, de-duplicated credential list for a provider.

    Pool keys keep their configured order. Primary keys that are not
    already in the pool are placed ahead of it; a primary that is already
    pooled keeps its pool position. A primary holding several
    comma-separated keys contributes all of them, in order.

    Args:
        primary: The explicit primary key (may be comma-delimited)
        pool: Additional interchangeable keys

    Returns:
        Tuple of usable keys, placeholders removed
    """
    pooled: list[str] = []
    for candidate in pool:
        key = _clean_key(candidate)
        if key and key not in pooled:
            pooled.append(key)

    leading: list[str] = []
    for candidate in _parse_csv(primary):
        key = _clean_key(candidate)
        if key and key not in pooled and key not in leading:
            leading.append(key)
    return (*leading, *pooled)


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables."""

    # Redis (persistence is disabled when REDIS_URL is not set)
    redis_url: str | None = os.getenv("REDIS_URL")
    redis_password: str | None = os.getenv("REDIS_PASSWORD")
    conversation_namespace: str = os.getenv("CONVERSATION_NAMESPACE", "multi_ai")

    # Cache lookup
    history_limit: int = int(os.getenv("HISTORY_LIMIT", "150"))
    lexical_similarity_threshold: float = float(os.getenv("LEXICAL_SIMILARITY_THRESHOLD", "0.8"))
    embedding_similarity_threshold: float = float(os.getenv("EMBEDDING_SIMILARITY_THRESHOLD", "0.8"))
    ai_judge_enabled: bool = _env_bool("AI_JUDGE_ENABLED", "true")
    ai_judge_provider: str = os.getenv("AI_JUDGE_PROVIDER", "gemini")
    ai_judge_candidates: int = int(os.getenv("AI_JUDGE_CANDIDATES", "10"))

    # Embedding
    embedding_backend: str = os.getenv("EMBEDDING_BACKEND", "none").lower()
    embedding_model: str = os.getenv("EMBEDDING_MODEL", "embeddinggemma")
    embedding_dimension: int = int(os.getenv("EMBEDDING_DIMENSION", "768"))
    ollama_base_url: str = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434")

    # Providers
    providers: tuple[str, ...] = _parse_csv(os.getenv("PROVIDERS", DEFAULT_PROVIDERS))
    provider_deadlines: dict[str, float] = field(default_factory=_deadlines_from_env)
    gemini_api_key: str | None = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
    gemini_base_url: str = os.getenv(
        "GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
    )
    cohere_api_key: str | None = os.getenv("COHERE_API_KEY")
    cohere_api_url: str = os.getenv("COHERE_API_URL", "https://api.cohere.ai/v1/generate")
    openrouter_api_key: str | None = os.getenv("OPENROUTER_API_KEY")
    openrouter_api_keys: tuple[str, ...] = _parse_csv(os.getenv("OPENROUTER_API_KEYS"))
    openrouter_api_url: str = os.getenv(
        "OPENROUTER_API_URL", "https://openrouter.ai/api/v1/chat/completions"
    )
    frontend_url: str = os.getenv(
        "FRONTEND_URL", os.getenv("PUBLIC_ORIGIN", "https://chatbotcode.netlify.app")
    )
    app_title: str = os.getenv("APP_TITLE", "Multi-AI Comparison Tool")

    # Chatbot
    chatbot_provider: str = os.getenv("CHATBOT_PROVIDER", "gemini")
    chatbot_deadline_seconds: float = float(os.getenv("CHATBOT_TIMEOUT_SECONDS", "15"))

    # API
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "5000"))
    api_reload: bool = _env_bool("API_RELOAD", "false")
    cors_allow_origins: tuple[str, ...] = _parse_csv(os.getenv("CORS_ALLOW_ORIGINS", "*"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_format: str = os.getenv("LOG_FORMAT", "console")

    @property
    def persistence_enabled(self) -> bool:
        """Whether a conversation store should be constructed."""
        return bool(self.redis_url)

    @property
    def openrouter_credentials(self) -> tuple[str, ...]:
        """OpenRouter keys in rotation order (primary first)."""
        return build_credential_pool(self.openrouter_api_key, self.openrouter_api_keys)

    @property
    def secrets(self) -> list[str]:
        """Every configured secret, for log redaction."""
        values = [self.gemini_api_key, self.cohere_api_key, self.redis_password]
        values.extend(self.openrouter_credentials)
        return [v for v in values if v]

    def deadline_for(self, provider: str) -> float:
        """Deadline in seconds for one provider."""
        return self.provider_deadlines.get(provider, DEFAULT_DEADLINES.get(provider, 60.0))

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        for name in ("lexical_similarity_threshold", "embedding_similarity_threshold"):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                raise ValueError(f"{name.upper()} must be between 0 and 1, got {value}")

        if self.embedding_backend not in EMBEDDING_BACKENDS:
            raise ValueError(
                f"EMBEDDING_BACKEND must be one of {list(EMBEDDING_BACKENDS)}, "
                f"got {self.embedding_backend!r}"
            )

        for provider, deadline in self.provider_deadlines.items():
            if deadline <= 0:
                raise ValueError(f"{provider.upper()}_TIMEOUT_SECONDS must be positive")

        if not self.providers:
            raise ValueError("PROVIDERS must name at least one provider")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


def get_redis_client(cfg: Settings | None = None) -> redis.Redis:
    """Create a Redis client instance."""
    cfg = cfg or settings
    if not cfg.redis_url:
        raise ValueError("REDIS_URL is not configured")
    return redis.from_url(
        cfg.redis_url,
        password=cfg.redis_password,
        decode_responses=False,
    )
