from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOCAL_CORS_ORIGINS = ["http://localhost:5173", "http://localhost:3000"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "Portfolio"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    API_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = "sqlite:///./portfolio.db"
    # Only honoured outside local mode; local mode allows the dev servers.
    ALLOWED_ORIGIN: str | None = None

    LLM_API_KEY: str = ""
    OPENROUTER_API_KEY: str = ""
    LLM_BASE_URL: str = "https://openrouter.ai/api/v1"
    LLM_APP_URL: str = "http://localhost:5173"
    LLM_APP_TITLE: str = "Interactive Portfolio"

    AI_MAX_RETRIES: int = 3
    AI_RATE_LIMIT_BACKOFF_SECONDS: float = 5.0
    AI_STREAM_TIMEOUT_SECONDS: float = 30.0
    AI_VISION_TIMEOUT_SECONDS: float = 60.0

    CLIENT_API_BASE_URL: str = "http://localhost:8000/api"
    CLIENT_CACHE_TTL_SECONDS: float = 300.0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def resolved_llm_api_key(self) -> str:
        return self.LLM_API_KEY or self.OPENROUTER_API_KEY

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_origins(self) -> list[str]:
        if self.ENVIRONMENT == "local":
            return list(LOCAL_CORS_ORIGINS)
        return [self.ALLOWED_ORIGIN] if self.ALLOWED_ORIGIN else []


settings = Settings()  # type: ignore
