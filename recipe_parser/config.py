from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Generative model (OpenAI-compatible endpoint)
    openai_api_key: str | None = None

    # OpenRouter (optional - preferred when set)
    openrouter_api_key: str | None = None
    ai_base_url: str | None = None

    text_model: str = "gpt-4o-mini"
    vision_model: str = "gpt-4o"
    suggestion_model: str = "gpt-4o-mini"
    ai_timeout: float = 60.0
    ai_max_tokens: int = 4096

    # Recipe cache
    redis_url: str = "redis://localhost:6379/0"
    cache_ttl_seconds: int = 86400

    # Page fetching
    fetch_timeout: float = 30.0
    fetch_max_attempts: int = 3
    fetch_base_delay: float = 0.5
    oembed_timeout: float = 10.0
    browser_timeout_ms: int = 30000

    # AWS S3 (for re-uploading social media images)
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    aws_region: str = "us-east-1"
    s3_bucket_name: str | None = None

    # Sentry error monitoring
    sentry_dsn: str | None = None

    # Environment
    environment: str = "development"

    # Comma-separated browser origins; "*" allows any
    cors_origins: str = "*"

    # API Settings
    api_title: str = "Recipe Parser API"
    api_version: str = "1.0.0"

    @property
    def s3_enabled(self) -> bool:
        """Check if S3 is configured."""
        return all([
            self.aws_access_key_id,
            self.aws_secret_access_key,
            self.s3_bucket_name
        ])

    @property
    def ai_api_key(self) -> str | None:
        """Key for the configured model endpoint, OpenRouter first."""
        return self.openrouter_api_key or self.openai_api_key

    @property
    def resolved_ai_base_url(self) -> str | None:
        if self.ai_base_url:
            return self.ai_base_url
        if self.openrouter_api_key:
            return "https://openrouter.ai/api/v1"
        return None

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
