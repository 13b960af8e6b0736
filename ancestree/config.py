"""Application configuration using Pydantic Settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class AISettings(BaseSettings):
    """Generative model settings."""

    model_config = SettingsConfigDict(env_prefix="AI_")

    provider: str = "gemini"
    model: str = ""
    gemini_api_key: str = ""
    openai_api_key: str = ""
    temperature: float = 0.2
    max_tokens: int = 2048
    max_dna_chars: int = 100_000
    max_comparison_profiles: int = 50


class RetrySettings(BaseSettings):
    """Backoff settings for remote calls."""

    model_config = SettingsConfigDict(env_prefix="RETRY_")

    max_attempts: int = 2
    base_delay: float = 0.5
    factor: float = 2.0


class StoreSettings(BaseSettings):
    """Document store settings."""

    model_config = SettingsConfigDict(env_prefix="STORE_")

    backend: str = "sqlite"  # sqlite | memory
    sqlite_path: str = "data/ancestree.db"


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"

    ai: AISettings = AISettings()
    retry: RetrySettings = RetrySettings()
    store: StoreSettings = StoreSettings()


settings = Settings()
