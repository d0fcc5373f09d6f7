"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Keys
    anthropic_api_key: str = ""

    # LLM Settings
    llm_model: str = "claude-sonnet-4-6"
    llm_max_tokens: int = 1024
    llm_temperature: float = 0.2
    llm_timeout_seconds: float = 30.0

    # Data sources
    data_file: str = "data/PMC_Articles_Data.xlsx"
    data_backup_file: str = "data/PMC_Articles_Data_copy.xlsx"
    publications_url: str = ""

    # App Settings
    summary_cache_enabled: bool = True
    debug: bool = False
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        frozen = True


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
