"""
Configuration management for the Store Insights service
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Application
    app_name: str = "Store Insights Service"
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    log_dir: str = "logs"  # Empty string disables file logging

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Sanity content lake (orders, products, customers)
    sanity_project_id: str = ""
    sanity_dataset: str = "production"
    sanity_api_version: str = "2024-01-01"
    sanity_token: Optional[str] = None
    sanity_timeout_seconds: float = 30.0

    # LLM Configuration
    anthropic_api_key: Optional[str] = None
    llm_model: str = "claude-3-5-haiku-latest"
    enable_llm_insights: bool = True
    llm_max_tokens: int = 2000
    llm_temperature: float = 0.3
    llm_timeout_seconds: float = 60.0
    llm_max_attempts: int = 2  # Total attempts for transient API errors
    llm_fallback_on_error: bool = False  # Serve rule-based insights when the LLM call fails

    # Insights
    insights_cache_ttl_seconds: int = 3600  # 1 hour max cache age
    currency_symbol: str = "£"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
