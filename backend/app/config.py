"""
Configuration management for the GEO visibility tracker
Environment-based settings with secure defaults
"""

from functools import lru_cache
from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "geo-tracker"
    APP_ENV: str = "development"  # development, staging, production
    DEBUG: bool = False
    API_VERSION: str = "v1"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 4

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./geo_tracker.db"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10

    # LLM Provider API Keys
    OPENAI_API_KEY: Optional[str] = None

    # LLM Default Models
    OPENAI_DEFAULT_MODEL: str = "gpt-4o-mini"

    # LLM Execution Settings
    LLM_DEFAULT_TEMPERATURE: float = 0.7
    LLM_DEFAULT_MAX_TOKENS: int = 2000
    LLM_REQUEST_TIMEOUT: int = 60  # seconds

    # Tracking runs
    TRACKING_MAX_TOKENS: int = 3000  # room for answers with sources
    TRACKING_REQUEST_DELAY: float = 2.0  # seconds between sequential LLM calls
    TRACKING_DEFAULT_WINDOW_DAYS: int = 7

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    @field_validator("TRACKING_REQUEST_DELAY")
    @classmethod
    def non_negative_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("TRACKING_REQUEST_DELAY must be >= 0")
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "production"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings loader"""
    return Settings()


# AI answer engines a tracking run can target
AI_ENGINES = {
    "chatgpt": "ChatGPT",
    "perplexity": "Perplexity",
    "gemini": "Google Gemini",
    "claude": "Claude",
}

# Engines with a working integration
IMPLEMENTED_ENGINES = {"chatgpt"}

DEFAULT_ENGINES = ["chatgpt"]

# Appended to every tracked prompt so answers carry checkable evidence
CITATION_REQUEST_SUFFIX = (
    "Please provide a comprehensive answer with specific sources, citations, "
    "and references where applicable. Include URLs and website names when "
    "mentioning specific brands, products, or services."
)
