"""
Configuration management using pydantic-settings and python-dotenv
"""
from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Complaint feed
    FEED_URL: str = Field(
        default="http://localhost:8000/feed/complaints",
        description="JSON feed endpoint mirroring the complaint sheet",
        alias="FEED_URL"
    )
    FEED_TIMEOUT: float = Field(
        default=10.0,
        description="Foreground feed request timeout in seconds"
    )

    # Local cache
    CACHE_PATH: str = Field(
        default="complaints_cache.json",
        description="File backing the local complaint cache"
    )
    CACHE_TTL_SECONDS: int = Field(
        default=300,
        description="Age after which a cached snapshot triggers a background refresh"
    )

    # Listing
    PAGE_SIZE: int = Field(
        default=25,
        description="Complaints per page"
    )
    KNOWN_CATEGORIES: List[str] = Field(
        default_factory=list,
        description="Canonical categories used when no category database is configured"
    )

    # Database
    DATABASE_URL: Optional[str] = Field(
        default=None,
        description="Async database connection URL for the category directory",
        alias="DATABASE_URL"
    )
    DATABASE_ECHO: bool = Field(
        default=False,
        description="Echo SQL queries for debugging",
        alias="DATABASE_ECHO"
    )
    SUPABASE_URL: Optional[str] = Field(
        default=None,
        description="Supabase project URL",
        alias="SUPABASE_URL"
    )
    SUPABASE_SERVICE_KEY: Optional[str] = Field(
        default=None,
        description="Supabase service role key",
        alias="SUPABASE_SERVICE_KEY"
    )

    # Google Sheets feed mirror
    GOOGLE_SHEETS_API_KEY: Optional[str] = Field(
        default=None,
        description="API key for the Google Sheets values endpoint",
        alias="GOOGLE_SHEETS_API_KEY"
    )
    SHEET_ID: Optional[str] = Field(
        default=None,
        description="Spreadsheet holding the form responses"
    )
    SHEET_RANGE: str = Field(
        default="תגובות לטופס 1",
        description="Sheet (tab) name holding the form responses"
    )
    SHEET_TIMEZONE: str = Field(
        default="Asia/Jerusalem",
        description="Timezone of the naive form submission timestamps"
    )
    FEED_SERVER_CACHE_TTL: int = Field(
        default=300,
        description="Seconds the feed mirror keeps sheet rows in memory"
    )

    # Application
    ENVIRONMENT: str = Field(
        default="development",
        description="Application environment"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level"
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "allow"  # Allow extra fields from environment variables


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Global settings instance
settings = get_settings()
