"""
Configuration management for the application.

Loads environment variables and provides centralized config access.
"""

import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Application configuration"""

    # Flask settings
    FLASK_ENV: str = os.getenv("FLASK_ENV", "development")
    DEBUG: bool = FLASK_ENV == "development"
    FRONTEND_URL: Optional[str] = os.getenv("FRONTEND_URL")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Preferred path: direct relational connection
    DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")

    # Fallback path: backend-as-a-service REST API
    SUPABASE_URL: Optional[str] = os.getenv("SUPABASE_URL")
    SUPABASE_KEY: Optional[str] = os.getenv("SUPABASE_KEY")
    REST_TIMEOUT_SECONDS: float = float(os.getenv("REST_TIMEOUT_SECONDS", "10"))

    # Listing cache settings
    LISTING_CACHE_TTL_SECONDS: float = float(os.getenv("LISTING_CACHE_TTL_SECONDS", "300"))
    LISTING_CACHE_MAX_SIZE: int = int(os.getenv("LISTING_CACHE_MAX_SIZE", "100"))
    LISTING_CACHE_CLEANUP_SECONDS: float = float(os.getenv("LISTING_CACHE_CLEANUP_SECONDS", "300"))

    # Listing settings
    NOTES_PAGE_SIZE: int = int(os.getenv("NOTES_PAGE_SIZE", "10"))

    @classmethod
    def rest_fallback_enabled(cls) -> bool:
        """True when the REST fallback client has both URL and key."""
        return bool(cls.SUPABASE_URL and cls.SUPABASE_KEY)

    @classmethod
    def validate(cls):
        """Validate required configuration"""
        errors = []

        if cls.FLASK_ENV == "production" and not cls.DATABASE_URL and not cls.rest_fallback_enabled():
            errors.append("Neither DATABASE_URL nor SUPABASE_URL/SUPABASE_KEY is set")

        if cls.LISTING_CACHE_MAX_SIZE < 1:
            errors.append("LISTING_CACHE_MAX_SIZE must be at least 1")

        if cls.NOTES_PAGE_SIZE < 1:
            errors.append("NOTES_PAGE_SIZE must be at least 1")

        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")


# Create config instance
config = Config()
