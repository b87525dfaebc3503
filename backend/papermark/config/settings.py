"""
Configuration settings for PaperMark.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[2]
load_dotenv(ROOT_DIR / '.env')


class Settings:
    """Application settings loaded from environment."""

    # Database
    MONGODB_URL: str = os.environ.get("MONGODB_URI", "mongodb://localhost:27017")
    DATABASE_NAME: str = os.environ.get("DATABASE_NAME", "papermark")

    # API Keys
    GEMINI_API_KEY: str = os.environ.get("GEMINI_API_KEY", "")
    LLM_API_KEY: str = GEMINI_API_KEY

    # Server
    PORT: int = int(os.environ.get("PORT", 8001))
    HOST: str = os.environ.get("HOST", "0.0.0.0")
    DEBUG: bool = os.environ.get("DEBUG", "False").lower() == "true"
    CORS_ORIGINS: list = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()]

    # Public address the oracle uses to fetch uploaded files
    PUBLIC_BASE_URL: str = os.environ.get("PUBLIC_BASE_URL", "http://localhost:8001").rstrip("/")

    # Auth
    OWNER_OPEN_ID: Optional[str] = os.environ.get("OWNER_OPEN_ID") or None
    SESSION_COOKIE_NAME: str = "session_token"
    SESSION_TTL_DAYS: int = int(os.environ.get("SESSION_TTL_DAYS", 365))
    # Verifies a sign-in session_id and returns the identity behind it
    AUTH_SERVICE_URL: str = os.environ.get("AUTH_SERVICE_URL", "")
    AUTH_SERVICE_TIMEOUT: int = int(os.environ.get("AUTH_SERVICE_TIMEOUT", 10))  # seconds

    # AI Configuration
    LLM_MODEL: str = os.environ.get("LLM_MODEL", "gemini-2.5-flash")
    LLM_TIMEOUT: int = int(os.environ.get("LLM_TIMEOUT", 180))  # seconds
    LLM_TEMPERATURE: float = 0.0  # Deterministic grading
    LLM_MAX_OUTPUT_TOKENS: int = 32768
    LLM_MAX_CONCURRENCY: int = 5  # Concurrent oracle calls
    FILE_FETCH_TIMEOUT: int = 30  # seconds, per exam page / mark scheme

    # Disputes
    MAX_DISPUTE_REASON_LENGTH: int = 2000

    # Logging
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    def validate(self):
        """Validate critical settings."""
        if not self.MONGODB_URL:
            raise ValueError("MONGODB_URI environment variable not set")
        if not self.LLM_API_KEY:
            raise ValueError("GEMINI_API_KEY environment variable not set")
        return True


# Global settings instance
settings = Settings()
