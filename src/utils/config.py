"""Configuration management for Meal Planner Bot.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults
"""

import os
from typing import Optional

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Gemini API Key: optional, recipe generation falls back to static recipes without it
        self.GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
        # Default: gemini-2.5-flash (fast, cost-effective)
        self.GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
        # LLM Model Parameters
        # Temperature: 1.0 keeps recipe suggestions varied between regenerations
        self.TEMPERATURE: float = float(os.getenv("TEMPERATURE", "1.0"))
        # Top P: nucleus sampling cutoff
        self.TOP_P: float = float(os.getenv("TOP_P", "0.95"))
        # Generation Timeout: upper bound (seconds) for a single model call
        self.GENERATION_TIMEOUT_SECONDS: float = float(os.getenv("GENERATION_TIMEOUT_SECONDS", "60"))

        # Generation Retry Configuration - handles transient API failures gracefully
        # MAX_RETRIES: Number of attempts for a failed model call (exponential backoff)
        self.MAX_RETRIES: int = int(os.getenv("MAX_RETRIES", "3"))
        # DELAY_BETWEEN_RETRIES: Initial delay in seconds (doubled each retry)
        self.DELAY_BETWEEN_RETRIES: float = float(os.getenv("DELAY_BETWEEN_RETRIES", "1"))

        # YouTube API Key: optional, recipes are shown without video links when missing
        self.YOUTUBE_API_KEY: str = os.getenv("YOUTUBE_API_KEY", "")
        # YouTube request timeout in seconds. Default: 10
        self.YOUTUBE_TIMEOUT_SECONDS: float = float(os.getenv("YOUTUBE_TIMEOUT_SECONDS", "10"))
        # Delay between consecutive video lookups (milliseconds) to stay under rate limits
        self.ENRICHMENT_STAGGER_MS: int = int(os.getenv("ENRICHMENT_STAGGER_MS", "100"))
        # Maximum number of video lookups in flight at once
        self.ENRICHMENT_MAX_CONCURRENCY: int = int(os.getenv("ENRICHMENT_MAX_CONCURRENCY", "5"))

        # Session Configuration
        # SESSION_TTL_SECONDS: idle time after which a conversation is forgotten. Default: 1 hour
        self.SESSION_TTL_SECONDS: int = int(os.getenv("SESSION_TTL_SECONDS", "3600"))
        # SESSION_SWEEP_INTERVAL_SECONDS: how often expired in-memory sessions are purged
        self.SESSION_SWEEP_INTERVAL_SECONDS: int = int(os.getenv("SESSION_SWEEP_INTERVAL_SECONDS", "300"))
        # MONGO_URI: Optional MongoDB connection string for durable sessions (in-memory when unset)
        self.MONGO_URI: Optional[str] = os.getenv("MONGO_URI")
        self.MONGO_DB: str = os.getenv("MONGO_DB", "meal_planner")
        self.MONGO_SESSIONS_COLLECTION: str = os.getenv("MONGO_SESSIONS_COLLECTION", "sessions")

        # Language used before the user picks one: "en", "hi" or "hinglish"
        self.DEFAULT_LANGUAGE: str = os.getenv("DEFAULT_LANGUAGE", "en")
        # STRICT_CONTRACTS: raise on session contract violations instead of degrading to defaults
        # Recommended: True in tests, False in production
        self.STRICT_CONTRACTS: bool = _env_bool("STRICT_CONTRACTS", "false")

    def validate(self) -> None:
        """Validate configuration values.

        API keys are not required: missing keys degrade to fallback recipes
        and recipes without video links.

        Raises:
            ValueError: If invalid values provided.
        """
        if not (0.0 <= self.TEMPERATURE <= 2.0):
            raise ValueError(
                f"TEMPERATURE must be between 0.0 and 2.0, got: {self.TEMPERATURE}"
            )
        if not (0.0 < self.TOP_P <= 1.0):
            raise ValueError(
                f"TOP_P must be between 0.0 (exclusive) and 1.0, got: {self.TOP_P}"
            )
        if self.GENERATION_TIMEOUT_SECONDS <= 0:
            raise ValueError(
                f"GENERATION_TIMEOUT_SECONDS must be positive, got: {self.GENERATION_TIMEOUT_SECONDS}"
            )
        if self.MAX_RETRIES < 1:
            raise ValueError(
                f"MAX_RETRIES must be at least 1, got: {self.MAX_RETRIES}"
            )
        if self.DELAY_BETWEEN_RETRIES < 0:
            raise ValueError(
                f"DELAY_BETWEEN_RETRIES must not be negative, got: {self.DELAY_BETWEEN_RETRIES}"
            )
        if self.YOUTUBE_TIMEOUT_SECONDS <= 0:
            raise ValueError(
                f"YOUTUBE_TIMEOUT_SECONDS must be positive, got: {self.YOUTUBE_TIMEOUT_SECONDS}"
            )
        if self.ENRICHMENT_STAGGER_MS < 0:
            raise ValueError(
                f"ENRICHMENT_STAGGER_MS must not be negative, got: {self.ENRICHMENT_STAGGER_MS}"
            )
        if self.ENRICHMENT_MAX_CONCURRENCY < 1:
            raise ValueError(
                f"ENRICHMENT_MAX_CONCURRENCY must be at least 1, got: {self.ENRICHMENT_MAX_CONCURRENCY}"
            )
        if self.SESSION_TTL_SECONDS < 1:
            raise ValueError(
                f"SESSION_TTL_SECONDS must be at least 1, got: {self.SESSION_TTL_SECONDS}"
            )
        if self.SESSION_SWEEP_INTERVAL_SECONDS < 1:
            raise ValueError(
                f"SESSION_SWEEP_INTERVAL_SECONDS must be at least 1, got: {self.SESSION_SWEEP_INTERVAL_SECONDS}"
            )
        if self.DEFAULT_LANGUAGE not in ("en", "hi", "hinglish"):
            raise ValueError(
                f"DEFAULT_LANGUAGE must be 'en', 'hi', or 'hinglish', got: {self.DEFAULT_LANGUAGE}"
            )


# Create module-level config instance and validate immediately
config = Config()
config.validate()
