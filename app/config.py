"""Configuration settings for Voice Journal."""

import os
import secrets
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./voice_journal.db")

    # JWT
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRE_MINUTES: int = int(os.getenv("JWT_EXPIRE_MINUTES", "480"))

    # OpenAI
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_TRANSCRIBE_MODEL: str = os.getenv("OPENAI_TRANSCRIBE_MODEL", "whisper-1")
    OPENAI_REWRITE_MODEL: str = os.getenv("OPENAI_REWRITE_MODEL", "gpt-4o")

    # Speech-to-text: "openai" or "local" (faster-whisper)
    SPEECH_PROVIDER: str = os.getenv("SPEECH_PROVIDER", "openai")
    WHISPER_MODEL_SIZE: str = os.getenv("WHISPER_MODEL_SIZE", "base")
    DEFAULT_LANGUAGE: str = os.getenv("DEFAULT_LANGUAGE", "en")

    # Rewrite: "rephrase" (first-person rewrite) or "summary"
    REWRITE_STYLE: str = os.getenv("REWRITE_STYLE", "rephrase")
    REWRITE_MAX_TOKENS: int = int(os.getenv("REWRITE_MAX_TOKENS", "300"))

    # Upstream calls
    UPSTREAM_TIMEOUT_SECONDS: float = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "60"))
    UPSTREAM_MAX_ATTEMPTS: int = int(os.getenv("UPSTREAM_MAX_ATTEMPTS", "2"))

    # Object storage
    STORAGE_DIR: str = os.getenv("STORAGE_DIR", "storage")
    STORAGE_BUCKET: str = os.getenv("STORAGE_BUCKET", "audio-files")
    MAX_UPLOAD_SIZE_MB: int = int(os.getenv("MAX_UPLOAD_SIZE_MB", "25"))

    # Journal
    APP_TIMEZONE: str = os.getenv("APP_TIMEZONE", "UTC")
    STREAK_LOOKBACK_ENTRIES: int = int(os.getenv("STREAK_LOOKBACK_ENTRIES", "30"))

    # Application
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    def __init__(self) -> None:
        if not self.JWT_SECRET_KEY:
            self.JWT_SECRET_KEY = secrets.token_urlsafe(32)
            self._generated_secret = True
        else:
            self._generated_secret = False

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

    def validate(self) -> list[str]:
        """Validate settings and return list of warnings."""
        warnings = []
        if self._generated_secret:
            warnings.append("JWT_SECRET_KEY is not set - using auto-generated key (not persistent across restarts)")
        if not self.OPENAI_API_KEY:
            warnings.append("OPENAI_API_KEY is not set - transcription requests will fail")
        if self.SPEECH_PROVIDER not in ("openai", "local"):
            warnings.append(f"Unknown SPEECH_PROVIDER '{self.SPEECH_PROVIDER}' - falling back to 'openai'")
        if self.REWRITE_STYLE not in ("rephrase", "summary"):
            warnings.append(f"Unknown REWRITE_STYLE '{self.REWRITE_STYLE}' - falling back to 'rephrase'")
        return warnings


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
