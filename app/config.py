"""Configuration settings for Better Subtitles."""

import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

LOOPBACK_HOSTS = {"127.0.0.1", "localhost", "::1"}


class Settings:
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./subtitles.db")
    AUTO_MIGRATE: bool = os.getenv("AUTO_MIGRATE", "true").lower() == "true"

    # Whisper
    WHISPER_MODEL: str = os.getenv("WHISPER_MODEL", "base")
    WHISPER_DEVICE: str = os.getenv("WHISPER_DEVICE", "cpu")
    WHISPER_COMPUTE_TYPE: str = os.getenv("WHISPER_COMPUTE_TYPE", "int8")
    WHISPER_LANGUAGE: str | None = os.getenv("WHISPER_LANGUAGE") or None

    # External tools
    YTDLP_BINARY: str = os.getenv("YTDLP_BINARY", "yt-dlp")
    FFMPEG_BINARY: str = os.getenv("FFMPEG_BINARY", "ffmpeg")

    # Lookup server
    SERVER_HOST: str = os.getenv("SERVER_HOST", "127.0.0.1")
    SERVER_PORT: int = int(os.getenv("SERVER_PORT", "14567"))

    # Application
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    def validate(self) -> list[str]:
        """Validate settings and return list of warnings."""
        warnings = []
        if self.SERVER_HOST not in LOOPBACK_HOSTS:
            warnings.append(f"SERVER_HOST={self.SERVER_HOST} is not loopback - lookup endpoint allows any origin")
        if not self.DATABASE_URL.startswith("sqlite") and self.AUTO_MIGRATE:
            warnings.append("AUTO_MIGRATE is enabled against a non-SQLite database")
        return warnings


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
