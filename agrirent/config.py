"""Configuration settings for AgriRent."""

import os
import secrets
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./agrirent.db")

    # JWT: one secret per token kind
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", secrets.token_urlsafe(32))
    JWT_ACTIVATION_SECRET_KEY: str = os.getenv("JWT_ACTIVATION_SECRET_KEY", secrets.token_urlsafe(32))
    JWT_RESET_SECRET_KEY: str = os.getenv("JWT_RESET_SECRET_KEY", secrets.token_urlsafe(32))
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRE: str = os.getenv("JWT_EXPIRE", "1d")
    JWT_RESET_EXPIRE: str = os.getenv("JWT_RESET_EXPIRE", "1h")

    # URLs
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")
    BACKEND_URL: str = os.getenv("BACKEND_URL", "http://localhost:5000")
    FRONTEND_URLS: list[str] = _split_csv(os.getenv("FRONTEND_URLS")) or [
        url
        for url in (
            "http://localhost:3000",
            "http://localhost:3001",
            "http://localhost:3002",
            os.getenv("USER_FRONTEND_URL"),
            os.getenv("PROVIDER_FRONTEND_URL"),
        )
        if url
    ]
    FRONTEND_PORTS: list[str] = _split_csv(os.getenv("FRONTEND_PORTS")) or ["3000", "3001", "3002"]

    # Email
    EMAIL_HOST: str = os.getenv("EMAIL_HOST", "smtp.gmail.com")
    EMAIL_PORT: int = int(os.getenv("EMAIL_PORT", "587"))
    EMAIL_USER: str = os.getenv("EMAIL_USER", "")
    EMAIL_PASS: str = os.getenv("EMAIL_PASS", "")
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", os.getenv("EMAIL_USER", "no-reply@agrirent.local"))
    EMAIL_TIMEOUT_SECONDS: float = float(os.getenv("EMAIL_TIMEOUT_SECONDS", "10"))

    # Application
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    @property
    def email_configured(self) -> bool:
        """True when SMTP credentials are present."""
        return bool(self.EMAIL_USER and self.EMAIL_PASS)

    def validate(self) -> list[str]:
        """Validate settings and return list of warnings."""
        errors = []
        for key in ("JWT_SECRET_KEY", "JWT_ACTIVATION_SECRET_KEY", "JWT_RESET_SECRET_KEY"):
            if not os.getenv(key):
                errors.append(f"{key} is not set - using auto-generated key (not persistent across restarts)")
        if not self.email_configured:
            errors.append("EMAIL_USER/EMAIL_PASS are not set - emails will be written to the log instead of sent")
        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
