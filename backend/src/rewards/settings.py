"""Application settings and configuration."""

import sys

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_JWT_DEFAULTS = {"change-me-in-production", "secret"}


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "rewards"
    env: str = "development"
    log_level: str = "INFO"
    log_format: str = "console"  # console or json
    allowed_origins: str = "http://localhost:5174"

    # JWT session
    jwt_secret_key: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    session_expire_days: int = 15

    # Session cookie
    cookie_name: str = "token"
    cookie_secure: bool = True
    cookie_samesite: str = "none"

    # OTP
    otp_expire_minutes: int = 5

    # Card numbers
    card_number_max_attempts: int = 50

    # Database
    database_url: str = "sqlite:///./rewards.db"

    # Mail (SendGrid)
    sendgrid_api_key: str | None = None
    sendgrid_from_email: str = "no-reply@example.com"
    sendgrid_from_name: str = "Rewards"
    admin_email: str | None = None

    # Uploads
    upload_dir: str = "uploads"


# Global settings instance
settings = Settings()

if settings.env == "production":
    if settings.jwt_secret_key in _INSECURE_JWT_DEFAULTS or len(settings.jwt_secret_key) < 32:
        print(
            "\nFATAL: JWT_SECRET_KEY is insecure or too short (min 32 chars).\n"
            "   Set a strong random value:  openssl rand -hex 32\n",
            file=sys.stderr,
        )
        sys.exit(1)
