"""Application settings and configuration."""

import sys

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_JWT_DEFAULTS = {"change-me-in-production", "secret", "your_jwt_secret_key_here_at_least_32_characters"}
_INSECURE_ADMIN_PASSWORDS = {"admin", "password", "change-me"}


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "campaign-tracker"
    env: str = "development"
    log_level: str = "INFO"
    log_format: str = "console"  # console or json
    allowed_origins: str = "http://localhost:5173"
    trust_proxy_headers: bool = False  # use X-Forwarded-For for rate limiting

    # JWT
    jwt_secret_key: str = "change-me-in-production"
    jwt_expire_hours: int = 12

    # Database
    database_url: str = "sqlite:///./campaign.db"

    # Admin dashboard credentials
    admin_username: str = "admin"
    admin_password: str = "admin"

    # Registration
    min_password_length: int = 6

    # Influencer codes generated from the admin dashboard
    influencer_code_prefix: str = "INF-"
    influencer_code_length: int = 3

    # Redemption
    points_per_redemption: int = 1

    # Product code upload
    max_upload_codes: int = 1_000_000
    upload_batch_size: int = 1000

    # Rankings
    leaderboard_size: int = 10

    # Realtime
    realtime_heartbeat_seconds: float = 15.0


# Global settings instance
settings = Settings()

# ── Security validation ──────────────────────────────────────────────
if settings.env == "production":
    if settings.jwt_secret_key in _INSECURE_JWT_DEFAULTS or len(settings.jwt_secret_key) < 32:
        print(
            "\n❌  FATAL: JWT_SECRET_KEY is insecure or too short (min 32 chars).\n"
            "   Set a strong random value:  openssl rand -hex 32\n",
            file=sys.stderr,
        )
        sys.exit(1)
    if settings.admin_password in _INSECURE_ADMIN_PASSWORDS:
        print(
            "\n❌  FATAL: ADMIN_PASSWORD is still a default value.\n",
            file=sys.stderr,
        )
        sys.exit(1)
