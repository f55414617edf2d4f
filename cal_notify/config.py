import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DEFAULT_POSTMARK_API_URL = "https://api.postmarkapp.com/email"


class Settings(BaseModel):
    """
    Process-wide configuration, built once at startup.

    Route handlers receive it through the ``get_settings`` dependency so that
    missing-configuration paths can be exercised by overriding the dependency.
    """

    # Cal.com webhook shared secret (X-Cal-Signature-256)
    cal_webhook_secret: Optional[str] = None

    # Postmark Email Configuration
    postmark_server_api_token: Optional[str] = None
    postmark_from_email: Optional[str] = None
    postmark_api_url: str = DEFAULT_POSTMARK_API_URL
    postmark_message_stream: str = "outbound"
    postmark_timeout_seconds: float = 30.0

    # Base64 encoded 32 byte key used for AES256 (generate with: openssl rand -base64 32)
    encryption_key: Optional[str] = None

    # Signing key for session tokens
    secret_key: Optional[str] = None

    database_url: str = "sqlite:///./cal_notify.db"
    redis_url: Optional[str] = None

    totp_setup_rate_limit: int = 10
    totp_setup_rate_window_seconds: int = 60

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            cal_webhook_secret=os.getenv("CAL_WEBHOOK_SECRET") or None,
            postmark_server_api_token=os.getenv("POSTMARK_SERVER_API_TOKEN") or None,
            postmark_from_email=os.getenv("POSTMARK_FROM_EMAIL") or None,
            postmark_api_url=os.getenv("POSTMARK_API_URL", DEFAULT_POSTMARK_API_URL),
            postmark_message_stream=os.getenv("POSTMARK_MESSAGE_STREAM", "outbound"),
            postmark_timeout_seconds=float(os.getenv("POSTMARK_TIMEOUT_SECONDS", "30")),
            encryption_key=os.getenv("CALENDSO_ENCRYPTION_KEY") or None,
            secret_key=os.getenv("SECRET_KEY") or None,
            database_url=os.getenv("DATABASE_URL", "sqlite:///./cal_notify.db"),
            redis_url=os.getenv("REDIS_URL") or None,
            totp_setup_rate_limit=int(os.getenv("TOTP_SETUP_RATE_LIMIT", "10")),
            totp_setup_rate_window_seconds=int(os.getenv("TOTP_SETUP_RATE_WINDOW_SECONDS", "60")),
        )


@lru_cache
def get_settings() -> Settings:
    """FastAPI dependency returning the process settings"""
    return Settings.from_env()
