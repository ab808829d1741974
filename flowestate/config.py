"""
Configuration management using Pydantic settings.
Handles database URL, session secrets, storage paths and third-party credentials.
"""

from pydantic import validator
from pydantic_settings import BaseSettings
from typing import Optional, List
from functools import lru_cache
import os


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env."""

    # Application configuration
    app_name: str = "Flow Estate API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    testing: bool = False

    # Public URLs used in links, redirects and served media
    app_url: str = "http://localhost:3000"
    public_base_url: str = "http://localhost:8000"

    # Database configuration
    database_url: str = "postgresql+asyncpg://postgres:postgres@db:5432/flowestate"

    # Session tokens
    jwt_secret_key: str = "your-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7

    # Google sign-in
    google_client_id: Optional[str] = None
    google_tokeninfo_url: str = "https://oauth2.googleapis.com/tokeninfo"

    # Object storage root; buckets are subdirectories
    upload_dir: str = "./uploads"

    # OpenAI
    openai_api_key: Optional[str] = None
    openai_chat_model: str = "gpt-4o-mini"
    openai_image_model: str = "gpt-image-1"
    openai_transcription_model: str = "whisper-1"

    # Facebook Graph API
    facebook_app_id: Optional[str] = None
    facebook_app_secret: Optional[str] = None
    facebook_graph_url: str = "https://graph.facebook.com/v18.0"
    facebook_dialog_url: str = "https://www.facebook.com/v18.0/dialog/oauth"

    # Mux video
    mux_token_id: Optional[str] = None
    mux_token_secret: Optional[str] = None
    mux_api_url: str = "https://api.mux.com"
    mux_poll_attempts: int = 40
    mux_poll_interval_seconds: float = 3.0

    # PayPal subscriptions
    paypal_client_id: Optional[str] = None
    paypal_client_secret: Optional[str] = None
    paypal_mode: str = "sandbox"
    paypal_plan_id: Optional[str] = None

    # Plan and capability limits
    free_plan_property_limit: int = 20
    pro_plan_monthly_limit: int = 30
    upload_token_expire_days: int = 7
    upload_token_max_uses: int = 1

    # API configuration
    api_v1_prefix: str = "/api/v1"
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000

    @validator("database_url", pre=True)
    def validate_database_url(cls, v):
        """Ensure an async driver is used."""
        if not v:
            raise ValueError("DATABASE_URL is required")
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        if v.startswith("sqlite://"):
            return v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    @validator("jwt_secret_key", pre=True)
    def validate_jwt_secret_key(cls, v):
        """Validate JWT secret key strength."""
        if not v:
            raise ValueError("JWT_SECRET_KEY is required")
        if len(v) < 32 and v != "your-secret-key-change-in-production":
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long")
        return v

    @validator("environment")
    def validate_environment(cls, v):
        """Validate environment setting."""
        allowed_envs = ["development", "testing", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"Environment must be one of: {allowed_envs}")
        return v

    @validator("paypal_mode")
    def validate_paypal_mode(cls, v):
        """PayPal only knows sandbox and live."""
        if v not in ("sandbox", "live"):
            raise ValueError("PAYPAL_MODE must be 'sandbox' or 'live'")
        return v

    @validator("upload_dir", pre=True)
    def create_upload_directory(cls, v):
        """Ensure the storage root exists."""
        if v and not os.path.exists(v):
            os.makedirs(v, exist_ok=True)
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == "testing" or self.testing

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def paypal_api_url(self) -> str:
        if self.paypal_mode == "live":
            return "https://api-m.paypal.com"
        return "https://api-m.sandbox.paypal.com"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one instance of settings throughout the app lifecycle.
    """
    return Settings()


# Global settings instance
settings = get_settings()
