"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

MONGODB_URI is only required when the MongoDB store backend is selected;
STORE_BACKEND=memory runs the service without a database (local development
and integration tests).
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    store_backend: Literal["mongo", "memory"] = "mongo"
    mongodb_uri: Optional[str] = None
    db_name: str = "captcha-service"
    # Multi-document transactions need a replica set; standalone servers
    # fall back to ordered compare-and-swap writes.
    mongodb_transactions: bool = True

    @model_validator(mode="after")
    def _require_uri_for_mongo(self) -> "DatabaseSettings":
        if self.store_backend == "mongo" and not self.mongodb_uri:
            raise ValueError("MONGODB_URI is required when STORE_BACKEND=mongo")
        return self


class CaptchaSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    captcha_length: int = Field(default=6, gt=0)
    captcha_character_range: str = "[a-z],[0-9]"
    captcha_timeout: int = Field(default=120, gt=0)  # seconds
    # "test" exposes the answer when a captcha is created
    captcha_mode: Literal["production", "test"] = "production"
    activation_retries: int = Field(default=3, ge=0)
    credential_scheme: Literal["argon2", "plain"] = "argon2"

    @property
    def expose_answer(self) -> bool:
        return self.captcha_mode == "test"


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = "development"
    app_name: str = "captcha-service"

    # CORS: all origins allowed by default
    cors_origins: list[str] = ["*"]

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    captcha: Optional[CaptchaSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Populate sub-configs from the same env/dotenv source
        if self.db is None:
            self.db = DatabaseSettings()
        if self.captcha is None:
            self.captcha = CaptchaSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()

        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
