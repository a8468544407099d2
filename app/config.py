"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        default="sqlite:///./notifications.db",
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    app_timezone: str | None = Field(
        default=None,
        description="IANA timezone (or UTC±HH:MM offset) used for stored timestamps",
    )
    app_url: str = Field(
        default="",
        description="Public base URL prepended to notification action links in emails",
    )
    log_level: str = Field(default="INFO", description="Root logging level")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:4200"],
        description="Origins allowed to call the HTTP API from a browser",
    )

    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used for sending notification emails via the REST API",
    )
    sendgrid_sender: str | None = Field(
        default=None,
        description="Email address that will appear as the sender of notification emails",
        min_length=3,
    )
    twilio_account_sid: str | None = Field(
        default=None, description="Twilio account SID used for SMS delivery"
    )
    twilio_auth_token: str | None = Field(
        default=None, description="Twilio auth token used for SMS delivery"
    )
    twilio_sms_number: str | None = Field(
        default=None, description="Twilio phone number used as the SMS sender"
    )
    firebase_credentials_path: str | None = Field(
        default=None,
        description="Path to the Firebase service account file used for push delivery",
    )
    slack_webhook_url: str | None = Field(
        default=None, description="Incoming webhook URL used for the Slack channel"
    )
    webhook_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Timeout applied to outbound webhook calls"
    )

    notification_retry_max_attempts: int = Field(
        default=3, ge=1, description="Delivery attempts per channel, first one included"
    )
    notification_retry_base_delay_seconds: float = Field(
        default=1.0, ge=0, description="Delay before the first channel retry"
    )
    notification_retry_max_delay_seconds: float = Field(
        default=30.0, ge=0, description="Upper bound for the channel retry delay"
    )
    notification_retry_multiplier: float = Field(
        default=2.0, ge=1, description="Exponential growth factor between retries"
    )
    notification_bulk_batch_size: int = Field(
        default=50, gt=0, description="Recipients processed concurrently per bulk batch"
    )
    notification_bulk_delay_ms: int = Field(
        default=100, ge=0, description="Pause between bulk batches in milliseconds"
    )

    @model_validator(mode="after")
    def _validate_sendgrid_pair(self) -> "Settings":
        if bool(self.sendgrid_api_key) ^ bool(self.sendgrid_sender):
            raise ValueError(
                "SENDGRID_API_KEY and SENDGRID_SENDER must both be provided to enable email"
            )
        if self.sendgrid_sender and "@" not in self.sendgrid_sender:
            raise ValueError("SENDGRID_SENDER must be a valid email address")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
