"""
Application settings for the Job Suite interview notification service.
"""

from functools import lru_cache
from typing import List, Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_ENV_CONFIG = dict(
    env_file=".env",
    env_file_encoding="utf-8",
    case_sensitive=False,
    extra="ignore",
)


class DatabaseSettings(BaseSettings):
    """Database configuration settings."""

    model_config = SettingsConfigDict(**_ENV_CONFIG)

    mongodb_url: str = Field(default="mongodb://localhost:27017")
    mongodb_database: str = Field(default="job_suite")
    mongodb_min_pool_size: int = Field(default=5)
    mongodb_max_pool_size: int = Field(default=50)


class EmailSettings(BaseSettings):
    """Outbound SMTP configuration."""

    model_config = SettingsConfigDict(**_ENV_CONFIG)

    smtp_server: str = Field(default="smtp.gmail.com")
    smtp_port: int = Field(default=587)
    smtp_username: Optional[str] = Field(default=None)
    smtp_password: Optional[str] = Field(default=None)
    smtp_use_tls: bool = Field(default=True)
    smtp_timeout: float = Field(default=30.0)
    email_from: str = Field(default="noreply@jobsuite.app")
    email_from_name: str = Field(default="Job Suite")

    @property
    def is_configured(self) -> bool:
        """Whether SMTP credentials are present."""
        return bool(self.smtp_username and self.smtp_password)


class ReminderSettings(BaseSettings):
    """Interview reminder trigger loop configuration."""

    model_config = SettingsConfigDict(env_prefix="REMINDER_", **_ENV_CONFIG)

    enabled: bool = Field(default=True)
    queue_interval_minutes: int = Field(default=5, ge=1)
    thank_you_hour: int = Field(default=9, ge=0, le=23)
    follow_up_hour: int = Field(default=10, ge=0, le=23)
    follow_up_window_days: int = Field(default=7, ge=1)
    max_dispatch_attempts: int = Field(default=3, ge=1)
    timezone: str = Field(default="UTC")


class MonitoringSettings(BaseSettings):
    """Monitoring and observability settings."""

    model_config = SettingsConfigDict(**_ENV_CONFIG)

    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")  # json or console
    log_file_path: Optional[str] = Field(default=None)
    enable_metrics: bool = Field(default=True)

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        if v not in {"json", "console"}:
            raise ValueError("Log format must be 'json' or 'console'")
        return v


class Settings(BaseSettings):
    """Main application settings combining all configuration sections."""

    model_config = SettingsConfigDict(**_ENV_CONFIG)

    # Application
    app_name: str = Field(default="Job Suite")
    app_version: str = Field(default="1.0.0")
    app_environment: str = Field(default="development")
    app_host: str = Field(default="0.0.0.0")
    app_port: int = Field(default=8000)
    app_debug: bool = Field(default=False)

    # Frontend
    frontend_url: str = Field(default="http://localhost:3000")
    allowed_origins: Union[str, List[str]] = Field(default=["http://localhost:3000"])

    # Configuration sections
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    reminders: ReminderSettings = Field(default_factory=ReminderSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_environment")
    @classmethod
    def validate_environment(cls, v):
        valid_environments = {"development", "staging", "production", "testing"}
        if v not in valid_environments:
            raise ValueError(f"Environment must be one of {valid_environments}")
        return v

    @field_validator("allowed_origins")
    @classmethod
    def parse_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_environment == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
