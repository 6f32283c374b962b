"""Application settings using Pydantic Settings.

Centralized configuration for the FROI intake wizard.

Environment variables:
- APP_*: application, logging and scoring options
- SMTP_*: outgoing mail server used to deliver claims
- CLAIMS_*: claims inbox and company details printed on claim documents
"""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class SMTPSettings(BaseSettings):
    """Outgoing mail server configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SMTP_",
        extra="ignore",
    )

    host: Optional[str] = Field(default=None, description="SMTP server hostname")
    port: int = Field(default=587, description="SMTP server port")
    username: Optional[str] = Field(default=None, description="SMTP username")
    password: Optional[str] = Field(default=None, description="SMTP password")
    use_tls: bool = Field(default=True, description="Use STARTTLS")
    use_ssl: bool = Field(default=False, description="Use implicit SSL (port 465)")
    timeout: int = Field(default=30, description="Connection timeout in seconds")

    from_email: str = Field(default="noreply@example.com", description="Default sender email")
    from_name: str = Field(default="FROI Claims", description="Default sender name")

    @property
    def is_configured(self) -> bool:
        """Check if SMTP is configured."""
        return bool(self.host)


class ClaimsSettings(BaseSettings):
    """Where claims go and who they come from."""

    model_config = SettingsConfigDict(
        env_prefix="CLAIMS_",
        extra="ignore",
    )

    inbox_email: str = Field(default="claims@example.com", description="Address receiving new claims")
    company_name: str = Field(default="Titanium Defense Group", description="Company name on documents")
    company_email: str = Field(default="claims@example.com", description="Company contact email")
    company_phone: str = Field(default="(555) 123-4567", description="Company contact phone")
    send_confirmation: bool = Field(default=True, description="Email the submitter a confirmation")
    reference_prefix: str = Field(default="FROI", description="Prefix for claim reference numbers")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application info
    name: str = Field(default="FROI Intake", description="Application name")
    version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    environment: str = Field(default="development", description="Environment name")

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=False, description="Emit JSON log lines")
    log_file: Optional[str] = Field(default=None, description="Optional log file path")

    # Scoring
    scoring_presence_mode: str = Field(
        default="answered",
        description="How tristate answers count toward the score: 'answered' or 'truthy' (legacy)",
    )

    # Attachments
    attachment_max_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Advisory size limit per attachment",
    )

    @field_validator("scoring_presence_mode")
    @classmethod
    def _check_presence_mode(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("answered", "truthy"):
            raise ValueError("scoring_presence_mode must be 'answered' or 'truthy'")
        return value

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.strip().upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return value

    # Nested settings (loaded separately)
    @property
    def smtp(self) -> SMTPSettings:
        return SMTPSettings()

    @property
    def claims(self) -> ClaimsSettings:
        return ClaimsSettings()

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment in ("production", "prod", "staging")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    Returns:
        Settings: Cached settings loaded from environment.
    """
    return Settings()
