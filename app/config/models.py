"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .environment import SANDBOX_SENDER_ADDRESS

DEFAULT_RESEND_API_URL = "https://api.resend.com"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class ProviderConfig(BaseModel):
    """Email provider (Resend) settings."""

    api_url: str = Field(
        DEFAULT_RESEND_API_URL, min_length=1, description="Base URL of the Resend API"
    )
    sandbox_sender: str = Field(
        SANDBOX_SENDER_ADDRESS,
        min_length=3,
        description="Provider default sender usable without domain verification",
    )
    request_timeout: int = Field(
        15, ge=1, le=120, description="Timeout for provider requests (seconds)"
    )

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Require an http(s) URL and strip the trailing slash."""
        stripped = v.strip().rstrip("/")
        if not stripped.startswith(("http://", "https://")):
            raise ValueError("api_url must start with http:// or https://")
        return stripped

    @field_validator("sandbox_sender")
    @classmethod
    def validate_sandbox_sender(cls, v: str) -> str:
        """Normalize the sandbox sender to a bare lower-case address."""
        stripped = v.strip().lower()
        if "@" not in stripped:
            raise ValueError("sandbox_sender must be an email address")
        return stripped


class DeliveryConfig(BaseModel):
    """Retry and backoff settings for a single dispatch."""

    max_attempts: int = Field(
        3, ge=1, le=10, description="Send attempts allowed while rate limited"
    )
    initial_delay_ms: int = Field(
        500, ge=0, le=60000, description="Delay after the first rate-limited attempt"
    )
    backoff_multiplier: float = Field(
        2.0, ge=1.0, le=5.0, description="Exponential backoff multiplier"
    )

    def delay_for(self, attempt_index: int) -> float:
        """Return the backoff delay in seconds after the given 0-based attempt."""
        return self.initial_delay_ms * (self.backoff_multiplier ** attempt_index) / 1000.0


class BrandingConfig(BaseModel):
    """Brand details interpolated into emails."""

    sender_label: str = Field(
        "SkillConnect", min_length=1, description="Brand name used in emails"
    )
    dashboard_url: str = Field(
        "https://skillconnect.app/dashboard",
        min_length=1,
        description="Link used in recruiter notifications",
    )

    @field_validator("sender_label", "dashboard_url")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip whitespace from string fields."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )
    mask_recipients: bool = Field(
        True, description="Mask recipient addresses in log output (j***@example.com)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the application notifier."""

    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)
    branding: BrandingConfig = Field(default_factory=BrandingConfig)
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    allowed_origins: list[str] = Field(
        default_factory=lambda: ["*"], description="CORS origins for the HTTP API"
    )

    def total_backoff_seconds(self) -> float:
        """Worst-case time spent sleeping within one dispatch."""
        return sum(
            self.delivery.delay_for(i) for i in range(self.delivery.max_attempts)
        )

    def sandbox_sender_for(self, label: Optional[str] = None) -> str:
        """Return the sandbox sender formatted with a display label."""
        return f"{label or self.branding.sender_label} <{self.provider.sandbox_sender}>"
