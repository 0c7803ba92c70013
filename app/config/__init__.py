"""Configuration management module for the application notifier."""

from .environment import SANDBOX_SENDER_ADDRESS, EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_app_config, load_config, validate_config_file
from .models import (
    AppConfig,
    BrandingConfig,
    DeliveryConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    ProviderConfig,
)

__all__ = [
    # Main loader functions
    "load_config",
    "load_app_config",
    "validate_config_file",
    "load_environment_config",
    # Configuration models
    "AppConfig",
    "ProviderConfig",
    "DeliveryConfig",
    "BrandingConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "LogLevel",
    "LogFormat",
    # Constants
    "SANDBOX_SENDER_ADDRESS",
    # Exceptions
    "ConfigurationError",
]
