"""Builds the notifier's settings from config.yaml and the environment.

The YAML file is optional. Without one the notifier runs on built-in
defaults: three attempts with 500 ms doubling backoff, the "SkillConnect"
label, key-value logs with masked recipients. The environment always has to
supply RESEND_API_KEY.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import CONFIG_FILE_HINTS, ConfigurationError
from .models import AppConfig
from .validators import check_for_warnings, emit_warnings

# Searched in order when --config is not given
DEFAULT_CONFIG_LOCATIONS = (Path("config.yaml"), Path("config") / "config.yaml")


def load_config(config_path: Optional[Path] = None) -> tuple[AppConfig, EnvironmentConfig]:
    """Return the file settings and the environment settings together.

    RESEND_API_URL, when set, replaces ``provider.api_url`` from the file.

    Raises:
        ConfigurationError: If either source is invalid, or config_path is
            given but missing
    """
    app_config = load_app_config(config_path)
    env_config = load_environment_config()

    if env_config.resend_api_url:
        app_config.provider.api_url = env_config.resend_api_url

    return app_config, env_config


def load_app_config(config_path: Optional[Path] = None) -> AppConfig:
    """Validate the YAML settings, or return defaults when there is no file.

    Soft problems (a single attempt, a worst-case backoff longer than a
    request timeout, plain-http API URL) are emitted as UserWarning and do
    not stop loading.

    Args:
        config_path: Explicit file; must exist when given

    Raises:
        ConfigurationError: If the file cannot be read, is not a mapping, or
            fails validation
    """
    config_file = _find_config_file(config_path)
    if config_file is None:
        return AppConfig()

    settings = _read_yaml(config_file)
    if not settings:
        return AppConfig()

    emit_warnings(check_for_warnings(settings))

    try:
        return AppConfig.model_validate(settings)
    except ValidationError as e:
        raise ConfigurationError.from_validation_error(e, source=config_file) from e


def _read_yaml(config_file: Path) -> Optional[Dict[str, Any]]:
    try:
        with open(config_file, "r") as f:
            settings = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML configuration: {e}",
            suggestions=[
                "Check YAML syntax in your config file",
                "Ensure proper indentation (use spaces, not tabs)",
            ],
            source=config_file,
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read configuration file: {e}",
            suggestions=[f"Ensure {config_file} is readable"],
            source=config_file,
        ) from e

    if settings is not None and not isinstance(settings, dict):
        raise ConfigurationError(
            "Configuration file must contain a mapping at the top level",
            suggestions=CONFIG_FILE_HINTS[:1],
            source=config_file,
        )
    return settings


def _find_config_file(config_path: Optional[Path] = None) -> Optional[Path]:
    """Return the file to load, or None to run on defaults."""
    if config_path:
        if not config_path.exists():
            raise ConfigurationError(
                f"Specified configuration file not found: {config_path}",
                suggestions=["Omit --config to run with built-in defaults"],
                source=config_path,
            )
        return config_path

    return next((path for path in DEFAULT_CONFIG_LOCATIONS if path.exists()), None)


def validate_config_file(config_path: Path) -> bool:
    """Check a config file without touching the environment.

    Prints a one-line verdict, and the full error when invalid.
    """
    try:
        load_app_config(config_path)
    except ConfigurationError as e:
        print(f"✗ Configuration validation failed:\n{e}")
        return False
    print(f"✓ Configuration file {config_path} is valid")
    return True
