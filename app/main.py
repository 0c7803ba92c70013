"""Main entry point for the application notifier."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from app.config.environment import EnvironmentConfig
from app.config.exceptions import ConfigurationError
from app.config.loader import load_app_config, load_config
from app.config.models import AppConfig
from app.logging import get_logger
from app.logging.config import configure_logging
from app.notifications.dispatcher import NotificationDispatcher
from app.notifications.models import NotificationError

logger = get_logger(__name__, component="cli")

EXIT_OK = 0
EXIT_DELIVERY_FAILED = 1
EXIT_CONFIG_ERROR = 2


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and configure logging.

    Log level priority: CLI > Environment > Config.

    Args:
        config_path: Optional path to configuration file
        log_level_override: Log level from CLI (takes precedence)

    Returns:
        Tuple of (AppConfig, EnvironmentConfig)

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level

    configure_logging(
        level=env_config.log_level,
        format_type=app_config.logging.format,
        environment=env_config.environment,
        mask_recipients=app_config.logging.mask_recipients,
    )
    return app_config, env_config


def _read_payload(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "r") as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(
            f"Failed to read payload file {path}: {e}",
            suggestions=["Pass a JSON file containing the request object"],
            source=path,
        ) from e
    if not isinstance(payload, dict):
        raise ConfigurationError("Payload must be a JSON object", source=path)
    return payload


def _send(args: argparse.Namespace) -> int:
    app_config, env_config = load_runtime_config(args.config, args.log_level)
    payload = _read_payload(args.payload)
    dispatcher = NotificationDispatcher(app_config, env_config)

    try:
        if args.command == "send-status":
            result = dispatcher.dispatch(payload)
        else:
            result = dispatcher.dispatch_new_application(payload)
    except NotificationError as e:
        logger.error(
            f"Notification failed: {e}",
            extra={"event": "cli.send.failed", "error_type": getattr(e, "kind", type(e).__name__)},
        )
        print(json.dumps({"error": str(e)}))
        return EXIT_DELIVERY_FAILED

    print(json.dumps(result.to_dict(), default=str))
    return EXIT_OK


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    from app.api import create_app

    app_config, env_config = load_runtime_config(args.config, args.log_level)
    logger.info(
        "Starting HTTP API",
        extra={"event": "service.starting", "host": args.host, "port": args.port},
    )
    uvicorn.run(
        create_app(app_config, env_config),
        host=args.host,
        port=args.port,
        log_config=None,
    )
    return EXIT_OK


def _validate(args: argparse.Namespace) -> int:
    app_config = load_app_config(args.config)
    print("✓ Configuration is valid")
    print(f"  provider: {app_config.provider.api_url}")
    print(
        f"  delivery: {app_config.delivery.max_attempts} attempts, "
        f"worst-case backoff {app_config.total_backoff_seconds():.1f}s"
    )
    print(f"  sender label: {app_config.branding.sender_label}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Application Notifier - transactional email for job applications"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml if present)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    send_status = subparsers.add_parser(
        "send-status", help="Send an accepted/rejected email from a JSON payload"
    )
    send_status.add_argument("payload", type=Path)

    send_new = subparsers.add_parser(
        "send-new-application", help="Send a new-application email from a JSON payload"
    )
    send_new.add_argument("payload", type=Path)

    subparsers.add_parser("validate-config", help="Validate the configuration file")
    return parser


def main(argv=None) -> int:
    """
    Main entry point for the application notifier.

    Returns:
        Exit code (0 success, 1 delivery failure, 2 configuration error).
    """
    args = build_parser().parse_args(argv)

    handlers = {
        "serve": _serve,
        "send-status": _send,
        "send-new-application": _send,
        "validate-config": _validate,
    }

    try:
        return handlers[args.command](args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR


if __name__ == "__main__":
    sys.exit(main())
