"""HTTP API exposing the notification functions.

Endpoints:
- POST /send-application-status: accepted/rejected email to the applicant
- POST /send-application-notification: new-application email to the recruiter
- GET /health

Successful sends return 200 with the delivery result. Malformed payloads
return 400 and delivery failures 500, both as {"error": message}.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config.environment import EnvironmentConfig
from app.config.loader import load_config
from app.config.models import AppConfig
from app.logging import get_logger
from app.notifications.dispatcher import NotificationDispatcher
from app.notifications.models import NotificationError, NotificationValidationError

logger = get_logger(__name__, component="api")

CORS_ALLOWED_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(
    app_config: Optional[AppConfig] = None,
    env_config: Optional[EnvironmentConfig] = None,
    dispatcher: Optional[NotificationDispatcher] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Configuration is loaded from config.yaml and the environment when not
    supplied.
    """
    if app_config is None or env_config is None:
        app_config, env_config = load_config()

    dispatcher = dispatcher or NotificationDispatcher(app_config, env_config)

    api = FastAPI(
        title="Application Notifier",
        description="Transactional email for job applications",
        version="1.0.0",
    )
    api.add_middleware(
        CORSMiddleware,
        allow_origins=app_config.allowed_origins,
        allow_methods=["POST", "GET", "OPTIONS"],
        allow_headers=CORS_ALLOWED_HEADERS,
    )
    api.state.dispatcher = dispatcher

    @api.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return _error_response(400, f"Invalid request body: {exc.errors()}")

    @api.exception_handler(NotificationValidationError)
    async def handle_notification_validation(request: Request, exc: NotificationValidationError):
        logger.warning(
            f"Rejected invalid payload on {request.url.path}: {exc}",
            extra={"event": "api.request.invalid", "path": request.url.path},
        )
        return _error_response(400, str(exc))

    @api.exception_handler(NotificationError)
    async def handle_notification_error(request: Request, exc: NotificationError):
        logger.error(
            f"Error in {request.url.path}: {exc}",
            extra={
                "event": "api.request.failed",
                "path": request.url.path,
                "error_type": getattr(exc, "kind", type(exc).__name__),
            },
        )
        return _error_response(500, str(exc))

    @api.post("/send-application-status")
    def send_application_status(payload: Dict[str, Any] = Body(...)):
        result = api.state.dispatcher.dispatch(payload)
        return {"success": True, **result.to_dict()}

    @api.post("/send-application-notification")
    def send_application_notification(payload: Dict[str, Any] = Body(...)):
        result = api.state.dispatcher.dispatch_new_application(payload)
        return {"success": True, **result.to_dict()}

    @api.get("/health")
    def health_check():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return api
