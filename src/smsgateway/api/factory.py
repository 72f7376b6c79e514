"""FastAPI application factory.

Collaborators (store, carrier, CRM, task dispatcher, principals) are built
from Settings unless injected, which is how tests swap in fakes.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from smsgateway.api.auth import INVALID_CREDENTIALS, AuthGate, UserDirectory
from smsgateway.domain.errors import AuthenticationError, GatewayError, ValidationError
from smsgateway.domain.gateway import MessageGateway
from smsgateway.infra.repositories.message_repository import (
    ConversationStore,
    InMemoryConversationStore,
)
from smsgateway.observability.correlation import (
    CORRELATION_ID_HEADER,
    generate_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from smsgateway.observability.logging import get_logger
from smsgateway.observability.redaction import safe_log_context
from smsgateway.settings import Settings
from smsgateway.sync.activity_sync import ActivityLog, ActivitySync
from smsgateway.tasks.client import TasksClient
from smsgateway.twilio.carrier import Carrier

from .routers import public
from .routes import auth, conversations, messages, webhooks_twilio

logger = get_logger(__name__)


def _build_carrier(settings: Settings) -> Carrier | None:
    if not settings.twilio_configured:
        return None
    from smsgateway.twilio.carrier import TwilioCarrier

    return TwilioCarrier(
        settings.twilio_account_sid,
        settings.twilio_auth_token,
        settings.twilio_messaging_service_sid,
    )


def _build_activity_log(settings: Settings) -> ActivityLog | None:
    if not settings.hubspot_configured:
        return None
    from smsgateway.hubspot.client import HubSpotClient

    return HubSpotClient(
        settings.hubspot_token,
        base_url=settings.hubspot_base_url,
        timeout=settings.hubspot_timeout,
    )


def _request_error_for(path: str) -> GatewayError:
    """Map a schema-rejected request to the error its route would raise."""
    if path.rstrip("/") == "/auth/login":
        return AuthenticationError(INVALID_CREDENTIALS)
    return ValidationError("Invalid request body")


def create_app(
    settings: Settings | None = None,
    *,
    store: ConversationStore | None = None,
    carrier: Carrier | None = None,
    activity_log: ActivityLog | None = None,
    tasks_client: TasksClient | None = None,
    users: UserDirectory | None = None,
) -> FastAPI:
    """Create the gateway app.

    Args:
        settings: Configuration. Defaults to Settings.from_env().
        store: Conversation store. Defaults to the in-memory store.
        carrier: SMS carrier. Defaults to Twilio when configured, else None.
        activity_log: CRM. Defaults to HubSpot when configured, else None.
        tasks_client: Background dispatcher for CRM sync.
        users: Principal directory. Defaults to the configured demo user.

    Raises:
        ConfigurationError: Production without JWT_SECRET.
    """
    settings = settings or Settings.from_env()
    settings.check_secret()

    if carrier is None:
        carrier = _build_carrier(settings)
    if activity_log is None:
        activity_log = _build_activity_log(settings)
    if tasks_client is None:
        tasks_client = TasksClient(
            backend=settings.tasks_backend,
            max_workers=settings.tasks_max_workers,
            max_pending=settings.tasks_max_pending,
        )
    if users is None:
        users = UserDirectory.with_demo_user(
            settings.demo_user_email, settings.demo_user_password
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "gateway started",
            extra={
                "extra_fields": safe_log_context(
                    carrier_configured=carrier is not None,
                    crm_configured=activity_log is not None,
                    tasks_backend=tasks_client.backend,
                )
            },
        )
        try:
            yield
        finally:
            tasks_client.shutdown(wait=True)

    app = FastAPI(
        title="SMS Gateway",
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.tasks_client = tasks_client
    app.state.auth_gate = AuthGate(users, settings.jwt_secret, settings.jwt_ttl_hours)
    app.state.gateway = MessageGateway(
        store=store if store is not None else InMemoryConversationStore(),
        activity_sync=ActivitySync(activity_log, tasks_client),
        carrier=carrier,
    )

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    # Bodies pydantic rejects still answer in the error taxonomy, never 422
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        error = _request_error_for(request.url.path)
        logger.info(
            "request body rejected",
            extra={
                "extra_fields": safe_log_context(
                    path=request.url.path,
                    error_types=",".join(sorted({e.get("type", "") for e in exc.errors()})),
                )
            },
        )
        return await gateway_error_handler(request, error)

    # Correlation ID middleware
    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        cid = request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
        token = set_correlation_id(cid)
        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = cid
            return response
        finally:
            reset_correlation_id(token)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allow_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(public.router)
    app.include_router(auth.router)
    app.include_router(conversations.router)
    app.include_router(messages.router)
    app.include_router(webhooks_twilio.router)

    return app
