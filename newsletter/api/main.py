import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from newsletter import __version__
from newsletter.adapters.dev_email import DevEmailAdapter
from newsletter.adapters.email_client import EmailClient
from newsletter.adapters.sqlite_db import (
    SQLiteConfirmedSubscriberReader,
    SQLiteDatabase,
    SQLiteSubscriptionStore,
)
from newsletter.api.middleware import RequestIdMiddleware
from newsletter.api.routes import newsletters, subscriptions
from newsletter.config.models import AppConfig, EmailClientSettings
from newsletter.core.ports.email import EmailPort

logger = logging.getLogger(__name__)


def build_email_sender(settings: EmailClientSettings) -> DevEmailAdapter | EmailClient:
    if settings.backend == "dev":
        return DevEmailAdapter()
    return EmailClient(
        base_url=settings.base_url,
        sender=settings.sender(),
        authorization_token=settings.authorization_token.get_secret_value(),
        timeout=settings.timeout(),
    )


def create_app(config: AppConfig, email_sender: EmailPort | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        config: Process configuration, loaded once at startup
        email_sender: Use this email port instead of one built from config
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        db = SQLiteDatabase(
            config.database.path,
            max_connections=config.database.max_connections,
            timeout=config.database.timeout_seconds,
        )
        sender = email_sender or build_email_sender(config.email_client)

        app.state.config = config
        app.state.subscription_store = SQLiteSubscriptionStore(db)
        app.state.confirmed_reader = SQLiteConfirmedSubscriberReader(db)
        app.state.email_sender = sender
        logger.info(f"Newsletter service started (database={config.database.path})")

        yield

        if email_sender is None and isinstance(sender, EmailClient):
            await sender.aclose()

    app = FastAPI(
        title="Newsletter API",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.include_router(subscriptions.router, tags=["Subscriptions"])
    app.include_router(newsletters.router, tags=["Newsletters"])
    app.add_middleware(RequestIdMiddleware)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_encoder(exc.errors())},
        )

    @app.get("/health")
    def health_check() -> Response:
        """Health check endpoint."""
        return Response(status_code=status.HTTP_200_OK)

    return app
