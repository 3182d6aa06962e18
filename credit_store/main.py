"""FastAPI application entry point and lifecycle management."""

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from credit_store.config import Config, get_config
from credit_store.logging_config import configure_logging, get_logger
from credit_store.middleware import RequestContextMiddleware
from credit_store.repositories.catalog_repository import CatalogRepository
from credit_store.repositories.credit_lot_store import CreditLotStore
from credit_store.repositories.grant_store import GrantStore
from credit_store.repositories.notification_store import NotificationStore
from credit_store.repositories.profile_store import ProfileStore
from credit_store.repositories.purchase_store import PurchaseStore
from credit_store.repositories.usage_history_store import UsageHistoryStore
from credit_store.services.catalog_manager import CatalogManager
from credit_store.services.event_dispatcher import EventDispatcher
from credit_store.services.ledger_engine import CreditLedgerEngine
from credit_store.services.message_relay import MessageRelay
from credit_store.services.notifier import Notifier
from credit_store.services.time_controller import TimeController

# Initialize logger
logger = get_logger(__name__)


def wire_services(app: FastAPI, config: Config, clock: Optional[TimeController] = None) -> None:
    """Build stores and services for one application instance.

    Args:
        app: Application whose state receives the services
        config: Loaded configuration
        clock: Store clock (defaults to real time)
    """
    settings = config.engine_settings
    clock = clock or TimeController()

    profiles = ProfileStore()
    catalog = CatalogRepository(config)
    dispatcher = EventDispatcher(config.events)
    relay = MessageRelay(config.message_relay)
    notifier = Notifier(
        inbox=NotificationStore(),
        profiles=profiles,
        clock=clock,
        dispatcher=dispatcher,
        relay=relay,
        id_prefix=settings.id_prefix,
    )
    engine = CreditLedgerEngine(
        lots=CreditLotStore(),
        grants=GrantStore(),
        purchases=PurchaseStore(),
        history=UsageHistoryStore(),
        profiles=profiles,
        catalog=catalog,
        clock=clock,
        notifier=notifier,
        settings=settings,
    )
    clock.attach_engine(engine)

    app.state.config = config
    app.state.time_controller = clock
    app.state.profiles = profiles
    app.state.catalog = catalog
    app.state.event_dispatcher = dispatcher
    app.state.message_relay = relay
    app.state.notifier = notifier
    app.state.engine = engine
    app.state.catalog_manager = CatalogManager(catalog, clock, id_prefix=settings.id_prefix)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager.

    Handles startup and shutdown events.
    """
    logger.info("store_starting", version="0.1.0")

    try:
        if app.state.event_dispatcher.is_enabled():
            logger.info("pubsub_enabled", message="Event dispatcher initialized and ready")
        else:
            logger.info(
                "pubsub_disabled", message="Event dispatcher is disabled or failed to initialize"
            )

        logger.info("store_started", status="ready")
        yield
    finally:
        logger.info("store_shutting_down")
        app.state.message_relay.shutdown()
        app.state.event_dispatcher.shutdown()
        logger.info("store_stopped")


def create_app(config: Optional[Config] = None, clock: Optional[TimeController] = None) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        config: Configuration (defaults to the global instance)
        clock: Store clock (defaults to real time)

    Returns:
        Configured FastAPI application instance
    """
    log_level = os.getenv("LOG_LEVEL", "INFO")
    json_format = os.getenv("LOG_FORMAT", "json").lower() == "json"
    configure_logging(log_level=log_level, json_format=json_format)

    app = FastAPI(
        title="Digital Credit Store",
        description="Credit ledger, product access and purchase approval service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    wire_services(app, config or get_config(), clock)

    # Add CORS middleware (allow all for local development)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    include_request_details = os.getenv("LOG_REQUEST_DETAILS", "true").lower() == "true"
    app.add_middleware(RequestContextMiddleware, include_request_details=include_request_details)

    from credit_store.api.admin import router as admin_router
    from credit_store.api.store import router as store_router

    app.include_router(store_router)
    app.include_router(admin_router)

    @app.get("/")
    async def root() -> dict[str, str]:
        """Health check endpoint."""
        logger.debug("root_endpoint_called")
        return {
            "service": "digital-credit-store",
            "status": "running",
            "version": "0.1.0",
        }

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Detailed health check."""
        catalog = app.state.catalog
        return {
            "status": "healthy",
            "pubsub": "connected" if app.state.event_dispatcher.is_enabled() else "disabled",
            "message_relay": "enabled" if app.state.message_relay.is_enabled() else "disabled",
            "catalog": (
                f"loaded ({len(catalog.list_products())} products, "
                f"{len(catalog.list_packages())} credit packages)"
            ),
        }

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request, exc: Exception) -> JSONResponse:
        """Handle uncaught exceptions."""
        logger.error(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
            },
        )

    logger.info("app_created", endpoints=len(app.routes))
    return app


# Create app instance
app = create_app()
