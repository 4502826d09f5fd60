"""
Deal Relay API - Main Application.

FastAPI application relaying pipeline deals to connected operators over a
WebSocket feed, with CORS enabled for the operator frontend.
"""

from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api import __version__
from api.config import Settings, load_settings
from api.models import ErrorResponse, HealthResponse
from api.realtime import ConnectionHub
from domain.errors import (
    DealAlreadyResolvedError,
    DealError,
    DealNotFoundError,
    DealValidationError,
    DuplicateDealError,
)
from domain.time import Clock, utc_now
from repositories.deal_repository import DealStore
from services.deal_lifecycle_service import DealLifecycleService
from services.notification_service import NotificationDispatcher
from services.retention_service import RetentionSweeper

_ERROR_STATUS = {
    DealValidationError: (400, "Invalid deal payload"),
    DuplicateDealError: (409, "Deal already exists"),
    DealNotFoundError: (404, "Deal not found"),
    DealAlreadyResolvedError: (409, "Deal already processed"),
}


def _deal_error_handler(request: Request, exc: DealError) -> JSONResponse:
    status_code, error = _ERROR_STATUS.get(type(exc), (500, "Deal operation failed"))
    body = ErrorResponse(error=error, detail=exc.message, status_code=status_code)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def create_app(
    settings: Optional[Settings] = None,
    *,
    clock: Clock = utc_now,
    webhook_transport: Optional[httpx.BaseTransport] = None,
) -> FastAPI:
    """
    Build the application with its own store, hub, dispatcher and sweeper.

    Args:
        settings: Runtime configuration; loaded from the environment when omitted
        clock: UTC clock shared by the lifecycle service and the sweeper
        webhook_transport: Optional httpx transport for the accept webhook
    """
    settings = settings or load_settings()

    store = DealStore()
    hub = ConnectionHub()
    dispatcher = NotificationDispatcher(
        settings.webhook_accept_url,
        timeout=settings.webhook_timeout_seconds,
        transport=webhook_transport,
    )
    service = DealLifecycleService(store, hub, dispatcher, clock=clock)
    sweeper = RetentionSweeper(
        store,
        horizon=settings.retention_horizon,
        interval=settings.sweep_interval,
        clock=clock,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sweeper.start()
        try:
            yield
        finally:
            await sweeper.stop()
            dispatcher.shutdown(wait=True)

    app = FastAPI(
        title="Deal Relay API",
        description="Real-time relay of pipeline deals to operators with single-claim arbitration",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.hub = hub
    app.state.dispatcher = dispatcher
    app.state.deal_service = service
    app.state.sweeper = sweeper

    # TODO: Restrict origins once the operator frontend has a fixed host
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DealError, _deal_error_handler)

    @app.get("/api/health", response_model=HealthResponse, tags=["Health"])
    def health_check():
        """
        Health check endpoint.

        Returns uptime in seconds and the number of deals held in memory.
        """
        health = service.health()
        return HealthResponse(
            status="ok",
            version=__version__,
            uptime=health.uptime_seconds,
            deals_in_memory=health.store_size,
        )

    @app.get("/", tags=["Root"])
    def root():
        """
        Root endpoint with API information.
        """
        return {
            "message": "Deal Relay API",
            "version": __version__,
            "docs": "/docs",
            "health": "/api/health",
            "feed": "/ws",
        }

    # Import and include routers
    from api import realtime
    from api.routers import deals

    app.include_router(deals.router, prefix="/api", tags=["Deals"])
    app.include_router(realtime.router, tags=["Realtime"])

    return app
