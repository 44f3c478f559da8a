"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from solverhub.config import Settings, get_settings
from solverhub.errors import (
    ApplicationError,
    PartialCoordinationFailure,
    PoolNotFound,
    PreconditionError,
    SolverHubError,
    StageError,
    TransactionNotFound,
    TransportError,
    UnsupportedChain,
    ValidationError,
)
from solverhub.notifications.hub import NotificationHub
from solverhub.swap.executor import SwapOrchestrator, create_orchestrator

logger = logging.getLogger(__name__)

_STATUS_CODES = [
    (ValidationError, 400),
    (PoolNotFound, 404),
    (TransactionNotFound, 404),
    (PreconditionError, 409),
    (TransportError, 502),
    (ApplicationError, 502),
]


def status_code_for(error: BaseException) -> int:
    """Map an error (or a stage error's cause) to an HTTP status."""
    if isinstance(error, StageError):
        error = error.cause
    for error_class, status in _STATUS_CODES:
        if isinstance(error, error_class):
            return status
    return 500


async def solverhub_error_handler(request: Request, exc: SolverHubError) -> JSONResponse:
    status = status_code_for(exc)
    cause = exc.cause if isinstance(exc, StageError) else exc
    content = {"error": str(exc), "type": type(cause).__name__}

    if isinstance(exc, StageError):
        content["stage"] = exc.stage
    if isinstance(exc, PartialCoordinationFailure):
        content["completed_steps"] = exc.completed_steps
        content["sale_tx_hash"] = exc.sale_tx_hash
        content["journal_id"] = exc.journal_id
    if isinstance(cause, UnsupportedChain):
        content["chain"] = cause.chain

    log = logger.error if status >= 500 else logger.warning
    log(f"{request.method} {request.url.path} failed ({status}): {exc}")
    return JSONResponse(status_code=status, content=content)


def create_app(
    settings: Optional[Settings] = None,
    orchestrator: Optional[SwapOrchestrator] = None,
    hub: Optional[NotificationHub] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    hub = hub or NotificationHub(send_timeout=settings.hub_send_timeout)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        # Startup
        if app.state.orchestrator is None:
            app.state.orchestrator = create_orchestrator(settings, hub)
        await hub.start()
        yield
        # Shutdown
        await hub.stop()
        await app.state.orchestrator.close()

    app = FastAPI(
        title="Solverhub API",
        description="Cross-chain swap and NFT transfer orchestrator",
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.hub = hub
    app.state.orchestrator = orchestrator

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.add_exception_handler(SolverHubError, solverhub_error_handler)

    # Register routes
    from solverhub.api.routes import health, nfts, swaps, ws

    app.include_router(health.router, tags=["Health"])
    app.include_router(swaps.router, tags=["Swaps"])
    app.include_router(nfts.router, tags=["NFTs"])
    app.include_router(ws.router, tags=["WebSocket"])

    return app
