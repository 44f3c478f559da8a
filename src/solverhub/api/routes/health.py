"""Health check endpoints."""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "solverhub"}


@router.get("/health/detailed")
async def detailed_health(request: Request):
    """Detailed health check with configuration info."""
    settings = request.app.state.settings
    hub = request.app.state.hub
    orchestrator = request.app.state.orchestrator
    return {
        "status": "healthy",
        "service": "solverhub",
        "version": "0.1.0",
        "subscribers": hub.subscriber_count,
        "hub_running": hub.is_running,
        "pending_reconciliation": orchestrator.pending_reconciliation(),
        "config": settings.get_safe_dict(),
    }
