from datetime import datetime

from fastapi import APIRouter, Request, status

from src.infra.config.settings import settings

router = APIRouter()


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(request: Request):
    """
    Health check endpoint.
    Reports whether the context is running and the state of the background loops.
    """
    context = getattr(request.app.state, "context", None)

    ws_client_count = 0
    if hasattr(request.app.state, "ws_manager"):
        ws_client_count = request.app.state.ws_manager.get_connection_count()

    if context is None:
        return {
            "status": "unhealthy",
            "service": "client_gateway",
            "version": settings.APP_VERSION,
            "timestamp": datetime.utcnow().isoformat() + "Z"
        }

    return {
        "status": "healthy",
        "service": "client_gateway",
        "version": settings.APP_VERSION,
        "services": {
            "websocket": f"{ws_client_count} clients connected",
            "presence": "running" if context.presence.running else "idle",
            "leaderboard": "loading" if context.leaderboard.loading else "ready",
            "session": "authenticated" if context.store.state.is_authenticated else "anonymous",
        },
        "timestamp": datetime.utcnow().isoformat() + "Z"
    }
