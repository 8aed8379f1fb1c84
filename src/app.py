import json
from datetime import datetime
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError

from src.infra.config.settings import settings
from src.core.context import AppContext
from src.core.logger.logger import logger
from src.api.router import auth, community, health, preferences, wallet, websocket
from src.api.middleware.logging.request_logging import RequestLoggingMiddleware
from src.core.exceptions.handler import ServiceError, GlobalErrorHandler
from src.core.service.backend.errors import BackendError
from src.core.service.websocket.manager import ConnectionManager

def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """
    Build the application.

    Args:
        context: Prebuilt context; when omitted one is created against the
            configured Supabase project at startup
    """
    app = FastAPI(
        title=settings.APP_NAME,
        description="""
Yowx Mods client gateway - session, wallet and presence synchronization with the hosted backend.

## Services
- **Authentication**: email/password login and signup, session tracking
- **Wallet**: coin balance changes mirrored from the authoritative wallet
- **Presence**: online heartbeat for the signed-in user
- **Community**: leaderboard and bug reports
- **Realtime**: WebSocket stream of auth state and notices
        """,
        version=settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,  # 10 minutes
    )

    # Request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    # Add centralized error handlers
    app.add_exception_handler(ServiceError, GlobalErrorHandler.service_error_handler)
    app.add_exception_handler(BackendError, GlobalErrorHandler.backend_error_handler)
    app.add_exception_handler(RequestValidationError, GlobalErrorHandler.validation_error_handler)
    app.add_exception_handler(Exception, GlobalErrorHandler.general_exception_handler)

    # Include routers
    app.include_router(health.router, prefix="/api/v1")
    app.include_router(auth.router, prefix="/api/v1")
    app.include_router(wallet.router, prefix="/api/v1")
    app.include_router(community.router, prefix="/api/v1")
    app.include_router(preferences.router, prefix="/api/v1")
    app.include_router(websocket.router)  # /ws endpoint

    app.state.ws_manager = ConnectionManager()
    app.state.context = context

    @app.on_event("startup")
    async def startup_event():
        logger.info(json.dumps({
            "message": "Starting client gateway",
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION
        }))

        if app.state.context is None:
            app.state.context = await AppContext.create()

        ctx: AppContext = app.state.context
        manager: ConnectionManager = app.state.ws_manager
        app.state.unsubscribers = [
            ctx.store.subscribe(manager.publish_state),
            ctx.notifier.subscribe(manager.publish_notice),
        ]

        await ctx.start()

    @app.on_event("shutdown")
    async def shutdown_event():
        for unsubscribe in getattr(app.state, "unsubscribers", []):
            unsubscribe()

        if app.state.context is not None:
            await app.state.context.shutdown()

        logger.info(json.dumps({
            "message": "Shutting down client gateway",
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION
        }))

    return app
