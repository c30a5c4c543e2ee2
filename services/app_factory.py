import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware

from services.app_state import AppState
from services.error_handler import setup_error_handlers
from routes import analyze_router

logger = logging.getLogger(__name__)


def create_app(state: AppState) -> FastAPI:
    """
    Create and configure the FastAPI application instance.

    The state is injected so tests can supply mock clients and
    zero-delay rate limiters.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler for startup/shutdown."""
        logger.info("[STARTUP] Counterfeit checker starting...")
        logger.info(f"[STARTUP] Model: {state.settings.model.model} "
                    f"(configured: {state.model_configured})")
        state.open_clients()

        yield

        await state.close_clients()
        logger.info("[SHUTDOWN] Counterfeit checker shutting down...")
        logger.info(f"[SHUTDOWN] Total requests: {state.stats['total_requests']}")

    app = FastAPI(
        title="Hockey Stick Counterfeit Checker",
        description="Scores SidelineSwap seller listings for counterfeit likelihood with Claude vision",
        lifespan=lifespan,
    )

    # Store state in app for access by routes
    app.state.app_state = state

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/favicon.ico", include_in_schema=False)
    async def favicon():
        return Response(status_code=204)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "model_configured": state.model_configured,
            "model": state.settings.model.model,
            "session_seconds": round(state.get_session_duration(), 1),
            **{k: v for k, v in state.stats.items() if k != "session_start"},
        }

    app.include_router(analyze_router)
    setup_error_handlers(app)

    return app
