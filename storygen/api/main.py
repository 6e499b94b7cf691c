"""Main FastAPI application for the StoryGen debug console."""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from storygen import __version__
from storygen.api.routers import agents, debug, review, usage
from storygen.core.logging_config import get_logger
from storygen.runtime import StorygenRuntime, get_runtime

logger = get_logger("api.main")


def create_app(runtime: StorygenRuntime = None) -> FastAPI:
    """
    Build the API around a runtime.

    Args:
        runtime: Runtime to expose. Defaults to the process-wide runtime.
    """
    runtime = runtime or get_runtime()
    server_config = runtime.config.server

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        runtime.shutdown()

    app = FastAPI(
        title="StoryGen Debug Console API",
        description="Review gate, agent memories and usage of the StoryGen pipeline",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.runtime = runtime

    # Initialize rate limiter
    limiter = Limiter(key_func=get_remote_address, default_limits=[server_config.rate_limit])
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # CORS middleware for the web console
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(server_config.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(review.router, prefix="/api/review", tags=["review"])
    app.include_router(agents.router, prefix="/api/agents", tags=["agents"])
    app.include_router(usage.router, prefix="/api/usage", tags=["usage"])
    app.include_router(debug.router, prefix="/api/debug", tags=["debug"])

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {"message": "StoryGen Debug Console API", "version": __version__}

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "review_mode": runtime.review_gate.get_review_mode()}

    return app


def start_server(host: str = "127.0.0.1", port: int = 8000, reload: bool = False):
    """Start the API server around the process-wide runtime."""
    logger.info(f"Starting API server on http://{host}:{port}")
    uvicorn.run(
        "storygen.api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level="warning",  # Suppress INFO logs for each request
    )
