"""
Chat relay - Main FastAPI application.

Name registration over HTTP, presence and chat relay over WebSocket.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from chatrelay.core.config import settings
from chatrelay.core.api import health, users
from chatrelay.core.hub import get_hub
from chatrelay.core.presence.reaper import start_reaper, stop_reaper
from chatrelay.core.websocket.routes import websocket_endpoint

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# Lifespan event handlers
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    # Startup: exactly one reaper per process, shared by every connection
    await start_reaper(
        get_hub(),
        interval=settings.reaper_interval_seconds,
        threshold=settings.staleness_threshold_seconds,
    )
    logger.info("Server has been started on http://localhost:%s", settings.api_port)

    yield

    # Shutdown
    await stop_reaper()
    await get_hub().connections.close_all()
    logger.info("Chat relay shutting down")


# Create FastAPI app
app = FastAPI(
    title="Chat relay",
    description="Real-time chat relay with presence tracking",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests. Health checks at DEBUG to reduce log spam."""
    path = request.url.path
    level = logger.debug if path == "/health" else logger.info
    level(f"{request.method} {path}")
    response = await call_next(request)
    level(f"{request.method} {path} - {response.status_code}")
    return response


# Error handlers
@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "status": "error",
            "message": "Internal server error",
            "error": str(exc) if settings.debug else None,
        },
    )


# WebSocket for presence, chat relay and history; clients connect to the server root
app.add_api_websocket_route("/", websocket_endpoint)
app.add_api_websocket_route("/ws", websocket_endpoint)

# Include routers
app.include_router(health.router)
app.include_router(users.router)


def run() -> None:
    """
    Serve the app with uvicorn.

    Failing to bind the port is the only fatal error; uvicorn logs it and exits with status 1.
    """
    import uvicorn
    uvicorn.run(
        "chatrelay.core.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
