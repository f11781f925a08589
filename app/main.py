"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.api.v1.realtime_router import router as realtime_router
from app.api.v1.retriever_router import router as retriever_router
from app.api.v1.session_router import router as session_router
from app.api.v1.transcript_router import router as transcript_router
from app.core.config import settings
from app.core.container import build_container
from app.core.exceptions import (
    AppException,
    app_exception_handler,
    validation_exception_handler,
)
from app.core.rate_limit import limiter, rate_limit_exceeded_handler
from app.schemas.response_schema import ApiResponse, success_response

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info(
        "Starting application",
        app_name=settings.app.name,
        environment=settings.app.env,
        llm_provider=settings.llm.provider,
    )
    container = await build_container(settings)
    app.state.container = container
    yield
    await container.aclose()
    app.state.container = None
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.app.name,
    description="News RAG chat service with ephemeral sessions and archived transcripts",
    version=settings.app.version,
    lifespan=lifespan,
    debug=settings.app.debug,
)

# Rate limiter
app.state.limiter = limiter

# Exception handlers
app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]

# Middleware (registration order: inner→outer, execution order: outer→inner)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.app.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", response_model=ApiResponse[dict])
async def health_check() -> dict:
    """Health check endpoint."""
    return success_response({"status": "healthy"})


@app.get("/", response_model=ApiResponse[dict])
async def root() -> dict:
    """Root endpoint."""
    return success_response(
        {
            "app": settings.app.name,
            "version": settings.app.version,
            "docs": "/docs",
        }
    )


# Register routers
app.include_router(session_router)
app.include_router(transcript_router)
app.include_router(retriever_router)
app.include_router(realtime_router)


def run() -> None:
    """Serve the application with uvicorn."""
    uvicorn.run("app.main:app", host=settings.server.host, port=settings.server.port)
