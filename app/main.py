"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- API routes
- Middleware (logging, CORS)
- Rate limiting
- The per-instance view dedup cache (startup/shutdown)
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.api import endpoints
from app.core.cache_manager import initialize_view_cache, shutdown_view_cache
from app.core.rate_limit import limiter
from app.core.setting import settings
from app.db.session import create_all_tables
from app.middleware.logging import add_logging_middleware, configure_logging

configure_logging(settings.LOG_LEVEL)

app = FastAPI(
    title="Article View Counter",
    description="View counting, daily page-view aggregation and dashboard rollups for a news site",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

add_logging_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint for health checks."""
    return {
        "message": "Article View Counter",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy"}


app.include_router(endpoints.router, tags=["Views"])


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    if settings.CREATE_TABLES_ON_STARTUP:
        await create_all_tables()
    initialize_view_cache(app)


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    shutdown_view_cache(app)
