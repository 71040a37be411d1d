"""
View Cache Manager

Owns the lifecycle of the process-wide ViewDedupCache.

Design:
- One cache per application instance, created on startup
- Held on app.state rather than in a module global, and handed to
  endpoints through the get_view_cache dependency
- Each instance keeps its own cache (horizontal scaling multiplies the
  throttle by the number of instances, which is accepted)
"""

import logging

from fastapi import FastAPI, Request

from app.core.setting import settings
from app.services.view_cache import ViewDedupCache

logger = logging.getLogger(__name__)


def initialize_view_cache(app: FastAPI) -> ViewDedupCache:
    """
    Create the view cache for this application instance.

    Returns the existing cache if called twice.
    """
    existing = getattr(app.state, "view_cache", None)
    if existing is not None:
        logger.warning("View cache already initialized")
        return existing

    cache = ViewDedupCache(
        window_seconds=settings.VIEW_THROTTLE_WINDOW_SECONDS,
        high_water_mark=settings.VIEW_CACHE_HIGH_WATER_MARK,
    )
    app.state.view_cache = cache

    logger.info(
        f"View cache initialized: "
        f"window={settings.VIEW_THROTTLE_WINDOW_SECONDS}s, "
        f"high_water_mark={settings.VIEW_CACHE_HIGH_WATER_MARK}"
    )
    return cache


def shutdown_view_cache(app: FastAPI) -> None:
    """Drop the cache on shutdown."""
    cache = getattr(app.state, "view_cache", None)
    if cache is None:
        return
    logger.info(f"Shutting down view cache: {cache.stats}")
    cache.clear()
    app.state.view_cache = None


def get_view_cache(request: Request) -> ViewDedupCache:
    """
    FastAPI dependency returning the instance's view cache.

    Creates it lazily if startup hooks did not run (e.g. an ASGI transport
    that skips lifespan events).
    """
    cache = getattr(request.app.state, "view_cache", None)
    if cache is None:
        cache = initialize_view_cache(request.app)
    return cache
