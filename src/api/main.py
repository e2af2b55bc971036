"""FastAPI application entry point."""
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from api.errors import register_exception_handlers
from api.routers import auth, bookmarks, health, tags
from core.config import Settings, get_settings
from core.logging import configure_logging
from core.metadata_cache import MetadataCache
from services.url_scraper import UrlMetadataFetcher

logger = logging.getLogger(__name__)


def build_metadata_fetcher(settings: Settings) -> UrlMetadataFetcher:
    """Build the metadata fetcher and its cache from settings."""
    cache = MetadataCache(
        max_size=settings.metadata_cache_size,
        ttl_seconds=settings.metadata_cache_ttl_seconds,
    )
    return UrlMetadataFetcher(
        cache,
        timeout=settings.metadata_fetch_timeout,
        block_private_hosts=settings.metadata_block_private_hosts,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Manage application lifespan - startup and shutdown."""
    app_settings = get_settings()

    # Startup: logging and the shared metadata fetcher/cache
    configure_logging(app_settings.log_level)
    app.state.metadata_fetcher = build_metadata_fetcher(app_settings)
    logger.info("startup environment=%s", app_settings.environment)

    yield

    # Shutdown: drop cached metadata
    app.state.metadata_fetcher.cache.clear()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request and add security headers to response."""
        response = await call_next(request)
        # HSTS: enforce HTTPS for 1 year, including subdomains
        response.headers["Strict-Transport-Security"] = (
            "max-age=31536000; includeSubDomains"
        )
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Prevent clickjacking - API shouldn't be framed
        response.headers["X-Frame-Options"] = "DENY"
        return response


app_settings = get_settings()

app = FastAPI(
    title="Markshelf API",
    description="Bookmark storage with per-user tags, archiving and search.",
    version="0.1.0",
    lifespan=lifespan,
)

register_exception_handlers(app)

# Security headers middleware (runs after CORS, adds headers to responses)
app.add_middleware(SecurityHeadersMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(bookmarks.router)
app.include_router(tags.router)
