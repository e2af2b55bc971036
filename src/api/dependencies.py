"""FastAPI dependencies for injection."""
from fastapi import Request

from core.auth import get_current_user
from core.config import get_settings
from db.session import get_async_session
from services.url_scraper import MetadataFetcher


def get_metadata_fetcher(request: Request) -> MetadataFetcher:
    """Return the metadata fetcher built at startup (see `api.main.lifespan`)."""
    return request.app.state.metadata_fetcher


__all__ = [
    "get_async_session",
    "get_current_user",
    "get_metadata_fetcher",
    "get_settings",
]
