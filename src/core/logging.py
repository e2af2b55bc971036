"""Logging setup for the API process."""
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging for the application.

    Modules log through `logging.getLogger(__name__)`; this only sets the
    level and format once at startup. Calling it again replaces the level.
    """
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, force=True)
    # httpx logs every request at INFO, which is noisy for metadata fetches
    logging.getLogger("httpx").setLevel(logging.WARNING)
