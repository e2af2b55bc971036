"""Run the API with uvicorn: `python -m api.server`."""
import uvicorn

from core.config import get_settings


def main() -> None:
    """Start uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
