"""Entry point for running the API server."""
import uvicorn

from api.main import create_app
from core.config import get_settings
from core.logging import configure_logging


def main() -> None:
    """Start the API on the configured host and port."""
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
