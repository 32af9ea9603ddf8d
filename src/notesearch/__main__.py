"""Entry point for the API server."""

import contextlib
import sys

import structlog
import uvicorn

from notesearch.app import create_app
from notesearch.config import Settings
from notesearch.logging import configure_logging

logger = structlog.get_logger()


def main() -> None:
    """Entry point for python -m notesearch."""
    settings = Settings()  # type: ignore[call-arg]
    configure_logging(debug=settings.debug, json_logs=settings.log_json)

    app = create_app(settings)
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level="warning",
        access_log=False,
    )
    server = uvicorn.Server(config)

    with contextlib.suppress(KeyboardInterrupt):
        server.run()

    logger.info("server_exited")
    sys.exit(0)


if __name__ == "__main__":
    main()
